import pytest

from clientauth.repository import ClientRepository
from clientauth.schema import register_client_type
from clientauth.store import MemoryStore
from tests.client_helpers import FakeClock


@pytest.fixture
def store() -> MemoryStore:
    store = MemoryStore()
    register_client_type(store)
    return store


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000.0)


@pytest.fixture
def repository(store: MemoryStore, clock: FakeClock) -> ClientRepository:
    return ClientRepository(store, clock=clock)
