import pytest

from clientauth import secret_generator
from clientauth.constants import AUTH_CODE_TTL_SECONDS
from clientauth.errors import StorageError, ValidationError
from tests.client_helpers import SequenceGenerator, create_demo_client


@pytest.mark.asyncio
async def test_issue_code_is_resolvable(repository, clock) -> None:
    client = await create_demo_client(repository)

    code = await client.issue_authorization_code("user-1")

    assert len(code) == 12
    assert code.isalnum()
    stored = await client.get_authorization_code(code)
    assert stored.code == code
    assert stored.user_id == "user-1"
    assert stored.client_id == client.client_id
    assert stored.issued_at == clock.now
    assert stored.expires_at == clock.now + AUTH_CODE_TTL_SECONDS


@pytest.mark.asyncio
async def test_two_codes_are_distinct_and_independent(repository) -> None:
    client = await create_demo_client(repository)

    first = await client.issue_authorization_code("user-1")
    second = await client.issue_authorization_code("user-2")

    assert first != second
    assert (await client.get_authorization_code(first)).user_id == "user-1"
    assert (await client.get_authorization_code(second)).user_id == "user-2"


@pytest.mark.asyncio
async def test_code_expires_at_absolute_instant(repository, clock) -> None:
    client = await create_demo_client(repository)
    code = await client.issue_authorization_code("user-1")
    stored = await client.get_authorization_code(code)

    clock.advance(AUTH_CODE_TTL_SECONDS - 1)
    assert stored.is_expired(clock.now) is False

    clock.advance(1)
    assert stored.is_expired(clock.now) is True


@pytest.mark.asyncio
async def test_code_collision_is_retried(repository, monkeypatch, caplog) -> None:
    client = await create_demo_client(repository)
    monkeypatch.setattr(
        secret_generator,
        "generate",
        SequenceGenerator(["CODE00000001", "CODE00000001", "CODE00000002"]),
    )

    first = await client.issue_authorization_code("user-1")
    second = await client.issue_authorization_code("user-2")

    assert first == "CODE00000001"
    assert second == "CODE00000002"
    assert (await client.get_authorization_code(first)).user_id == "user-1"
    assert "collided" in caplog.text


@pytest.mark.asyncio
async def test_code_collision_gives_up(repository, monkeypatch) -> None:
    client = await create_demo_client(repository)
    monkeypatch.setattr(secret_generator, "generate", lambda length: "C" * length)
    await client.issue_authorization_code("user-1")

    with pytest.raises(StorageError) as error:
        await client.issue_authorization_code("user-2")

    assert error.value.code == "authorization_code_collision"
    assert (await client.get_authorization_code("C" * 12)).user_id == "user-1"


@pytest.mark.asyncio
async def test_codes_are_scoped_per_client(repository, monkeypatch) -> None:
    first_client = await create_demo_client(repository, name="First")
    second_client = await create_demo_client(repository, name="Second")
    monkeypatch.setattr(secret_generator, "generate", lambda length: "C" * length)

    first = await first_client.issue_authorization_code("user-1")
    second = await second_client.issue_authorization_code("user-2")

    assert first == second
    assert (await first_client.get_authorization_code(first)).user_id == "user-1"
    assert (await second_client.get_authorization_code(second)).user_id == "user-2"


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["", None, 42])
async def test_issue_code_requires_user(repository, user_id) -> None:
    client = await create_demo_client(repository)

    with pytest.raises(ValidationError):
        await client.issue_authorization_code(user_id)


@pytest.mark.asyncio
async def test_issue_code_on_deleted_client(repository) -> None:
    client = await create_demo_client(repository)
    await client.delete()

    with pytest.raises(StorageError) as error:
        await client.issue_authorization_code("user-1")

    assert error.value.code == "not_found"


@pytest.mark.asyncio
async def test_delete_code_makes_it_unresolvable(repository) -> None:
    client = await create_demo_client(repository)
    code = await client.issue_authorization_code("user-1")

    assert await client.delete_authorization_code(code) is True

    assert await client.get_authorization_code(code) is None
    assert await client.delete_authorization_code(code) is False


@pytest.mark.asyncio
async def test_unknown_code_is_none(repository) -> None:
    client = await create_demo_client(repository)

    assert await client.get_authorization_code("missing") is None
    assert await client.get_authorization_code("") is None
