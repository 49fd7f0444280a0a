from starlette.testclient import TestClient

from authhost import app as app_module
from clientauth.repository import ClientRepository
from clientauth.store import FileStore, MemoryStore


def _build_health_client(monkeypatch, **env_values):
    monkeypatch.setattr(app_module, "load_env", lambda: None)
    monkeypatch.setattr(app_module, "setup_logging", lambda: False)
    monkeypatch.delenv("CLIENTAUTH_STORE", raising=False)
    monkeypatch.delenv("CLIENTAUTH_TOKEN_BACKEND", raising=False)
    monkeypatch.setenv("CLIENTAUTH_SIGNING_SECRET", "signing-secret")
    for key, value in env_values.items():
        monkeypatch.setenv(key, value)
    app = app_module.create_app()
    return app, TestClient(app)


def test_health_returns_200(monkeypatch) -> None:
    _, client = _build_health_client(monkeypatch)

    response = client.get("/health")

    assert response.status_code == 200


def test_health_response_format(monkeypatch) -> None:
    _, client = _build_health_client(monkeypatch)

    payload = client.get("/health").json()

    assert payload == {
        "status": "ok",
        "version": "0.1.0",
        "store": "memory",
        "token_backend": "signed",
    }


def test_app_exposes_repository_with_registered_schema(monkeypatch) -> None:
    app, _ = _build_health_client(monkeypatch)

    repository = app.state.repository

    assert isinstance(repository, ClientRepository)
    assert isinstance(repository.store, MemoryStore)
    assert repository.token_issuer is not None


def test_app_uses_file_store(monkeypatch, tmp_path) -> None:
    path = tmp_path / "clients.json"
    app, client = _build_health_client(
        monkeypatch,
        CLIENTAUTH_STORE="file",
        CLIENTAUTH_STORE_PATH=str(path),
    )

    assert isinstance(app.state.repository.store, FileStore)
    assert client.get("/health").json()["store"] == "file"
