import server


class _RunRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def __call__(self, app, **kwargs) -> None:
        self.calls.append((app, kwargs))


def test_main_uses_local_defaults(monkeypatch) -> None:
    app = object()
    recorder = _RunRecorder()
    monkeypatch.setattr(server, "create_app", lambda: app)
    monkeypatch.setattr(server.uvicorn, "run", recorder)
    monkeypatch.delenv("CLIENTAUTH_HOST", raising=False)
    monkeypatch.delenv("CLIENTAUTH_PORT", raising=False)

    server.main()

    assert recorder.calls == [(app, {"host": "127.0.0.1", "port": 8000})]


def test_main_reads_host_and_port_from_env(monkeypatch) -> None:
    app = object()
    recorder = _RunRecorder()
    monkeypatch.setattr(server, "create_app", lambda: app)
    monkeypatch.setattr(server.uvicorn, "run", recorder)
    monkeypatch.setenv("CLIENTAUTH_HOST", "0.0.0.0")
    monkeypatch.setenv("CLIENTAUTH_PORT", "9100")

    server.main()

    assert recorder.calls == [(app, {"host": "0.0.0.0", "port": 9100})]
