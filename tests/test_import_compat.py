import server


EXPECTED_SERVER_EXPORTS = (
    "APP_VERSION",
    "LOGGER",
    "build_store",
    "build_token_issuer",
    "create_app",
    "is_truthy",
    "load_env",
    "setup_logging",
    "validate_env",
    "main",
)


def test_server_export_surface() -> None:
    missing = [name for name in EXPECTED_SERVER_EXPORTS if not hasattr(server, name)]
    assert missing == []
