from __future__ import annotations

import os

import uvicorn

from authhost.app import build_store, build_token_issuer, create_app
from authhost.constants import APP_VERSION, LOGGER
from authhost.env import is_truthy, load_env, setup_logging, validate_env

__all__ = [
    "APP_VERSION",
    "LOGGER",
    "build_store",
    "build_token_issuer",
    "create_app",
    "is_truthy",
    "load_env",
    "main",
    "setup_logging",
    "validate_env",
]


def main() -> None:
    host = os.getenv("CLIENTAUTH_HOST", "127.0.0.1")
    port = int(os.getenv("CLIENTAUTH_PORT", "8000"))
    app = create_app()
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
