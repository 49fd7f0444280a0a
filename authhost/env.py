from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .constants import (
    DEFAULT_HTTP_RETRIES,
    DEFAULT_TOKEN_TTL_SECONDS,
    LOGGER,
    STORE_BACKENDS,
    TOKEN_BACKENDS,
)

_HTTP_URL = TypeAdapter(AnyHttpUrl)


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def get_store_backend() -> str:
    return os.getenv("CLIENTAUTH_STORE", "memory").strip().lower() or "memory"


def get_token_backend() -> str:
    return os.getenv("CLIENTAUTH_TOKEN_BACKEND", "signed").strip().lower() or "signed"


def load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / ".env"
    if not env_path.exists():
        return
    load_dotenv(env_path, override=True)


def validate_env() -> None:
    store_backend = get_store_backend()
    if store_backend not in STORE_BACKENDS:
        raise RuntimeError(
            f"CLIENTAUTH_STORE must be one of: {', '.join(sorted(STORE_BACKENDS))}."
        )

    token_backend = get_token_backend()
    if token_backend not in TOKEN_BACKENDS:
        raise RuntimeError(
            f"CLIENTAUTH_TOKEN_BACKEND must be one of: {', '.join(sorted(TOKEN_BACKENDS))}."
        )

    required = {
        "signed": ("CLIENTAUTH_SIGNING_SECRET",),
        "http": ("CLIENTAUTH_TOKEN_URL",),
    }[token_backend]
    missing = [key for key in required if not os.getenv(key, "").strip()]
    if missing:
        raise RuntimeError(
            f"Missing required environment variables for {token_backend} tokens: "
            f"{', '.join(missing)}"
        )

    if token_backend == "http":
        token_url = os.getenv("CLIENTAUTH_TOKEN_URL", "").strip()
        try:
            parsed = _HTTP_URL.validate_python(token_url)
        except PydanticValidationError as error:
            raise RuntimeError("CLIENTAUTH_TOKEN_URL must be a valid URL.") from error
        if parsed.scheme != "https":
            raise RuntimeError(
                "CLIENTAUTH_TOKEN_URL must be an HTTPS URL (for example: "
                "https://tokens.example.com/issue)."
            )

    ttl = get_env_int("CLIENTAUTH_TOKEN_TTL", DEFAULT_TOKEN_TTL_SECONDS)
    if ttl <= 0:
        raise RuntimeError("CLIENTAUTH_TOKEN_TTL must be positive.")
    get_env_int("CLIENTAUTH_HTTP_RETRIES", DEFAULT_HTTP_RETRIES)

    if store_backend == "memory":
        LOGGER.warning("Using the in-memory client store; clients are lost on restart.")


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("CLIENTAUTH_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
        logging.getLogger("clientauth").setLevel(logging.INFO)
    return debug_enabled
