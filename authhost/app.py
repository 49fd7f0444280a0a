from __future__ import annotations

import os

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from clientauth.bridge import HttpTokenIssuer, SignedTokenIssuer, TokenIssuer
from clientauth.repository import ClientRepository
from clientauth.schema import register_client_type
from clientauth.store import FileStore, MemoryStore, Store

from .constants import (
    APP_VERSION,
    DEFAULT_HTTP_RETRIES,
    DEFAULT_STORE_PATH,
    DEFAULT_TOKEN_TTL_SECONDS,
    LOGGER,
)
from .env import (
    get_env_int,
    get_store_backend,
    get_token_backend,
    load_env,
    setup_logging,
    validate_env,
)


def build_store() -> Store:
    if get_store_backend() == "file":
        path = os.getenv("CLIENTAUTH_STORE_PATH", "").strip() or DEFAULT_STORE_PATH
        LOGGER.info("Using file client store at %s", path)
        return FileStore(path)
    return MemoryStore()


def build_token_issuer() -> TokenIssuer:
    if get_token_backend() == "http":
        token_url = os.getenv("CLIENTAUTH_TOKEN_URL", "").strip()
        LOGGER.info("Delegating access tokens to %s", token_url)
        return HttpTokenIssuer(
            token_url,
            max_retries=get_env_int("CLIENTAUTH_HTTP_RETRIES", DEFAULT_HTTP_RETRIES),
        )
    return SignedTokenIssuer(
        os.getenv("CLIENTAUTH_SIGNING_SECRET", "").strip(),
        ttl_seconds=get_env_int("CLIENTAUTH_TOKEN_TTL", DEFAULT_TOKEN_TTL_SECONDS),
    )


def create_app() -> Starlette:
    load_env()
    setup_logging()
    validate_env()

    store = build_store()
    register_client_type(store)
    repository = ClientRepository(store, token_issuer=build_token_issuer())

    store_backend = get_store_backend()
    token_backend = get_token_backend()

    async def health_route(request: Request) -> Response:
        del request
        return JSONResponse(
            {
                "status": "ok",
                "version": APP_VERSION,
                "store": store_backend,
                "token_backend": token_backend,
            }
        )

    app = Starlette(routes=[Route("/health", health_route, methods=["GET"])])
    app.state.repository = repository
    LOGGER.info(
        "clientauth %s ready (store=%s tokens=%s)",
        APP_VERSION,
        store_backend,
        token_backend,
    )
    return app
