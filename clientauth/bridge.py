from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import httpx

from clientauth import signed_token
from clientauth.constants import LOGGER
from clientauth.http import RetryTransport
from clientauth.models import AccessToken

if TYPE_CHECKING:
    from clientauth.client import Client


class TokenIssuer(ABC):
    """Hands a validated (client, user) pair to the access-token subsystem."""

    @abstractmethod
    async def issue_token(self, client: "Client", user_id: str) -> AccessToken:
        raise NotImplementedError


class SignedTokenIssuer(TokenIssuer):
    def __init__(
        self,
        signing_secret: str,
        *,
        ttl_seconds: int = 3600,
        clock=time.time,
    ) -> None:
        if not signing_secret:
            raise ValueError("signing_secret is required.")
        self._key = signed_token.derive_key(signing_secret)
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    async def issue_token(self, client: "Client", user_id: str) -> AccessToken:
        now = self._clock()
        expires_at = now + self.ttl_seconds
        token = signed_token.encode(
            {
                "typ": "access",
                "cid": client.client_id,
                "uid": user_id,
                "iat": now,
                "exp": expires_at,
            },
            self._key,
        )
        LOGGER.info(
            "Issued signed access token client_id=%s user_id=%s",
            client.client_id,
            user_id,
        )
        return AccessToken(
            token=token,
            client_id=client.client_id,
            user_id=user_id,
            expires_at=expires_at,
        )

    def verify(self, token: str) -> dict:
        payload = signed_token.decode(token, self._key)
        if payload.get("typ") != "access":
            raise RuntimeError("Not an access token.")
        if payload.get("exp", 0) <= self._clock():
            raise RuntimeError("Access token expired.")
        return payload


class HttpTokenIssuer(TokenIssuer):
    """Delegates token creation to an external token service over HTTP."""

    def __init__(
        self,
        token_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int = 2,
        timeout: float = 10.0,
        sleep=asyncio.sleep,
    ) -> None:
        self.token_url = token_url
        self._client = client
        self._transport = transport
        self._max_retries = max_retries
        self._timeout = timeout
        self._sleep = sleep

    def _build_client(self) -> httpx.AsyncClient:
        retry_transport = RetryTransport(
            self._transport or httpx.AsyncHTTPTransport(),
            max_retries=self._max_retries,
            sleep=self._sleep,
        )
        return httpx.AsyncClient(transport=retry_transport, timeout=self._timeout)

    async def issue_token(self, client: "Client", user_id: str) -> AccessToken:
        own_client = self._client is None
        http_client = self._client or self._build_client()

        try:
            response = await http_client.post(
                self.token_url,
                data={"client_id": client.client_id, "user_id": user_id},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as error:
            detail = error.response.text
            raise RuntimeError(
                f"Token service failed with status {error.response.status_code}: {detail}"
            ) from error
        finally:
            if own_client:
                await http_client.aclose()

        token = AccessToken.from_payload(
            response.json(),
            client_id=client.client_id,
            user_id=user_id,
        )
        LOGGER.info(
            "Issued remote access token client_id=%s user_id=%s",
            client.client_id,
            user_id,
        )
        return token
