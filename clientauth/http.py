from __future__ import annotations

import asyncio
import logging

import httpx

from clientauth.constants import LOGGER

# Statuses where the token service did not act on the request, so a token
# POST can be replayed without minting twice. A plain 500 may have.
THROTTLED_STATUS = 429
UNAVAILABLE_STATUSES = frozenset({502, 503, 504})


def _retry_after_seconds(header: str | None) -> int | None:
    if header is None:
        return None
    try:
        return max(0, int(header.strip()))
    except ValueError:
        return None


class RetryTransport(httpx.AsyncBaseTransport):
    """Replay token requests the service turned away unprocessed.

    429 is retried once, waiting for Retry-After (default one second).
    502, 503 and 504 are retried up to ``max_retries`` times with exponential
    backoff, unless a Retry-After header asks for a specific wait.
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        max_retries: int = 2,
        sleep=asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._max_retries = max(0, max_retries)
        self._sleep = sleep
        self._logger = logger or LOGGER

    def _wait_for(self, response: httpx.Response, attempt: int) -> int | None:
        status = response.status_code
        if status == THROTTLED_STATUS:
            if attempt >= min(self._max_retries, 1):
                return None
            wait = _retry_after_seconds(response.headers.get("retry-after"))
            return 1 if wait is None else wait

        if status in UNAVAILABLE_STATUSES and attempt < self._max_retries:
            wait = _retry_after_seconds(response.headers.get("retry-after"))
            return 2**attempt if wait is None else wait
        return None

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        body = request.content
        attempt = 0

        while True:
            response = await self._transport.handle_async_request(
                httpx.Request(
                    method=request.method,
                    url=request.url,
                    headers=request.headers,
                    content=body,
                    extensions=request.extensions,
                )
            )

            wait_seconds = self._wait_for(response, attempt)
            if wait_seconds is None:
                return response

            self._logger.warning(
                "Token service answered %s; retrying in %ss (%s %s)",
                response.status_code,
                wait_seconds,
                request.method,
                request.url,
            )
            await response.aclose()
            await self._sleep(wait_seconds)
            attempt += 1

    async def aclose(self) -> None:
        await self._transport.aclose()
