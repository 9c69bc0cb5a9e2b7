"""Bounded-concurrency GitHub API client.

Every request goes through a fixed number of slots. Callers beyond the limit
wait in a FIFO queue and are admitted strictly in arrival order.

The REST statistics endpoints answer ``202 Accepted`` while GitHub computes
the data in the background; ``query_rest`` polls those with backoff and gives
its slot back while waiting.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, NamedTuple

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "badge-stats"


class _RestResponse(NamedTuple):
    status: int
    payload: Any
    retry_after: str | None


class GitHubClient:
    """GitHub GraphQL and REST access with a bounded number of in-flight requests.

    Network failures never escape this class: ``query`` and ``query_rest``
    return an empty payload when no data could be obtained.
    """

    BASE_URL = "https://api.github.com"
    GRAPHQL_URL = "https://api.github.com/graphql"
    MAX_ATTEMPTS = 60
    BACKOFF_START = 2.0
    BACKOFF_FACTOR = 1.5
    BACKOFF_MAX = 10.0
    # The resource will not appear by asking again.
    TERMINAL_STATUSES = frozenset({400, 401, 403, 404, 410, 422})

    def __init__(
        self,
        username: str,
        access_token: str,
        max_connections: int = 10,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")
        self.username = username
        self._access_token = access_token
        self._capacity = max_connections
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._timeout = timeout
        self._transport = transport
        self._sleep = sleep
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> GitHubClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
        )

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._make_client()
        return self._client

    # -- admission -----------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active(self) -> int:
        return self._active

    @property
    def waiting(self) -> int:
        return sum(1 for w in self._waiters if not w.done())

    async def acquire(self) -> None:
        """Wait until a slot is free and take it."""
        if self._active < self._capacity and not self._waiters:
            self._active += 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Admitted just before being cancelled.
                self.release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def release(self) -> None:
        """Free a slot and hand it to the longest-waiting caller, if any."""
        if self._active <= 0:
            raise RuntimeError("release() called without a matching acquire()")
        self._active -= 1
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._active += 1
            waiter.set_result(None)
            break

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        await self.acquire()
        try:
            yield
        finally:
            self.release()

    # -- GraphQL -------------------------------------------------------------

    async def _post_graphql(self, client: httpx.AsyncClient, query_text: str) -> dict[str, Any]:
        response = await client.post(self.GRAPHQL_URL, json={"query": query_text})
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"unexpected GraphQL payload type {type(payload).__name__}")
        errors = payload.get("errors")
        if errors:
            messages = ", ".join(
                str(err.get("message")) for err in errors if isinstance(err, dict)
            )
            logger.warning("GraphQL query returned errors: %s", messages or errors)
        return payload

    async def query(self, query_text: str) -> dict[str, Any]:
        """Run a GraphQL query; returns ``{}`` when no data could be fetched."""
        async with self.slot():
            try:
                return await self._post_graphql(await self._ensure_client(), query_text)
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("GraphQL query failed: %s", exc)

            try:
                async with self._make_client() as fallback:
                    return await self._post_graphql(fallback, query_text)
            except (httpx.HTTPError, ValueError) as exc:
                logger.error("GraphQL query fallback failed: %s", exc)
                return {}

    # -- REST ----------------------------------------------------------------

    async def _get_rest(
        self, client: httpx.AsyncClient, url: str, params: dict[str, Any] | None
    ) -> _RestResponse:
        response = await client.get(
            url,
            params=params or {},
            headers={"Authorization": f"token {self._access_token}"},
        )
        status = response.status_code
        retry_after = response.headers.get("Retry-After")
        if status == 202 or status in self.TERMINAL_STATUSES:
            return _RestResponse(status, None, retry_after)
        response.raise_for_status()
        payload = response.json() if response.content else {}
        return _RestResponse(status, payload, retry_after)

    def backoff_delay(self, attempt: int, retry_after: str | None = None) -> float:
        """Seconds to wait before the attempt following ``attempt`` (0-based)."""
        if retry_after:
            try:
                seconds = float(retry_after)
            except ValueError:
                seconds = -1.0
            if seconds >= 0:
                return seconds
        return min(self.BACKOFF_START * self.BACKOFF_FACTOR**attempt, self.BACKOFF_MAX)

    async def query_rest(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a REST resource, polling while GitHub is still computing it.

        Returns the decoded JSON body, or ``{}`` when the resource is
        unavailable or still not ready after ``MAX_ATTEMPTS`` attempts.
        """
        url = f"{self.BASE_URL}/{path.lstrip('/')}"
        for attempt in range(self.MAX_ATTEMPTS):
            result: _RestResponse | None
            async with self.slot():
                try:
                    result = await self._get_rest(await self._ensure_client(), url, params)
                except (httpx.HTTPError, ValueError) as exc:
                    logger.error("REST query failed for %s: %s", path, exc)
                    try:
                        async with self._make_client() as fallback:
                            result = await self._get_rest(fallback, url, params)
                    except (httpx.HTTPError, ValueError) as fallback_exc:
                        logger.error("REST query fallback failed for %s: %s", path, fallback_exc)
                        result = None

            if result is not None and result.status in self.TERMINAL_STATUSES:
                logger.warning("GitHub returned HTTP %d for %s; skipping it", result.status, path)
                return {}
            if result is not None and result.status != 202:
                return result.payload

            if attempt == self.MAX_ATTEMPTS - 1:
                break
            delay = self.backoff_delay(attempt, result.retry_after if result else None)
            if attempt < 5 or attempt % 10 == 0:
                logger.info(
                    "GitHub is computing statistics for %s (attempt %d/%d). Waiting %.0fs...",
                    path,
                    attempt + 1,
                    self.MAX_ATTEMPTS,
                    delay,
                )
            await self._sleep(delay)

        logger.warning(
            "GitHub did not return data for %s after %d attempts. "
            "This is normal for repositories with complex statistics.",
            path,
            self.MAX_ATTEMPTS,
        )
        return {}
