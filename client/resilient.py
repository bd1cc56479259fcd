"""HTTP client that queues, retries and classifies every API call.

Each attempt takes a slot in the :class:`RequestQueue`.  A failed attempt
is retried only when its error kind is retryable; before each retry the
client backs off and then checks connectivity, giving up with a
:class:`ConnectivityError` when the server can't be reached.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
import uuid
from typing import Any, Awaitable, Callable, Optional

import httpx

from client.config import ClientSettings
from client.connectivity import ConnectivityProbe
from client.errors import ApiError, ConnectivityError, ErrorKind, classify_exception
from client.queue import RequestQueue
from client.retry import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0  # seconds

_START = "notekeeper.start"


class ResilientClient:
    """Async JSON client for the Notekeeper API."""

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        queue: Optional[RequestQueue] = None,
        retry: Optional[RetryPolicy] = None,
        probe: Optional[ConnectivityProbe] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rand: Callable[[], float] = random.random,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
            event_hooks={"request": [self._on_request], "response": [self._on_response]},
        )
        self.queue = queue or RequestQueue()
        self.retry = retry or RetryPolicy()
        self.probe = probe or ConnectivityProbe(self._http)
        self._sleep = sleep
        self._rand = rand
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: ClientSettings, **kwargs: Any) -> ResilientClient:
        client = cls(
            settings.api_url,
            token=settings.api_token or None,
            timeout=settings.timeout,
            queue=RequestQueue(settings.concurrency),
            retry=RetryPolicy(
                max_attempts=settings.max_attempts,
                base_delay=settings.base_delay,
                max_jitter=settings.max_jitter,
            ),
            **kwargs,
        )
        if "probe" not in kwargs:
            client.probe = ConnectivityProbe(
                client.http, path=settings.probe_path, timeout=settings.probe_timeout
            )
        return client

    @property
    def http(self) -> httpx.AsyncClient:
        return self._http

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """Send a request and return its decoded JSON body (None for 204).

        Raises :class:`ApiError` once the call has failed for good.
        """
        last_error: Optional[ApiError] = None
        for attempt in range(1, self.retry.max_attempts + 1):
            if last_error is not None:
                delay = self.retry.delay(attempt, self._rand)
                logger.info(
                    "Retrying %s %s attempt=%d/%d delay=%.2fs kind=%s",
                    method, path, attempt, self.retry.max_attempts, delay, last_error.kind.value,
                )
                await self._sleep(delay)
                status = await self.probe.check()
                if not status.ok:
                    logger.warning(
                        "Giving up %s %s online=%s reachable=%s",
                        method, path, status.is_online, status.is_server_reachable,
                    )
                    raise ConnectivityError(status, cause=last_error)

            try:
                response = await self.queue.run(
                    lambda: self._send(method, path, json=json, params=params, timeout=timeout)
                )
            except ApiError as e:
                if not self.retry.is_retryable(e) or attempt == self.retry.max_attempts:
                    raise
                last_error = e
                continue
            return self._decode(response)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json: Any,
        params: Optional[dict[str, Any]],
        timeout: Optional[float],
    ) -> httpx.Response:
        extra: dict[str, Any] = {"timeout": timeout} if timeout is not None else {}
        try:
            response = await self._http.request(method, path, json=json, params=params, **extra)
        except asyncio.CancelledError:
            logger.info("API request cancelled %s %s", method, path)
            raise
        except httpx.HTTPError as e:
            kind = classify_exception(e)
            request_id = _request_id(e)
            logger.error(
                "API error kind=%s %s %s request_id=%s error=%s",
                kind.value, method, path, request_id, e,
            )
            raise ApiError(kind, request_id=request_id) from e

        if response.status_code >= 400:
            error = ApiError.from_response(response)
            logger.error(
                "API error kind=%s %s %s status=%d request_id=%s detail=%s",
                error.kind.value, method, path, response.status_code,
                error.request_id, error.detail,
            )
            raise error
        return response

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                ErrorKind.INVALID_RESPONSE,
                status=response.status_code,
                request_id=response.request.headers.get("X-Request-ID"),
            ) from e

    async def _on_request(self, request: httpx.Request) -> None:
        request.headers["X-Request-ID"] = str(uuid.uuid4())
        request.extensions[_START] = self._clock()
        logger.info(
            "API request %s %s request_id=%s",
            request.method, request.url, request.headers["X-Request-ID"],
        )

    async def _on_response(self, response: httpx.Response) -> None:
        request = response.request
        start = request.extensions.get(_START)
        duration_ms = (self._clock() - start) * 1000 if start is not None else 0.0
        logger.info(
            "API response %s %s status=%d duration=%.0fms request_id=%s",
            request.method, request.url, response.status_code, duration_ms,
            request.headers.get("X-Request-ID"),
        )


def _request_id(exc: httpx.HTTPError) -> Optional[str]:
    try:
        return exc.request.headers.get("X-Request-ID")
    except RuntimeError:
        # Raised by httpx when the exception carries no request.
        return None
