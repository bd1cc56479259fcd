"""Online/offline and server reachability checks.

The probe never raises: every failure is folded into the returned
:class:`ConnectionStatus`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Awaitable, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_PROBE_PATH = "/health"
DEFAULT_PROBE_TIMEOUT = 3.0  # seconds

OnlineCheck = Callable[[], Awaitable[bool]]


@dataclass(frozen=True)
class ConnectionStatus:
    is_online: bool
    is_server_reachable: bool
    latency_ms: Optional[float] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def ok(self) -> bool:
        return self.is_online and self.is_server_reachable


async def host_resolves(host: str) -> bool:
    """True when *host* resolves, which is as close to "online" as we can tell."""
    if not host:
        return True
    loop = asyncio.get_running_loop()
    try:
        await loop.getaddrinfo(host, None)
    except OSError:
        return False
    return True


class ConnectivityProbe:
    """Checks that the client is online and the API server answers."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        path: str = DEFAULT_PROBE_PATH,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        is_online: Optional[OnlineCheck] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._http = http
        self.path = path
        self.timeout = timeout
        self._is_online = is_online or (lambda: host_resolves(http.base_url.host))
        self._clock = clock

    async def check(self) -> ConnectionStatus:
        try:
            online = await self._is_online()
        except Exception as e:
            logger.warning("Online check failed error=%s", e)
            online = False
        if not online:
            logger.warning("Connectivity check: offline")
            return ConnectionStatus(is_online=False, is_server_reachable=False)

        start = self._clock()
        try:
            resp = await self._http.head(self.path, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning("Server unreachable path=%s error=%s", self.path, e)
            return ConnectionStatus(is_online=True, is_server_reachable=False)

        # Any answer below 500 means the server itself is up.
        reachable = resp.status_code < 500
        latency_ms = (self._clock() - start) * 1000
        if not reachable:
            logger.warning("Server unhealthy path=%s status=%d", self.path, resp.status_code)
        return ConnectionStatus(
            is_online=True,
            is_server_reachable=reachable,
            latency_ms=latency_ms if reachable else None,
        )
