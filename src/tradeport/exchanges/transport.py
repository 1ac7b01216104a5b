"""HTTP transport and nonce source used by the exchange adapters.

The transport performs exactly one round trip per call and knows nothing about
exchange semantics: any response that arrives, whatever its status, is handed
back as a :class:`WireResponse`. Only failures to obtain a response at all are
raised, as :class:`~tradeport.errors.ExchangeNetworkError`.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Mapping, Protocol

import aiohttp

from ..errors import ExchangeNetworkError

logger = logging.getLogger(__name__)

USER_AGENT = "tradeport/1.0"


@dataclass(frozen=True, slots=True)
class WireResponse:
    """Raw result of one HTTP round trip."""

    status: int
    reason: str
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """One HTTP request per call."""

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> WireResponse:
        ...

    async def close(self) -> None:
        ...


class AiohttpTransport:
    """aiohttp-backed transport with a per-request timeout."""

    def __init__(self, timeout: float, *, proxy: str | None = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.proxy = proxy
        self.session: aiohttp.ClientSession | None = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": USER_AGENT},
            )
        return self.session

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> WireResponse:
        session = await self._ensure_session()
        logger.debug("%s %s", method, url)
        try:
            async with session.request(
                method,
                url,
                headers=dict(headers or {}),
                data=body.encode("utf-8") if body is not None else None,
                proxy=self.proxy,
            ) as resp:
                text = await resp.text()
                return WireResponse(resp.status, resp.reason or "", text)
        except asyncio.TimeoutError as exc:
            logger.warning("Timed out after %ss: %s %s", self.timeout.total, method, url)
            raise ExchangeNetworkError(f"Timed out waiting for {method} {url}") from exc
        except aiohttp.ClientError as exc:
            logger.warning("Network failure on %s %s: %s", method, url, exc)
            raise ExchangeNetworkError(f"Failed to reach exchange for {method} {url}: {exc}") from exc

    async def close(self) -> None:
        if self.session is not None:
            await self.session.close()
            self.session = None


class NonceGenerator:
    """Strictly increasing integer nonces, safe across threads and tasks.

    Seeded from the wall clock in milliseconds so nonces keep increasing across
    process restarts; when called faster than the clock ticks it counts up from
    the last value instead.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._last = max(self._last + 1, int(self._clock() * 1000))
            return self._last
