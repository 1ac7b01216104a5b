"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import parse_qsl, urlsplit

import pytest

from tradeport.exchanges.transport import WireResponse

DATA_DIR = Path(__file__).parent / "data"

ITBIT_WALLET_ID = "62827e93-f19b-67bf-8d2f-663fa4f0f1ad"
ITBIT_USER_ID = "5591C5A1-BC4E-4A2B-9A0F-3A2C8E1B1F7C"
KRAKEN_SECRET = "a3Jha2VuLXRlc3Qtc2VjcmV0"  # base64("kraken-test-secret")


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: dict[str, str]
    body: str | None

    @property
    def path(self) -> str:
        return urlsplit(self.url).path

    @property
    def query(self) -> dict[str, str]:
        return dict(parse_qsl(urlsplit(self.url).query))

    @property
    def form(self) -> dict[str, str]:
        return dict(parse_qsl(self.body or ""))

    def json(self):
        return json.loads(self.body)


@dataclass
class FakeTransport:
    """Transport double: answers by (method, path) and records every request."""

    routes: dict[tuple[str, str], WireResponse | Exception] = field(default_factory=dict)
    requests: list[RecordedRequest] = field(default_factory=list)
    closed: bool = False

    def route(self, method: str, path: str, response: WireResponse | Exception) -> None:
        self.routes[(method, path)] = response

    def calls(self, method: str, path: str) -> list[RecordedRequest]:
        return [r for r in self.requests if r.method == method and r.path == path]

    async def request(self, method, url, *, headers=None, body=None):
        recorded = RecordedRequest(method, url, dict(headers or {}), body)
        self.requests.append(recorded)
        # let concurrent callers interleave as they would on a real socket
        await asyncio.sleep(0)
        try:
            response = self.routes[(method, recorded.path)]
        except KeyError:
            raise AssertionError(f"Unexpected request: {method} {url}") from None
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def transport():
    """Recording fake transport."""
    return FakeTransport()


@pytest.fixture
def load_response():
    """Build a WireResponse from a canned exchange payload under tests/data."""

    def _load(exchange: str, name: str, status: int = 200, reason: str = "OK") -> WireResponse:
        body = (DATA_DIR / exchange / name).read_text(encoding="utf-8")
        return WireResponse(status, reason, body)

    return _load


@pytest.fixture
def itbit_settings():
    """Complete itBit settings mapping."""
    return {
        "api_key": "test_api_key_123456",
        "api_secret": "test_api_secret_789012",
        "user_id": ITBIT_USER_ID,
        "buy_fee": "0.5",
        "sell_fee": "0.5",
        "timeout": 30,
    }


@pytest.fixture
def kraken_settings():
    """Complete Kraken settings mapping."""
    return {
        "api_key": "test_kraken_key",
        "api_secret": KRAKEN_SECRET,
        "buy_fee": "0.26",
        "sell_fee": "0.16",
        "timeout": 15,
    }
