"""Tests for the aiohttp transport and the nonce source."""

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from tradeport.errors import ErrorKind, ExchangeNetworkError
from tradeport.exchanges.transport import AiohttpTransport, NonceGenerator, WireResponse


def create_async_response(status=200, text="", reason="OK"):
    """Create a mock async response."""
    resp = AsyncMock()
    resp.status = status
    resp.reason = reason
    resp.text = AsyncMock(return_value=text)
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=None)
    return resp


class TestAiohttpTransport:
    """Tests for AiohttpTransport."""

    @pytest.mark.asyncio
    async def test_returns_any_received_status(self):
        """Error statuses are data, not exceptions, at this layer."""
        transport = AiohttpTransport(5)
        mock_session = MagicMock()
        mock_session.request = MagicMock(return_value=create_async_response(404, '{"code": 1}', "Not Found"))
        transport._ensure_session = AsyncMock(return_value=mock_session)

        response = await transport.request("GET", "https://api.example.com/x")

        assert response == WireResponse(404, "Not Found", '{"code": 1}')
        assert response.ok is False

    @pytest.mark.asyncio
    async def test_sends_body_and_headers(self):
        transport = AiohttpTransport(5, proxy="http://127.0.0.1:8080")
        mock_session = MagicMock()
        mock_session.request = MagicMock(return_value=create_async_response(201, "{}"))
        transport._ensure_session = AsyncMock(return_value=mock_session)

        response = await transport.request(
            "POST", "https://api.example.com/orders", headers={"X-Test": "1"}, body='{"a": 1}'
        )

        assert response.ok is True
        args, kwargs = mock_session.request.call_args
        assert args == ("POST", "https://api.example.com/orders")
        assert kwargs["headers"] == {"X-Test": "1"}
        assert kwargs["data"] == b'{"a": 1}'
        assert kwargs["proxy"] == "http://127.0.0.1:8080"

    @pytest.mark.asyncio
    async def test_timeout_is_transient(self):
        transport = AiohttpTransport(0.5)
        mock_session = MagicMock()
        mock_session.request = MagicMock(side_effect=asyncio.TimeoutError())
        transport._ensure_session = AsyncMock(return_value=mock_session)

        with pytest.raises(ExchangeNetworkError) as exc_info:
            await transport.request("GET", "https://api.example.com/x")

        assert exc_info.value.kind is ErrorKind.TRANSIENT
        assert isinstance(exc_info.value.__cause__, asyncio.TimeoutError)

    @pytest.mark.asyncio
    async def test_connection_failure_is_transient(self):
        transport = AiohttpTransport(5)
        mock_session = MagicMock()
        mock_session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("connection refused"))
        transport._ensure_session = AsyncMock(return_value=mock_session)

        with pytest.raises(ExchangeNetworkError, match="connection refused"):
            await transport.request("GET", "https://api.example.com/x")

    @pytest.mark.asyncio
    async def test_session_created_lazily_and_closed(self):
        transport = AiohttpTransport(7)
        assert transport.session is None

        session = await transport._ensure_session()
        assert session is await transport._ensure_session()
        assert session.timeout.total == 7

        await transport.close()
        assert transport.session is None
        assert session.closed

    @pytest.mark.asyncio
    async def test_close_without_session(self):
        transport = AiohttpTransport(5)
        await transport.close()
        assert transport.session is None


class TestNonceGenerator:
    """Tests for NonceGenerator."""

    def test_seeded_from_clock_in_milliseconds(self):
        nonce = NonceGenerator(clock=lambda: 1443723066.5)
        assert nonce.next() == 1443723066500

    def test_strictly_increasing_when_clock_stalls(self):
        nonce = NonceGenerator(clock=lambda: 1000.0)
        assert [nonce.next() for _ in range(3)] == [1000000, 1000001, 1000002]

    def test_follows_clock_forward(self):
        ticks = iter([1000.0, 1000.0, 1005.0])
        nonce = NonceGenerator(clock=lambda: next(ticks))
        assert [nonce.next() for _ in range(3)] == [1000000, 1000001, 1005000]

    def test_never_goes_backwards(self):
        ticks = iter([1005.0, 1000.0])
        nonce = NonceGenerator(clock=lambda: next(ticks))
        first = nonce.next()
        assert nonce.next() == first + 1

    def test_unique_across_threads(self):
        nonce = NonceGenerator(clock=lambda: 1000.0)
        results = []
        lock = threading.Lock()

        def worker():
            values = [nonce.next() for _ in range(200)]
            with lock:
                results.extend(values)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == len(set(results)) == 1600
