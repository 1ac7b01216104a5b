"""Integration tests for exchange adapters."""

import asyncio
from decimal import Decimal

import pytest

from tradeport.errors import ErrorKind, ExchangeAdapterError, ExchangeNetworkError
from tradeport.exchanges import OrderType, create_exchange_adapter
from tradeport.exchanges.transport import WireResponse

ITBIT_ORDERS = "/v1/wallets/62827e93-f19b-67bf-8d2f-663fa4f0f1ad/orders"


class TestExchangeIntegration:
    """Integration tests for exchange adapters."""

    @pytest.mark.asyncio
    async def test_complete_itbit_workflow(self, itbit_settings, transport, load_response):
        """Test complete itBit workflow: balance -> order -> open orders -> cancel."""
        adapter = create_exchange_adapter("itbit", itbit_settings, transport=transport)

        transport.route("GET", "/v1/wallets", load_response("itbit", "wallets.json"))
        transport.route("POST", ITBIT_ORDERS, load_response("itbit", "new_order_buy.json", status=201))
        transport.route("GET", ITBIT_ORDERS, load_response("itbit", "orders.json"))
        transport.route(
            "DELETE", f"{ITBIT_ORDERS}/8f4b7b9e-cf3a-4b1d-9d70-f0a0a5e6c2d9", WireResponse(202, "Accepted", "")
        )

        balance_info = await adapter.get_balance_info()
        assert balance_info.balances_available["USD"] == Decimal("1000.99")

        order_id = await adapter.create_order("XBTUSD", OrderType.BUY, Decimal("0.02"), Decimal("200.18"))
        assert order_id == "8a9ac32f-c2bd-4316-87d8-4219dc5e8041"

        open_orders = await adapter.get_your_open_orders("XBTUSD")
        assert len(open_orders) == 2

        assert await adapter.cancel_order(open_orders[1].id, "XBTUSD") is True

        # the balance call resolved the wallet, nothing else looked it up
        assert len(transport.calls("GET", "/v1/wallets")) == 1
        assert [r.method for r in transport.requests] == ["GET", "POST", "GET", "DELETE"]

        await adapter.close()
        assert transport.closed is True

    @pytest.mark.asyncio
    async def test_complete_kraken_workflow(self, kraken_settings, transport, load_response):
        """Test complete Kraken workflow: ticker -> order -> cancel -> balances."""
        adapter = create_exchange_adapter("kraken", kraken_settings, transport=transport)

        transport.route("GET", "/0/public/Ticker", load_response("kraken", "ticker.json"))
        transport.route("POST", "/0/private/AddOrder", load_response("kraken", "add_order.json"))
        transport.route("POST", "/0/private/CancelOrder", load_response("kraken", "cancel_order.json"))
        transport.route("POST", "/0/private/BalanceEx", load_response("kraken", "balance_ex.json"))

        price = await adapter.get_latest_market_price("XBTUSD")
        txid = await adapter.create_order("XBTUSD", OrderType.SELL, Decimal("0.5"), price * 2)
        assert await adapter.cancel_order(txid) is True

        balance_info = await adapter.get_balance_info()
        assert balance_info.balances_on_hold["ZUSD"] == Decimal("8249.76")

        nonces = [int(r.form["nonce"]) for r in transport.requests if r.method == "POST"]
        assert nonces == sorted(nonces) and len(set(nonces)) == 3

        await adapter.close()

    @pytest.mark.asyncio
    async def test_adapters_share_contract(self, itbit_settings, kraken_settings, transport, load_response):
        """The same caller code drives both adapters."""
        transport.route("GET", "/v1/markets/XBTUSD/order_book", load_response("itbit", "order_book.json"))
        transport.route("GET", "/0/public/Depth", load_response("kraken", "depth.json"))

        adapters = [
            create_exchange_adapter("itbit", itbit_settings, transport=transport),
            create_exchange_adapter("kraken", kraken_settings, transport=transport),
        ]

        books = await asyncio.gather(*(adapter.get_market_orders("XBTUSD") for adapter in adapters))

        for book in books:
            assert book.market_id == "XBTUSD"
            assert book.buy_orders[0].price < book.sell_orders[0].price
            assert all(level.type is OrderType.BUY for level in book.buy_orders)
            assert all(level.type is OrderType.SELL for level in book.sell_orders)

    @pytest.mark.asyncio
    async def test_caller_branches_on_error_kind(self, itbit_settings, transport, load_response):
        """A polling loop skips transient failures and stops on permanent ones."""
        adapter = create_exchange_adapter("itbit", itbit_settings, transport=transport)
        outcomes = []

        for response in (
            ExchangeNetworkError("Timed out"),
            load_response("itbit", "ticker.json"),
            WireResponse(500, "Internal Server Error", "{}"),
        ):
            transport.route("GET", "/v1/markets/XBTUSD/ticker", response)
            try:
                outcomes.append(await adapter.get_latest_market_price("XBTUSD"))
            except ExchangeAdapterError as exc:
                outcomes.append(exc.kind)

        assert outcomes == [ErrorKind.TRANSIENT, Decimal("237.70000000"), ErrorKind.PERMANENT]
