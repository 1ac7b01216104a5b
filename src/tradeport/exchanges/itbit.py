"""itBit exchange adapter (REST API v1)."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac
import json
import logging
import time
from decimal import Decimal
from typing import Any, Mapping

from ..errors import TradingApiError
from .base import BaseExchangeAdapter, exchange_operation
from .decoding import decode_response
from .normalization import format_decimal, parse_timestamp, split_market_id, to_decimal
from .protocol import BalanceInfo, MarketOrder, MarketOrderBook, NewOrderRequest, OpenOrder, OrderType
from .schemas.itbit import (
    ItBitNewOrderSchema,
    ItBitOrderBookSchema,
    ItBitOrderSchema,
    ItBitTickerSchema,
    ItBitWalletSchema,
)
from .transport import WireResponse

logger = logging.getLogger(__name__)


class ItBitExchangeAdapter(BaseExchangeAdapter):
    """itBit exchange adapter.

    Orders, balances and open orders live under a wallet. The wallet id is taken
    from settings when configured, otherwise it is looked up once from the
    user's wallet list and kept for the adapter's lifetime.
    """

    name = "itbit"
    IMPL_NAME = "itBit REST API v1"
    BASE_URL = "https://api.itbit.com/v1/"
    REQUIRED_SETTINGS = ("user_id",)

    AMOUNT_DECIMALS = 4
    PRICE_DECIMALS = 2

    def __init__(self, settings, **kwargs: Any):
        super().__init__(settings, **kwargs)
        self._wallet_id: str | None = self.settings.wallet_id
        self._wallet_lock = asyncio.Lock()

    # == Transport ==============================================================

    def _sign_request(self, method: str, url: str, body: str, nonce: int, timestamp: int) -> str:
        """Generate itBit signature.

        base64(HMAC-SHA512(secret, url + SHA256(nonce + json([method, url, body, nonce, timestamp]))))
        """
        message = json.dumps([method, url, body, str(nonce), str(timestamp)], separators=(",", ":"))
        digest = hashlib.sha256((str(nonce) + message).encode("utf-8")).digest()
        signature = hmac.new(
            self.api_secret.encode("utf-8"),
            url.encode("utf-8") + digest,
            hashlib.sha512,
        ).digest()
        return base64.b64encode(signature).decode()

    async def send_public_request(self, path: str, params: Mapping[str, Any] | None = None) -> WireResponse:
        return await self.transport.request(
            "GET",
            self.build_url(path, params),
            headers={"Accept": "application/json"},
        )

    async def send_authenticated_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> WireResponse:
        # POST/PUT carry params as a JSON body; GET/DELETE put them in the signed url
        if method in ("POST", "PUT"):
            url = self.build_url(path)
            body = json.dumps(dict(params or {}))
        else:
            url = self.build_url(path, params)
            body = ""

        nonce = self.nonce.next()
        timestamp = int(time.time() * 1000)
        signature = self._sign_request(method, url, body, nonce, timestamp)

        headers = {
            "Authorization": f"{self.api_key}:{signature}",
            "X-Auth-Timestamp": str(timestamp),
            "X-Auth-Nonce": str(nonce),
            "Content-Type": "application/json",
        }
        return await self.transport.request(method, url, headers=headers, body=body or None)

    # == Wallet =================================================================

    async def _fetch_wallets(self) -> list[ItBitWalletSchema]:
        response = await self.send_authenticated_request(
            "GET", "wallets", {"userId": self.settings.user_id}
        )
        wallets = decode_response(response, list[ItBitWalletSchema], 200, operation="get wallets")
        if not wallets:
            raise TradingApiError(f"No wallets found for itBit user {self.settings.user_id}")
        return wallets

    def _select_wallet(self, wallets: list[ItBitWalletSchema]) -> ItBitWalletSchema:
        wanted = self._wallet_id
        if wanted is None:
            return wallets[0]
        for wallet in wallets:
            if wallet.id == wanted:
                return wallet
        raise TradingApiError(f"Wallet {wanted} not found for itBit user {self.settings.user_id}")

    def _remember_wallet_id(self, wallet_id: str) -> None:
        if self._wallet_id is None:
            self._wallet_id = wallet_id
            logger.info("Using itBit wallet %s", wallet_id)

    async def _get_wallet_id(self) -> str:
        if self._wallet_id is not None:
            return self._wallet_id
        async with self._wallet_lock:
            if self._wallet_id is None:
                wallets = await self._fetch_wallets()
                self._remember_wallet_id(wallets[0].id)
            return self._wallet_id

    # == Trading operations =====================================================

    @exchange_operation
    async def create_order(
        self,
        market_id: str,
        order_type: OrderType,
        quantity: Decimal,
        price: Decimal,
    ) -> str:
        """Place a limit order; returns itBit's order id."""
        request = NewOrderRequest(market_id, order_type, to_decimal(quantity), to_decimal(price))
        currency, _ = split_market_id(market_id)

        amount = format_decimal(request.quantity, self.AMOUNT_DECIMALS)
        limit_price = format_decimal(request.price, self.PRICE_DECIMALS)
        if Decimal(amount) == 0 or Decimal(limit_price) == 0:
            raise ValueError(
                f"Order amount {request.quantity} / price {request.price} rounds to zero at "
                f"{self.AMOUNT_DECIMALS}/{self.PRICE_DECIMALS} decimals"
            )

        params = {
            "side": request.order_type.value,
            "type": "limit",
            "currency": currency,
            "amount": amount,
            "price": limit_price,
            "instrument": market_id,
        }

        wallet_id = await self._get_wallet_id()
        response = await self.send_authenticated_request("POST", f"wallets/{wallet_id}/orders", params)
        order = decode_response(response, ItBitNewOrderSchema, 201, operation="create_order")

        logger.info(
            "Placed %s order %s: %s %s @ %s", request.order_type.value, order.id, amount, market_id, limit_price
        )
        return order.id

    @exchange_operation
    async def cancel_order(self, order_id: str, market_id: str | None = None) -> bool:
        """Cancel an order. itBit does not need the market id."""
        wallet_id = await self._get_wallet_id()
        response = await self.send_authenticated_request("DELETE", f"wallets/{wallet_id}/orders/{order_id}")

        if response.status == 202:
            logger.info("Cancelled order %s", order_id)
            return True

        logger.error(
            "Failed to cancel order %s: HTTP %s %s %s", order_id, response.status, response.reason, response.body
        )
        return False

    @exchange_operation
    async def get_your_open_orders(self, market_id: str) -> list[OpenOrder]:
        """Open orders for ``market_id`` in the order itBit returns them."""
        wallet_id = await self._get_wallet_id()
        response = await self.send_authenticated_request("GET", f"wallets/{wallet_id}/orders", {"status": "open"})
        orders = decode_response(response, list[ItBitOrderSchema], 200, operation="get_your_open_orders")

        open_orders = []
        for order in orders:
            # the wallet endpoint returns orders for every instrument
            if order.instrument.upper() != market_id.upper():
                continue
            open_orders.append(
                OpenOrder(
                    id=order.id,
                    market_id=market_id,
                    type=OrderType(order.side),
                    creation_date=parse_timestamp(order.created_time),
                    price=order.price,
                    quantity=order.amount - order.amount_filled,
                    original_quantity=order.amount,
                )
            )
        return open_orders

    @exchange_operation
    async def get_market_orders(self, market_id: str) -> MarketOrderBook:
        """Full order book; itBit returns every level."""
        response = await self.send_public_request(f"markets/{market_id}/order_book")
        book = decode_response(response, ItBitOrderBookSchema, 200, operation="get_market_orders")

        return MarketOrderBook(
            market_id=market_id,
            buy_orders=tuple(MarketOrder(OrderType.BUY, price, quantity) for price, quantity in book.bids),
            sell_orders=tuple(MarketOrder(OrderType.SELL, price, quantity) for price, quantity in book.asks),
        )

    @exchange_operation
    async def get_latest_market_price(self, market_id: str) -> Decimal:
        response = await self.send_public_request(f"markets/{market_id}/ticker")
        ticker = decode_response(response, ItBitTickerSchema, 200, operation="get_latest_market_price")
        return ticker.last_price

    @exchange_operation
    async def get_balance_info(self) -> BalanceInfo:
        """Available balances of the wallet in use.

        itBit does not report funds on hold, so ``balances_on_hold`` is empty.
        """
        wallets = await self._fetch_wallets()
        wallet = self._select_wallet(wallets)
        self._remember_wallet_id(wallet.id)

        return BalanceInfo(
            balances_available={b.currency: b.available_balance for b in wallet.balances},
        )
