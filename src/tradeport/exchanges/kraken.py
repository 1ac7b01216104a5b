"""Kraken exchange adapter (REST API v0)."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
from decimal import Decimal
from typing import Any, Mapping, TypeVar
from urllib.parse import urlencode

from ..errors import AdapterConfigurationError, TradingApiError
from ..settings import AdapterSettings
from .base import BaseExchangeAdapter, exchange_operation
from .decoding import decode_response, parse_payload
from .normalization import format_decimal, parse_timestamp, to_decimal
from .protocol import BalanceInfo, MarketOrder, MarketOrderBook, NewOrderRequest, OpenOrder, OrderType
from .schemas.kraken import (
    KrakenAddOrderSchema,
    KrakenBalanceSchema,
    KrakenCancelOrderSchema,
    KrakenDepthSchema,
    KrakenEnvelopeSchema,
    KrakenOpenOrdersSchema,
    KrakenTickerSchema,
)
from .transport import WireResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class KrakenExchangeAdapter(BaseExchangeAdapter):
    """Kraken exchange adapter.

    Market ids are Kraken pair altnames such as ``XBTUSD``. Every response is
    wrapped in ``{"error": [...], "result": ...}``; a non-empty error list is a
    rejection.
    """

    name = "kraken"
    IMPL_NAME = "Kraken REST API v0"
    BASE_URL = "https://api.kraken.com"

    VOLUME_DECIMALS = 8
    # price precision differs per pair
    PRICE_DECIMALS = {
        "XBTUSD": 1,
        "XBTEUR": 1,
        "ETHUSD": 2,
        "ETHEUR": 2,
        "ETHXBT": 5,
    }
    DEFAULT_PRICE_DECIMALS = 2

    def validate_settings(self, settings: AdapterSettings) -> None:
        try:
            base64.b64decode(settings.api_secret.get_secret_value(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise AdapterConfigurationError(
                "kraken: invalid setting 'api_secret': must be base64 encoded", field="api_secret"
            ) from exc

    # == Transport ==============================================================

    def _sign_request(self, path: str, nonce: int, postdata: str) -> str:
        """Generate Kraken signature.

        base64(HMAC-SHA512(base64decode(secret), path + SHA256(nonce + postdata)))
        """
        digest = hashlib.sha256((str(nonce) + postdata).encode("utf-8")).digest()
        signature = hmac.new(
            base64.b64decode(self.api_secret),
            path.encode("utf-8") + digest,
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
        if method != "POST":
            raise ValueError(f"Kraken private endpoints only accept POST, got {method}")

        nonce = self.nonce.next()
        postdata = urlencode({"nonce": nonce, **dict(params or {})})
        headers = {
            "API-Key": self.api_key,
            "API-Sign": self._sign_request(path, nonce, postdata),
            "Content-Type": "application/x-www-form-urlencoded; charset=utf-8",
        }
        return await self.transport.request(method, self.build_url(path), headers=headers, body=postdata)

    def _unwrap(self, response: WireResponse, schema: Any, *, operation: str) -> Any:
        envelope = decode_response(response, KrakenEnvelopeSchema, 200, operation=operation)
        if envelope.error:
            raise TradingApiError(
                f"{operation} failed: Kraken returned {', '.join(envelope.error)}",
                status=response.status,
                body=response.body,
            )
        return parse_payload(schema, envelope.result, operation=operation)

    @staticmethod
    def _single_pair(result: dict[str, T], market_id: str, operation: str) -> T:
        # the result is keyed by Kraken's internal pair name, not the altname we sent
        if len(result) != 1:
            raise TradingApiError(
                f"{operation} failed: expected one pair for {market_id}, got {sorted(result)}"
            )
        return next(iter(result.values()))

    # == Trading operations =====================================================

    @exchange_operation
    async def create_order(
        self,
        market_id: str,
        order_type: OrderType,
        quantity: Decimal,
        price: Decimal,
    ) -> str:
        request = NewOrderRequest(market_id, order_type, to_decimal(quantity), to_decimal(price))
        price_decimals = self.PRICE_DECIMALS.get(market_id.upper(), self.DEFAULT_PRICE_DECIMALS)

        volume = format_decimal(request.quantity, self.VOLUME_DECIMALS)
        limit_price = format_decimal(request.price, price_decimals)
        if Decimal(volume) == 0 or Decimal(limit_price) == 0:
            raise ValueError(
                f"Order volume {request.quantity} / price {request.price} rounds to zero at "
                f"{self.VOLUME_DECIMALS}/{price_decimals} decimals"
            )

        response = await self.send_authenticated_request(
            "POST",
            "/0/private/AddOrder",
            {
                "pair": market_id,
                "type": request.order_type.value,
                "ordertype": "limit",
                "volume": volume,
                "price": limit_price,
            },
        )
        order = self._unwrap(response, KrakenAddOrderSchema, operation="create_order")
        txid = order.txid[0]

        logger.info("Placed %s order %s: %s %s @ %s", request.order_type.value, txid, volume, market_id, limit_price)
        return txid

    @exchange_operation
    async def cancel_order(self, order_id: str, market_id: str | None = None) -> bool:
        response = await self.send_authenticated_request("POST", "/0/private/CancelOrder", {"txid": order_id})
        cancelled = self._unwrap(response, KrakenCancelOrderSchema, operation="cancel_order")

        if cancelled.count >= 1:
            logger.info("Cancelled order %s", order_id)
            return True

        logger.error("Kraken cancelled no orders for txid %s", order_id)
        return False

    @exchange_operation
    async def get_your_open_orders(self, market_id: str) -> list[OpenOrder]:
        response = await self.send_authenticated_request("POST", "/0/private/OpenOrders")
        result = self._unwrap(response, KrakenOpenOrdersSchema, operation="get_your_open_orders")

        open_orders = []
        for txid, order in result.open.items():
            if order.descr.pair.upper() != market_id.upper():
                continue
            open_orders.append(
                OpenOrder(
                    id=txid,
                    market_id=market_id,
                    type=OrderType(order.descr.type),
                    creation_date=parse_timestamp(order.opentm),
                    price=order.descr.price,
                    quantity=order.vol - order.vol_exec,
                    original_quantity=order.vol,
                )
            )
        return open_orders

    @exchange_operation
    async def get_market_orders(self, market_id: str) -> MarketOrderBook:
        response = await self.send_public_request("/0/public/Depth", {"pair": market_id})
        result = self._unwrap(response, dict[str, KrakenDepthSchema], operation="get_market_orders")
        depth = self._single_pair(result, market_id, "get_market_orders")

        return MarketOrderBook(
            market_id=market_id,
            buy_orders=tuple(MarketOrder(OrderType.BUY, price, volume) for price, volume, _ in depth.bids),
            sell_orders=tuple(MarketOrder(OrderType.SELL, price, volume) for price, volume, _ in depth.asks),
        )

    @exchange_operation
    async def get_latest_market_price(self, market_id: str) -> Decimal:
        response = await self.send_public_request("/0/public/Ticker", {"pair": market_id})
        result = self._unwrap(response, dict[str, KrakenTickerSchema], operation="get_latest_market_price")
        return self._single_pair(result, market_id, "get_latest_market_price").c[0]

    @exchange_operation
    async def get_balance_info(self) -> BalanceInfo:
        """Available and on-hold balances from ``BalanceEx``.

        Assets without a ``hold_trade`` figure are left out of the on-hold map.
        """
        response = await self.send_authenticated_request("POST", "/0/private/BalanceEx")
        result = self._unwrap(response, dict[str, KrakenBalanceSchema], operation="get_balance_info")

        available: dict[str, Decimal] = {}
        on_hold: dict[str, Decimal] = {}
        for asset, balance in result.items():
            if balance.hold_trade is None:
                available[asset] = balance.balance
            else:
                available[asset] = balance.balance - balance.hold_trade
                on_hold[asset] = balance.hold_trade

        return BalanceInfo(balances_available=available, balances_on_hold=on_hold)
