"""Canonical domain model and the contract every exchange adapter satisfies."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Protocol


class OrderType(Enum):
    """Order side."""

    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True, slots=True)
class NewOrderRequest:
    """Intent to place a limit order."""

    market_id: str
    order_type: OrderType
    quantity: Decimal
    price: Decimal

    def __post_init__(self) -> None:
        if not isinstance(self.order_type, OrderType):
            raise ValueError(f"Unknown order type: {self.order_type!r}")
        if self.quantity <= 0:
            raise ValueError(f"Order quantity must be positive, got {self.quantity}")
        if self.price <= 0:
            raise ValueError(f"Order price must be positive, got {self.price}")


@dataclass(frozen=True, slots=True)
class OpenOrder:
    """A resting order on the account.

    ``total`` is always ``price * original_quantity``, computed here rather than
    taken from the exchange.
    """

    id: str
    market_id: str
    type: OrderType
    creation_date: datetime
    price: Decimal
    quantity: Decimal
    original_quantity: Decimal

    def __post_init__(self) -> None:
        if self.quantity > self.original_quantity:
            raise ValueError(
                f"Remaining quantity ({self.quantity}) cannot exceed original quantity "
                f"({self.original_quantity}) for order {self.id}"
            )

    @property
    def total(self) -> Decimal:
        return self.price * self.original_quantity


@dataclass(frozen=True, slots=True)
class MarketOrder:
    """One price level of an order book."""

    type: OrderType
    price: Decimal
    quantity: Decimal

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True, slots=True)
class MarketOrderBook:
    """Order book snapshot, levels in the order the exchange returned them."""

    market_id: str
    buy_orders: tuple[MarketOrder, ...]
    sell_orders: tuple[MarketOrder, ...]


@dataclass(frozen=True, slots=True)
class BalanceInfo:
    """Account balances by currency.

    An exchange that does not report on-hold funds leaves ``balances_on_hold``
    empty: a missing currency means "unknown", not zero.
    """

    balances_available: Mapping[str, Decimal]
    balances_on_hold: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "balances_available", MappingProxyType(dict(self.balances_available)))
        object.__setattr__(self, "balances_on_hold", MappingProxyType(dict(self.balances_on_hold)))


class TradingApi(Protocol):
    """Capability set the trading engine holds for each exchange."""

    async def create_order(
        self,
        market_id: str,
        order_type: OrderType,
        quantity: Decimal,
        price: Decimal,
    ) -> str:
        """Place a limit order.

        Args:
            market_id: Exchange market id (e.g. 'XBTUSD')
            order_type: BUY or SELL
            quantity: Amount of base currency
            price: Limit price in quote currency

        Returns:
            Exchange-assigned order id
        """
        ...

    async def cancel_order(self, order_id: str, market_id: str | None = None) -> bool:
        """Cancel an order.

        Args:
            order_id: Id returned by create_order
            market_id: Market id (ignored by exchanges that do not need it)

        Returns:
            True if the exchange accepted the cancellation
        """
        ...

    async def get_your_open_orders(self, market_id: str) -> list[OpenOrder]:
        """Fetch the account's open orders for a market, in exchange order."""
        ...

    async def get_market_orders(self, market_id: str) -> MarketOrderBook:
        """Fetch the full order book for a market."""
        ...

    async def get_latest_market_price(self, market_id: str) -> Decimal:
        """Fetch the last traded price for a market."""
        ...

    async def get_balance_info(self) -> BalanceInfo:
        """Fetch available (and, where reported, on-hold) balances."""
        ...

    def get_percentage_of_buy_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        """Buy fee as a fraction (0.005 == 0.5%). No network access."""
        ...

    def get_percentage_of_sell_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        """Sell fee as a fraction (0.005 == 0.5%). No network access."""
        ...

    def get_impl_name(self) -> str:
        """Human readable adapter name. No network access."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
