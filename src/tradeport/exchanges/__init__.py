"""Exchange adapters and connectivity layer."""

from .protocol import (
    BalanceInfo,
    MarketOrder,
    MarketOrderBook,
    NewOrderRequest,
    OpenOrder,
    OrderType,
    TradingApi,
)
from .normalization import format_decimal, scale, split_market_id, to_decimal
from .transport import AiohttpTransport, NonceGenerator, Transport, WireResponse
from .base import BaseExchangeAdapter
from .itbit import ItBitExchangeAdapter
from .kraken import KrakenExchangeAdapter
from .factory import create_exchange_adapter, EXCHANGE_ADAPTERS

__all__ = [
    "BalanceInfo",
    "MarketOrder",
    "MarketOrderBook",
    "NewOrderRequest",
    "OpenOrder",
    "OrderType",
    "TradingApi",
    "format_decimal",
    "scale",
    "split_market_id",
    "to_decimal",
    "AiohttpTransport",
    "NonceGenerator",
    "Transport",
    "WireResponse",
    "BaseExchangeAdapter",
    "ItBitExchangeAdapter",
    "KrakenExchangeAdapter",
    "create_exchange_adapter",
    "EXCHANGE_ADAPTERS",
]
