"""tradeport: exchange adapter core for a polling trading bot."""

from .errors import (
    AdapterConfigurationError,
    ErrorKind,
    ExchangeAdapterError,
    ExchangeNetworkError,
    TradingApiError,
)
from .settings import AdapterSettings, Settings
from .exchanges import TradingApi, OrderType, create_exchange_adapter

__all__ = [
    "AdapterConfigurationError",
    "ErrorKind",
    "ExchangeAdapterError",
    "ExchangeNetworkError",
    "TradingApiError",
    "AdapterSettings",
    "Settings",
    "TradingApi",
    "OrderType",
    "create_exchange_adapter",
]
