"""Factory for creating exchange adapter instances."""

from __future__ import annotations

from typing import Any, Mapping, Type

from ..errors import AdapterConfigurationError
from ..settings import AdapterSettings
from .base import BaseExchangeAdapter
from .itbit import ItBitExchangeAdapter
from .kraken import KrakenExchangeAdapter
from .transport import Transport


EXCHANGE_ADAPTERS: dict[str, Type[BaseExchangeAdapter]] = {
    "itbit": ItBitExchangeAdapter,
    "kraken": KrakenExchangeAdapter,
}


def create_exchange_adapter(
    exchange: str,
    settings: AdapterSettings | Mapping[str, Any],
    *,
    transport: Transport | None = None,
) -> BaseExchangeAdapter:
    """Create an exchange adapter instance.

    Args:
        exchange: Exchange name (itbit, kraken)
        settings: Validated settings or a raw mapping of them
        transport: HTTP transport override (tests, custom sessions)

    Returns:
        Configured exchange adapter

    Raises:
        AdapterConfigurationError: If the exchange is not supported
        AdapterConfigurationError: If required settings are missing or invalid
    """
    exchange_lower = exchange.lower()

    if exchange_lower not in EXCHANGE_ADAPTERS:
        supported = ", ".join(EXCHANGE_ADAPTERS.keys())
        raise AdapterConfigurationError(
            f"Unsupported exchange: {exchange}. Supported exchanges: {supported}"
        )

    adapter_class = EXCHANGE_ADAPTERS[exchange_lower]
    return adapter_class(settings, transport=transport)
