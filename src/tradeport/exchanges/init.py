"""Exchange adapter initialization from settings."""

from __future__ import annotations

import logging
from typing import Dict

from .factory import create_exchange_adapter
from .protocol import TradingApi
from ..settings import Settings

logger = logging.getLogger(__name__)


def create_exchange_adapters_from_settings(settings: Settings) -> Dict[str, TradingApi]:
    """Create adapters for every enabled exchange.

    A misconfigured exchange aborts the whole call: an adapter that cannot be
    built must stop the bot, not be skipped.
    """
    adapters: Dict[str, TradingApi] = {}

    for exchange_name, exchange_config in settings.exchanges.items():
        if not exchange_config.enabled:
            logger.debug("Exchange %s is disabled, skipping", exchange_name)
            continue

        adapter = create_exchange_adapter(
            exchange_name,
            exchange_config.adapter_settings(exchange_name),
        )
        adapters[exchange_name] = adapter
        logger.info("Initialized exchange adapter for %s", exchange_name)

    return adapters
