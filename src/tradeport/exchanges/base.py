"""Base class for exchange adapters."""

from __future__ import annotations

import functools
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, Awaitable, Callable, ClassVar, Mapping, TypeVar
from urllib.parse import urlencode

from ..errors import AdapterConfigurationError, ExchangeAdapterError, ErrorKind, TradingApiError
from ..settings import AdapterSettings
from .normalization import scale
from .protocol import BalanceInfo, MarketOrderBook, OpenOrder, OrderType
from .transport import AiohttpTransport, NonceGenerator, Transport, WireResponse

logger = logging.getLogger(__name__)

FEE_DECIMALS = 8

T = TypeVar("T")


def exchange_operation(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Classify every failure of a network-touching adapter operation.

    Adapter errors pass through unchanged; anything else (a bug, a library
    exception, a violated invariant) becomes a TradingApiError so no raw
    lower-level exception reaches the caller.
    """

    @functools.wraps(func)
    async def wrapper(self: "BaseExchangeAdapter", *args: Any, **kwargs: Any) -> T:
        try:
            return await func(self, *args, **kwargs)
        except ExchangeAdapterError as exc:
            if exc.kind is ErrorKind.TRANSIENT:
                logger.warning("%s %s failed, retry is possible: %s", self.name, func.__name__, exc)
            else:
                logger.error("%s %s failed: %s", self.name, func.__name__, exc)
            raise
        except Exception as exc:
            logger.error("%s %s failed unexpectedly: %s", self.name, func.__name__, exc, exc_info=True)
            raise TradingApiError(f"{self.name} {func.__name__} failed: {exc}") from exc

    return wrapper


class BaseExchangeAdapter(ABC):
    """Base class for all exchange adapters.

    Subclasses provide the exchange's signing scheme and payload mapping; this
    class owns settings validation, the transport, the nonce source and the
    network-free accessors.
    """

    name: ClassVar[str]
    IMPL_NAME: ClassVar[str]
    BASE_URL: ClassVar[str]
    # settings beyond AdapterSettings' own required fields
    REQUIRED_SETTINGS: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        settings: AdapterSettings | Mapping[str, Any],
        *,
        transport: Transport | None = None,
        nonce: NonceGenerator | None = None,
    ):
        """Validate settings and set up the transport.

        Args:
            settings: Validated settings or a raw mapping to validate
            transport: HTTP transport (default: aiohttp with the configured timeout)
            nonce: Nonce source (default: a new millisecond NonceGenerator)

        Raises:
            AdapterConfigurationError: If any required setting is missing or invalid
        """
        if not isinstance(settings, AdapterSettings):
            settings = AdapterSettings.from_mapping(settings, exchange=self.name)

        for field in self.REQUIRED_SETTINGS:
            if not getattr(settings, field):
                raise AdapterConfigurationError(
                    f"{self.name}: missing required setting '{field}'", field=field
                )

        self.settings = settings
        self.validate_settings(settings)

        self._buy_fee = scale(settings.buy_fee / 100, FEE_DECIMALS)
        self._sell_fee = scale(settings.sell_fee / 100, FEE_DECIMALS)

        proxy_url = settings.proxy.proxy_url if settings.proxy else None
        self.transport = transport or AiohttpTransport(settings.timeout, proxy=proxy_url)
        self.nonce = nonce or NonceGenerator()

        logger.info("Initialized %s adapter (timeout=%ss)", self.IMPL_NAME, settings.timeout)

    def validate_settings(self, settings: AdapterSettings) -> None:
        """Exchange-specific settings checks; raise AdapterConfigurationError."""

    @property
    def api_key(self) -> str:
        return self.settings.api_key.get_secret_value()

    @property
    def api_secret(self) -> str:
        return self.settings.api_secret.get_secret_value()

    def build_url(self, path: str, params: Mapping[str, Any] | None = None) -> str:
        url = f"{self.BASE_URL}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    # == Transport ==============================================================

    @abstractmethod
    async def send_public_request(self, path: str, params: Mapping[str, Any] | None = None) -> WireResponse:
        """Unauthenticated GET."""

    @abstractmethod
    async def send_authenticated_request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
    ) -> WireResponse:
        """Signed request carrying key, nonce and signature per exchange convention."""

    # == Trading operations =====================================================

    @abstractmethod
    async def create_order(
        self,
        market_id: str,
        order_type: OrderType,
        quantity: Decimal,
        price: Decimal,
    ) -> str:
        ...

    @abstractmethod
    async def cancel_order(self, order_id: str, market_id: str | None = None) -> bool:
        ...

    @abstractmethod
    async def get_your_open_orders(self, market_id: str) -> list[OpenOrder]:
        ...

    @abstractmethod
    async def get_market_orders(self, market_id: str) -> MarketOrderBook:
        ...

    @abstractmethod
    async def get_latest_market_price(self, market_id: str) -> Decimal:
        ...

    @abstractmethod
    async def get_balance_info(self) -> BalanceInfo:
        ...

    # == Network-free accessors =================================================

    def get_percentage_of_buy_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        return self._buy_fee

    def get_percentage_of_sell_order_taken_for_exchange_fee(self, market_id: str) -> Decimal:
        return self._sell_fee

    def get_impl_name(self) -> str:
        return self.IMPL_NAME

    async def close(self) -> None:
        """Close connections."""
        await self.transport.close()
