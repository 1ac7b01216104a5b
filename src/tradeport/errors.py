"""Error taxonomy shared by every exchange adapter.

Every failure raised out of an adapter carries an :class:`ErrorKind` so the
caller can decide between "retry next cycle" and "stop" without matching on
message text:

    ExchangeAdapterError (base, has ``kind``)
    ├── ExchangeNetworkError        TRANSIENT      timeouts, connect failures
    ├── TradingApiError             PERMANENT      bad response, rejection, contract violation
    └── AdapterConfigurationError   CONFIGURATION  missing/invalid settings (construction only)
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Classification of an adapter failure."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"
    CONFIGURATION = "configuration"


class ExchangeAdapterError(Exception):
    """Base class for all adapter failures."""

    kind: ErrorKind = ErrorKind.PERMANENT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT


class ExchangeNetworkError(ExchangeAdapterError):
    """The exchange could not be reached or did not answer in time."""

    kind = ErrorKind.TRANSIENT


class TradingApiError(ExchangeAdapterError):
    """The exchange answered, but not with something we can use."""

    kind = ErrorKind.PERMANENT

    def __init__(self, message: str, *, status: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status = status
        self.body = body


class AdapterConfigurationError(ExchangeAdapterError, ValueError):
    """Adapter settings are missing or invalid."""

    kind = ErrorKind.CONFIGURATION

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field
