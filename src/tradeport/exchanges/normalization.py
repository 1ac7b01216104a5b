"""Decimal, market id and timestamp helpers shared by the exchange adapters."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """Convert a wire or user value to an exact Decimal.

    Floats are converted through ``str`` so that ``237.7`` becomes
    ``Decimal("237.7")`` and not its binary approximation.

    Raises:
        ValueError: If the value is not a finite number.
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a decimal value: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation as exc:
            raise ValueError(f"Not a decimal value: {value!r}") from exc
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValueError(f"Not a decimal value: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Not a finite decimal value: {value!r}")
    return result


def scale(value: Decimal, places: int) -> Decimal:
    """Quantize ``value`` to ``places`` decimals using round-half-up."""
    return to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_decimal(value: Decimal, places: int) -> str:
    """Format ``value`` with exactly ``places`` decimals for an outbound request.

    >>> format_decimal(Decimal("300.176"), 2)
    '300.18'
    >>> format_decimal(Decimal("0.01"), 4)
    '0.0100'
    """
    return f"{scale(value, places):f}"


def split_market_id(market_id: str, base_length: int = 3) -> tuple[str, str]:
    """Split a concatenated market id into (base, quote).

    ``XBTUSD`` -> ``("XBT", "USD")``. Only used where an exchange derives the
    order currency from the market id; otherwise market ids stay opaque.
    """
    if not market_id or len(market_id) <= base_length:
        raise ValueError(f"Cannot derive base/quote currency from market id: {market_id!r}")
    return market_id[:base_length], market_id[base_length:]


def parse_timestamp(value: Any) -> datetime:
    """Parse an exchange timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (``Z`` suffix and any number of fractional digits,
    e.g. itBit's ``2015-10-01T18:11:06.8470000Z``) and epoch seconds.
    """
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return datetime.fromtimestamp(float(value), tz=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a timestamp: {value!r}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    # fromisoformat only guarantees six fractional digits on older interpreters
    if "." in text:
        head, _, tail = text.partition(".")
        digits = ""
        while tail and tail[0].isdigit():
            digits, tail = digits + tail[0], tail[1:]
        text = f"{head}.{digits[:6].ljust(6, '0')}{tail}"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Not a timestamp: {value!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
