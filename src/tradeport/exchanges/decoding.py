"""Strict decoding of exchange responses.

Numbers are decoded as Decimal, shapes are validated against pydantic wire
schemas, and anything unexpected is a TradingApiError rather than a partial or
defaulted value.
"""

from __future__ import annotations

import functools
import json
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..errors import TradingApiError
from .transport import WireResponse

ModelT = TypeVar("ModelT")

_BODY_PREVIEW = 500


def _preview(body: str) -> str:
    return body if len(body) <= _BODY_PREVIEW else body[:_BODY_PREVIEW] + "..."


def expect_status(response: WireResponse, *expected: int, operation: str) -> None:
    """Raise TradingApiError unless the response status is one of ``expected``."""
    if response.status not in expected:
        raise TradingApiError(
            f"{operation} failed: HTTP {response.status} {response.reason}: {_preview(response.body)}",
            status=response.status,
            body=response.body,
        )


def decode_json(response: WireResponse, *, operation: str) -> Any:
    """Parse the body as JSON with every non-integer number as Decimal."""
    if not response.body.strip():
        raise TradingApiError(
            f"{operation} failed: empty response body (HTTP {response.status})",
            status=response.status,
            body=response.body,
        )
    try:
        return json.loads(response.body, parse_float=Decimal)
    except ValueError as exc:
        raise TradingApiError(
            f"{operation} failed: response is not valid JSON: {_preview(response.body)}",
            status=response.status,
            body=response.body,
        ) from exc


@functools.lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def parse_payload(schema: type[ModelT] | Any, payload: Any, *, operation: str) -> ModelT:
    """Validate ``payload`` against a pydantic model or type (e.g. ``list[Model]``)."""
    try:
        return _adapter(schema).validate_python(payload)
    except ValidationError as exc:
        raise TradingApiError(f"{operation} failed: unexpected response shape: {exc}") from exc


def decode_response(
    response: WireResponse,
    schema: type[ModelT] | Any,
    *expected: int,
    operation: str,
) -> ModelT:
    """Check status, parse JSON and validate the shape in one step."""
    expect_status(response, *(expected or (200,)), operation=operation)
    return parse_payload(schema, decode_json(response, operation=operation), operation=operation)
