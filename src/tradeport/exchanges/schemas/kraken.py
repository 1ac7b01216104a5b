"""Kraken REST API payloads (the ``result`` part of the response envelope)."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

_WIRE = ConfigDict(extra="ignore", frozen=True)


class KrakenEnvelopeSchema(BaseModel):
    model_config = _WIRE

    error: list[str]
    result: Any = None


class KrakenDepthSchema(BaseModel):
    model_config = _WIRE

    # [price, volume, timestamp] triples, best price first
    bids: list[tuple[Decimal, Decimal, int]]
    asks: list[tuple[Decimal, Decimal, int]]


class KrakenTickerSchema(BaseModel):
    model_config = _WIRE

    # last trade closed: [price, lot volume]
    c: tuple[Decimal, Decimal]


class KrakenOrderDescriptionSchema(BaseModel):
    model_config = _WIRE

    pair: str
    type: str = Field(..., pattern="^(buy|sell)$")
    ordertype: str
    price: Decimal


class KrakenOrderSchema(BaseModel):
    model_config = _WIRE

    status: str
    opentm: Decimal
    vol: Decimal = Field(..., gt=0)
    vol_exec: Decimal = Field(..., ge=0)
    descr: KrakenOrderDescriptionSchema

    @model_validator(mode="after")
    def check_executed_volume(self) -> Self:
        if self.vol_exec > self.vol:
            raise ValueError(f"Executed volume ({self.vol_exec}) cannot exceed volume ({self.vol})")
        return self


class KrakenOpenOrdersSchema(BaseModel):
    model_config = _WIRE

    open: dict[str, KrakenOrderSchema]


class KrakenAddOrderSchema(BaseModel):
    model_config = _WIRE

    txid: list[str] = Field(..., min_length=1)


class KrakenCancelOrderSchema(BaseModel):
    model_config = _WIRE

    count: int = Field(..., ge=0)


class KrakenBalanceSchema(BaseModel):
    model_config = _WIRE

    balance: Decimal
    hold_trade: Decimal | None = None
