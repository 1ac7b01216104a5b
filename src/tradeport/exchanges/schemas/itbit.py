"""itBit REST API v1 payloads."""

from __future__ import annotations

from decimal import Decimal
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_WIRE = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ItBitBalanceSchema(BaseModel):
    model_config = _WIRE

    currency: str = Field(..., min_length=1)
    available_balance: Decimal = Field(..., alias="availableBalance")


class ItBitWalletSchema(BaseModel):
    model_config = _WIRE

    id: str = Field(..., min_length=1)
    user_id: str | None = Field(None, alias="userId")
    name: str | None = None
    balances: list[ItBitBalanceSchema]


class ItBitOrderSchema(BaseModel):
    """An order as returned by ``GET wallets/{id}/orders``."""

    model_config = _WIRE

    id: str = Field(..., min_length=1)
    side: str
    instrument: str
    amount: Decimal = Field(..., gt=0)
    amount_filled: Decimal = Field(..., ge=0, alias="amountFilled")
    price: Decimal = Field(..., gt=0)
    created_time: str = Field(..., alias="createdTime")
    status: str

    @field_validator("side")
    @classmethod
    def check_side(cls, v: str) -> str:
        side = v.lower()
        if side not in ("buy", "sell"):
            raise ValueError(f"unknown order side {v!r}")
        return side

    @model_validator(mode="after")
    def check_filled_amount(self) -> Self:
        if self.amount_filled > self.amount:
            raise ValueError(
                f"Filled amount ({self.amount_filled}) cannot exceed order amount ({self.amount})",
            )
        return self


class ItBitOrderBookSchema(BaseModel):
    model_config = _WIRE

    # [price, quantity] pairs, best price first
    bids: list[tuple[Decimal, Decimal]]
    asks: list[tuple[Decimal, Decimal]]


class ItBitTickerSchema(BaseModel):
    model_config = _WIRE

    pair: str | None = None
    last_price: Decimal = Field(..., alias="lastPrice")


class ItBitNewOrderSchema(BaseModel):
    model_config = _WIRE

    id: str = Field(..., min_length=1)
    status: str | None = None
