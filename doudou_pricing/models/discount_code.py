"""Promotional discount code schemas."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Literal

from pydantic import Field, field_validator, model_validator

from doudou_pricing.models.base import CamelModel, Money

DiscountCodeType = Literal["percentage", "fixed"]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _upper(value: str | None) -> str | None:
    return value.strip().upper() if value is not None else None


def _check_value(discount_type: str | None, value: Decimal | None) -> None:
    if discount_type == "percentage" and value is not None and value > 100:
        raise ValueError("A percentage discount must be between 1 and 100")


class DiscountCode(CamelModel):
    """A code customers type at checkout. Codes are stored upper-case."""

    id: str
    code: str = Field(..., min_length=1)
    description: str = ""
    discount_type: DiscountCodeType
    discount_value: Money = Field(..., gt=0)
    minimum_amount: Money = Decimal("0")
    usage_limit: int | None = Field(None, ge=1)
    used_count: int = 0
    valid_from: datetime = Field(default_factory=lambda: datetime.now(UTC))
    valid_until: datetime | None = None
    active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        return _upper(value)

    @field_validator("valid_from", "valid_until", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="after")
    def check_percentage(self) -> "DiscountCode":
        _check_value(self.discount_type, self.discount_value)
        return self


class DiscountCodeCreate(CamelModel):
    """Back-office payload creating a code."""

    code: str = Field(..., min_length=1)
    description: str = ""
    discount_type: DiscountCodeType
    discount_value: Money = Field(..., gt=0)
    minimum_amount: Money = Field(Decimal("0"), ge=0)
    usage_limit: int | None = Field(None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return _upper(value)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="after")
    def check_percentage(self) -> "DiscountCodeCreate":
        _check_value(self.discount_type, self.discount_value)
        return self


class DiscountCodeUpdate(CamelModel):
    """Partial update of a code."""

    code: str | None = Field(None, min_length=1)
    description: str | None = None
    discount_type: DiscountCodeType | None = None
    discount_value: Money | None = Field(None, gt=0)
    minimum_amount: Money | None = Field(None, ge=0)
    usage_limit: int | None = Field(None, ge=1)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    active: bool | None = None

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str | None) -> str | None:
        return _upper(value)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class DiscountCodeCheck(CamelModel):
    """Payload of POST /discount-codes/validate."""

    code: str = Field(..., min_length=1)
    total_amount: Money = Field(..., ge=0)


class AppliedDiscountCode(CamelModel):
    id: str
    code: str
    description: str
    discount_type: DiscountCodeType
    discount_value: Money
    discount_amount: Money


class DiscountCodeCheckResponse(CamelModel):
    success: bool = True
    discount_code: AppliedDiscountCode


class DiscountCodeUsage(CamelModel):
    success: bool = True
    code: str
    used_count: int
    message: str = "Discount code usage recorded"
