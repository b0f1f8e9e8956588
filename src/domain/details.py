"""Category-specific transaction payloads.

Every magnitude is a non-negative Decimal; the direction of a movement is
carried by the transaction category, never by the sign of a number. Values
that follow from other fields (fine weight, totals, settlement amounts) are
computed fields so a stored record cannot disagree with its own inputs.
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .base_types import ZERO, LedgerError, Metal, TransactionCategory

HUNDRED = Decimal(100)


class DetailsMismatchError(LedgerError, ValueError):
    def __init__(self, category: TransactionCategory, details: object) -> None:
        self.category = category
        self.details = details
        expected = DETAILS_BY_CATEGORY[category].__name__
        super().__init__(f"{category} transaction requires {expected}, got {type(details).__name__}")


def _require_non_negative(**values: Decimal | None) -> None:
    for name, value in values.items():
        if value is not None and value < 0:
            raise ValueError(f"{name} must be >= 0")


def _fine_weight(gross_weight: Decimal, purity: Decimal) -> Decimal:
    return gross_weight * purity / HUNDRED


class _Details(BaseModel):
    model_config = ConfigDict(frozen=True)


class TunchDetails(_Details):
    """Purity check of a customer's sample. Only the charge touches the ledger."""

    sample_type: str
    gross_weight: Decimal
    purity: Decimal
    tunch_charges: Decimal = ZERO
    image_url: str | None = None
    remarks: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> TunchDetails:
        _require_non_negative(gross_weight=self.gross_weight, tunch_charges=self.tunch_charges)
        if not ZERO <= self.purity <= HUNDRED:
            raise ValueError("purity must be between 0 and 100")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fine_weight(self) -> Decimal:
        return _fine_weight(self.gross_weight, self.purity)


class SampleType(StrEnum):
    ORNAMENT = "ornament"
    KACHA = "kacha"
    COIN = "coin"
    CUSTOM = "custom"


class SettlementType(StrEnum):
    ON_THE_SPOT = "on-the-spot"
    JAMA = "jama"
    BAKAYA = "bakaya"


class MetalExchangeSample(_Details):
    id: str = Field(default_factory=lambda: uuid4().hex)
    type: SampleType = SampleType.ORNAMENT
    gross_weight: Decimal
    purity: Decimal
    image_url: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> MetalExchangeSample:
        _require_non_negative(gross_weight=self.gross_weight)
        if not ZERO <= self.purity <= HUNDRED:
            raise ValueError("purity must be between 0 and 100")
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def fine_weight(self) -> Decimal:
        return _fine_weight(self.gross_weight, self.purity)


class MetalExchangeDetails(_Details):
    """Old metal in, fine metal back, difference settled in cash at `rate_used`.

    From the shop's side: a positive `metal_difference` is fine metal kept by
    the shop, a positive `final_amount` is cash the shop is owed.
    """

    samples: list[MetalExchangeSample] = Field(default_factory=list)
    total_gross_weight: Decimal
    total_fine_weight: Decimal
    metal_returned: Decimal = ZERO
    rate_used: Decimal = ZERO
    ton_charges: Decimal = ZERO
    settlement_type: SettlementType = SettlementType.ON_THE_SPOT
    remarks: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _fill_totals_from_samples(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        samples = [
            sample if isinstance(sample, MetalExchangeSample) else MetalExchangeSample.model_validate(sample)
            for sample in data.get("samples") or []
        ]
        data = {**data, "samples": samples}
        if data.get("total_fine_weight") is None:
            if not samples:
                raise ValueError("total_fine_weight is required when no samples are given")
            data["total_fine_weight"] = sum((sample.fine_weight for sample in samples), start=ZERO)
        if data.get("total_gross_weight") is None:
            data["total_gross_weight"] = sum((sample.gross_weight for sample in samples), start=ZERO)
        return data

    @model_validator(mode="after")
    def _validate_fields(self) -> MetalExchangeDetails:
        _require_non_negative(
            total_gross_weight=self.total_gross_weight,
            total_fine_weight=self.total_fine_weight,
            metal_returned=self.metal_returned,
            rate_used=self.rate_used,
            ton_charges=self.ton_charges,
        )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def metal_difference(self) -> Decimal:
        return self.total_fine_weight - self.metal_returned

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value_of_difference(self) -> Decimal:
        return self.metal_difference * self.rate_used

    @computed_field  # type: ignore[prop-decorator]
    @property
    def final_amount(self) -> Decimal:
        return self.value_of_difference - self.ton_charges


class TradeDetails(_Details):
    """Sale or purchase of fine metal; the category says which way it goes."""

    metal: Metal
    weight: Decimal
    rate: Decimal
    amount_paid: Decimal = ZERO
    remarks: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> TradeDetails:
        _require_non_negative(weight=self.weight, rate=self.rate, amount_paid=self.amount_paid)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_amount(self) -> Decimal:
        return self.weight * self.rate


class MovementDetails(_Details):
    """Plain in/out movement: grams for metal categories, currency for cash."""

    amount: Decimal
    rate: Decimal | None = None
    remarks: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> MovementDetails:
        _require_non_negative(amount=self.amount, rate=self.rate)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cash_value(self) -> Decimal:
        if self.rate is None or self.rate <= 0:
            return ZERO
        return self.amount * self.rate


TransactionDetails = TunchDetails | MetalExchangeDetails | TradeDetails | MovementDetails

DETAILS_BY_CATEGORY: dict[TransactionCategory, type[_Details]] = {
    TransactionCategory.TUNCH: TunchDetails,
    TransactionCategory.METAL_EXCHANGE: MetalExchangeDetails,
    TransactionCategory.SALE: TradeDetails,
    TransactionCategory.PURCHASE: TradeDetails,
    TransactionCategory.GOLD_IN: MovementDetails,
    TransactionCategory.GOLD_OUT: MovementDetails,
    TransactionCategory.SILVER_IN: MovementDetails,
    TransactionCategory.SILVER_OUT: MovementDetails,
    TransactionCategory.CASH_IN: MovementDetails,
    TransactionCategory.CASH_OUT: MovementDetails,
}


def parse_details(category: TransactionCategory, raw: Any) -> TransactionDetails:
    """Validate raw details (a mapping or a details model) as the variant `category` requires."""
    expected = DETAILS_BY_CATEGORY[category]
    if isinstance(raw, BaseModel):
        if type(raw) is not expected:
            raise DetailsMismatchError(category, raw)
        return raw  # type: ignore[return-value]
    return expected.model_validate(raw)  # type: ignore[return-value]


class TransactionPayload(BaseModel):
    """What a caller submits: a category plus the details that category needs."""

    model_config = ConfigDict(frozen=True)

    category: TransactionCategory
    details: TransactionDetails

    @model_validator(mode="before")
    @classmethod
    def _parse_details_for_category(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        try:
            category = TransactionCategory(data.get("category"))
        except ValueError:
            # Left for field validation to report.
            return data
        return {**data, "category": category, "details": parse_details(category, data.get("details"))}

    @model_validator(mode="after")
    def _validate_details(self) -> TransactionPayload:
        if type(self.details) is not DETAILS_BY_CATEGORY[self.category]:
            raise DetailsMismatchError(self.category, self.details)
        return self


__all__ = [
    "DETAILS_BY_CATEGORY",
    "DetailsMismatchError",
    "MetalExchangeDetails",
    "MetalExchangeSample",
    "MovementDetails",
    "SampleType",
    "SettlementType",
    "TradeDetails",
    "TransactionDetails",
    "TransactionPayload",
    "TunchDetails",
    "parse_details",
]
