from decimal import Decimal

import pytest
from pydantic import ValidationError

from domain.base_types import TransactionCategory
from domain.details import (
    DetailsMismatchError,
    MetalExchangeDetails,
    MovementDetails,
    SettlementType,
    TradeDetails,
    TransactionPayload,
    TunchDetails,
    parse_details,
)


def test_tunch_fine_weight() -> None:
    details = TunchDetails(sample_type="ornament", gross_weight=Decimal("10"), purity=Decimal("91.6"))

    assert details.fine_weight == Decimal("9.16")
    assert details.tunch_charges == Decimal("0")


def test_purity_outside_percentage_is_rejected() -> None:
    with pytest.raises(ValidationError):
        TunchDetails(sample_type="coin", gross_weight=Decimal("1"), purity=Decimal("100.5"))


def test_negative_magnitudes_are_rejected() -> None:
    with pytest.raises(ValidationError):
        TradeDetails(metal="gold", weight=Decimal("-1"), rate=Decimal("7000"))
    with pytest.raises(ValidationError):
        MovementDetails(amount=Decimal("-5"))


def test_metal_exchange_totals_are_summed_from_samples() -> None:
    details = MetalExchangeDetails.model_validate(
        {
            "samples": [
                {"type": "ornament", "gross_weight": "20", "purity": "75"},
                {"type": "kacha", "gross_weight": "10", "purity": "90"},
            ],
            "metal_returned": "20",
            "rate_used": "7000",
            "ton_charges": "100",
            "settlement_type": "jama",
        }
    )

    assert details.total_gross_weight == Decimal("30")
    assert details.total_fine_weight == Decimal("24")
    assert details.metal_difference == Decimal("4")
    assert details.value_of_difference == Decimal("28000")
    assert details.final_amount == Decimal("27900")
    assert details.settlement_type == SettlementType.JAMA
    assert details.samples[0].id != details.samples[1].id


def test_metal_exchange_requires_samples_or_totals() -> None:
    with pytest.raises(ValidationError):
        MetalExchangeDetails.model_validate({"metal_returned": "1", "rate_used": "7000"})


def test_cash_value_needs_positive_rate() -> None:
    assert MovementDetails(amount=Decimal("5"), rate=Decimal("7000")).cash_value == Decimal("35000")
    assert MovementDetails(amount=Decimal("5"), rate=Decimal("0")).cash_value == Decimal("0")
    assert MovementDetails(amount=Decimal("5")).cash_value == Decimal("0")


def test_computed_fields_are_serialized() -> None:
    details = TradeDetails(metal="gold", weight=Decimal("2"), rate=Decimal("7000"), amount_paid=Decimal("14000"))

    dumped = details.model_dump()

    assert dumped["total_amount"] == Decimal("14000")


def test_payload_parses_details_for_category() -> None:
    payload = TransactionPayload.model_validate(
        {"category": "Sale", "details": {"metal": "gold", "weight": "10", "rate": "7000", "amount_paid": "60000"}}
    )

    assert payload.category == TransactionCategory.SALE
    assert isinstance(payload.details, TradeDetails)
    assert payload.details.total_amount == Decimal("70000")


def test_payload_rejects_details_of_another_category() -> None:
    movement = MovementDetails(amount=Decimal("5"))

    with pytest.raises(ValidationError):
        TransactionPayload(category=TransactionCategory.SALE, details=movement)

    with pytest.raises(DetailsMismatchError):
        parse_details(TransactionCategory.TUNCH, movement)


def test_payload_rejects_unknown_category() -> None:
    with pytest.raises(ValidationError):
        TransactionPayload.model_validate({"category": "Barter", "details": {"amount": "1"}})
