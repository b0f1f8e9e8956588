from __future__ import annotations

from decimal import Decimal

from domain.base_types import Metal, TransactionCategory
from domain.details import MetalExchangeDetails, MovementDetails, TradeDetails, TransactionPayload, TunchDetails


def sale(weight: str, rate: str, amount_paid: str, *, metal: Metal = Metal.GOLD) -> TransactionPayload:
    return TransactionPayload(
        category=TransactionCategory.SALE,
        details=TradeDetails(metal=metal, weight=Decimal(weight), rate=Decimal(rate), amount_paid=Decimal(amount_paid)),
    )


def purchase(weight: str, rate: str, amount_paid: str, *, metal: Metal = Metal.GOLD) -> TransactionPayload:
    return TransactionPayload(
        category=TransactionCategory.PURCHASE,
        details=TradeDetails(metal=metal, weight=Decimal(weight), rate=Decimal(rate), amount_paid=Decimal(amount_paid)),
    )


def movement(
    category: TransactionCategory, amount: str, rate: str | None = None, *, remarks: str | None = None
) -> TransactionPayload:
    return TransactionPayload(
        category=category,
        details=MovementDetails(
            amount=Decimal(amount), rate=None if rate is None else Decimal(rate), remarks=remarks
        ),
    )


def tunch(charges: str, *, gross_weight: str = "10", purity: str = "91.6") -> TransactionPayload:
    return TransactionPayload(
        category=TransactionCategory.TUNCH,
        details=TunchDetails(
            sample_type="ornament",
            gross_weight=Decimal(gross_weight),
            purity=Decimal(purity),
            tunch_charges=Decimal(charges),
        ),
    )


def metal_exchange(fine_weight: str, returned: str, rate: str, ton_charges: str = "0") -> TransactionPayload:
    return TransactionPayload(
        category=TransactionCategory.METAL_EXCHANGE,
        details=MetalExchangeDetails(
            total_gross_weight=Decimal(fine_weight),
            total_fine_weight=Decimal(fine_weight),
            metal_returned=Decimal(returned),
            rate_used=Decimal(rate),
            ton_charges=Decimal(ton_charges),
        ),
    )
