from __future__ import annotations

from decimal import Decimal
from typing import TypeVar

from .base_types import ZERO, AssetDelta, LedgerError, Metal, TransactionCategory
from .details import (
    MetalExchangeDetails,
    MovementDetails,
    TradeDetails,
    TransactionDetails,
    TransactionPayload,
    TunchDetails,
)

T = TypeVar("T")


class UnknownCategoryError(LedgerError):
    def __init__(self, category: object) -> None:
        self.category = category
        super().__init__(f"No classification rule for transaction category {category!r}")


def classify_payload(payload: TransactionPayload) -> AssetDelta:
    return classify(payload.category, payload.details)


def classify(category: TransactionCategory, details: TransactionDetails) -> AssetDelta:
    """Turn a transaction into signed (cash, gold, silver) changes of the customer's balances.

    The details must already be the variant the category requires; `TransactionPayload`
    guarantees that for validated input.
    """
    if category == TransactionCategory.SALE:
        trade = _expect(details, TradeDetails, category)
        return _metal_delta(trade.metal, trade.weight, cash=trade.amount_paid - trade.total_amount)
    if category == TransactionCategory.PURCHASE:
        trade = _expect(details, TradeDetails, category)
        return _metal_delta(trade.metal, -trade.weight, cash=trade.total_amount - trade.amount_paid)
    if category == TransactionCategory.TUNCH:
        tunch = _expect(details, TunchDetails, category)
        return AssetDelta(cash=-tunch.tunch_charges, gold=ZERO, silver=ZERO)
    if category == TransactionCategory.METAL_EXCHANGE:
        exchange = _expect(details, MetalExchangeDetails, category)
        return AssetDelta(
            cash=-exchange.final_amount,
            gold=exchange.metal_returned - exchange.total_fine_weight,
            silver=ZERO,
        )
    if category == TransactionCategory.GOLD_IN:
        movement = _expect(details, MovementDetails, category)
        return _metal_delta(Metal.GOLD, -movement.amount, cash=movement.cash_value)
    if category == TransactionCategory.GOLD_OUT:
        movement = _expect(details, MovementDetails, category)
        return _metal_delta(Metal.GOLD, movement.amount, cash=-movement.cash_value)
    if category == TransactionCategory.SILVER_IN:
        movement = _expect(details, MovementDetails, category)
        return _metal_delta(Metal.SILVER, -movement.amount, cash=movement.cash_value)
    if category == TransactionCategory.SILVER_OUT:
        movement = _expect(details, MovementDetails, category)
        return _metal_delta(Metal.SILVER, movement.amount, cash=-movement.cash_value)
    if category == TransactionCategory.CASH_IN:
        movement = _expect(details, MovementDetails, category)
        return AssetDelta(cash=-movement.amount, gold=ZERO, silver=ZERO)
    if category == TransactionCategory.CASH_OUT:
        movement = _expect(details, MovementDetails, category)
        return AssetDelta(cash=movement.amount, gold=ZERO, silver=ZERO)

    raise UnknownCategoryError(category)


def _metal_delta(metal: Metal, weight: Decimal, *, cash: Decimal) -> AssetDelta:
    if metal == Metal.GOLD:
        return AssetDelta(cash=cash, gold=weight, silver=ZERO)
    return AssetDelta(cash=cash, gold=ZERO, silver=weight)


def _expect(details: TransactionDetails, expected: type[T], category: TransactionCategory) -> T:
    if not isinstance(details, expected):
        # Only reachable when TransactionPayload validation was bypassed.
        raise TypeError(f"{category} requires {expected.__name__}, got {type(details).__name__}")
    return details


__all__ = ["UnknownCategoryError", "classify", "classify_payload"]
