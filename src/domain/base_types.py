from __future__ import annotations

from decimal import Decimal
from enum import StrEnum
from typing import NamedTuple, NewType

CustomerId = NewType("CustomerId", int)
TransactionId = NewType("TransactionId", int)

ZERO = Decimal(0)


class Metal(StrEnum):
    GOLD = "gold"
    SILVER = "silver"


class TransactionCategory(StrEnum):
    TUNCH = "Tunch"
    METAL_EXCHANGE = "MetalExchange"
    SALE = "Sale"
    PURCHASE = "Purchase"
    GOLD_IN = "GoldIn"
    GOLD_OUT = "GoldOut"
    SILVER_IN = "SilverIn"
    SILVER_OUT = "SilverOut"
    CASH_IN = "CashIn"
    CASH_OUT = "CashOut"


CASH_CATEGORIES = frozenset({TransactionCategory.CASH_IN, TransactionCategory.CASH_OUT})


class AssetDelta(NamedTuple):
    """Signed change of a customer's balances, from the customer's side of the book.

    Sign convention:
    - Positive cash means the shop owes the customer more (or the customer owes less).
    - Positive gold/silver means the shop holds more fine metal on the customer's behalf.
    """

    cash: Decimal
    gold: Decimal
    silver: Decimal

    def __add__(self, other: object) -> AssetDelta:  # type: ignore[override]
        if not isinstance(other, AssetDelta):
            return NotImplemented
        return AssetDelta(self.cash + other.cash, self.gold + other.gold, self.silver + other.silver)


ZERO_DELTA = AssetDelta(ZERO, ZERO, ZERO)


class LedgerError(Exception):
    """Base class for errors raised by the ledger domain."""
