from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Iterable

from .base_types import CASH_CATEGORIES, ZERO, LedgerError, TransactionCategory, TransactionId
from .classifier import classify_payload
from .details import MovementDetails, TransactionPayload
from .ledger import ShopTransaction


class ShopCategoryError(LedgerError):
    def __init__(self, category: TransactionCategory) -> None:
        self.category = category
        super().__init__(f"Shop account only records CashIn/CashOut, got category={category}")


class ShopAccount:
    """Cash-only ledger partition for movements that belong to no customer."""

    def __init__(self, transactions: Iterable[ShopTransaction] = ()) -> None:
        self._transactions: tuple[ShopTransaction, ...] = _newest_first(transactions)
        self._cash_balance = sum((tx.cash_change for tx in self._transactions), start=ZERO)

    @property
    def transactions(self) -> tuple[ShopTransaction, ...]:
        return self._transactions

    @property
    def cash_balance(self) -> Decimal:
        return self._cash_balance

    @staticmethod
    def ensure_accepts(category: TransactionCategory) -> None:
        if category not in CASH_CATEGORIES:
            raise ShopCategoryError(category)

    def record(
        self,
        payload: TransactionPayload,
        *,
        transaction_id: TransactionId,
        timestamp: datetime,
    ) -> ShopTransaction:
        self.ensure_accepts(payload.category)
        assert isinstance(payload.details, MovementDetails)

        # The classifier speaks from the customer's side; the shop's cash moves the other way.
        cash_change = -classify_payload(payload).cash
        balance_after = self._cash_balance + cash_change
        transaction = ShopTransaction(
            id=transaction_id,
            timestamp=timestamp,
            category=payload.category,
            details=payload.details,
            cash_change=cash_change,
            cash_balance_after=balance_after,
        )

        self._transactions = _newest_first([transaction, *self._transactions])
        self._cash_balance = balance_after
        return transaction

    def clear(self) -> None:
        self._transactions = ()
        self._cash_balance = ZERO


def _newest_first(transactions: Iterable[ShopTransaction]) -> tuple[ShopTransaction, ...]:
    # Stable sort: on equal timestamps the earlier position (the newer record) stays first.
    return tuple(sorted(transactions, key=lambda tx: tx.timestamp, reverse=True))


__all__ = ["ShopAccount", "ShopCategoryError"]
