from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, model_validator

from .base_types import (
    CASH_CATEGORIES,
    ZERO,
    ZERO_DELTA,
    AssetDelta,
    CustomerId,
    TransactionCategory,
    TransactionId,
)
from .details import MovementDetails, TransactionDetails, TransactionPayload
from .rates import RateBook

SHOP_ACCOUNT_NAME = "Shop Account"


class Transaction(BaseModel):
    """Immutable record of one customer transaction.

    `*_change` fields are the classified deltas; `*_balance_after` are the
    customer's balances immediately after this transaction was applied.
    """

    model_config = ConfigDict(frozen=True)

    id: TransactionId
    timestamp: datetime
    category: TransactionCategory
    details: TransactionDetails

    cash_change: Decimal
    gold_change: Decimal
    silver_change: Decimal

    cash_balance_after: Decimal
    gold_balance_after: Decimal
    silver_balance_after: Decimal

    @model_validator(mode="before")
    @classmethod
    def _parse_details_for_category(cls, data: object) -> object:
        if not isinstance(data, dict) or "category" not in data:
            return data
        payload = TransactionPayload.model_validate({"category": data["category"], "details": data.get("details")})
        return {**data, "category": payload.category, "details": payload.details}

    @property
    def delta(self) -> AssetDelta:
        return AssetDelta(self.cash_change, self.gold_change, self.silver_change)

    @property
    def balances_after(self) -> AssetDelta:
        return AssetDelta(self.cash_balance_after, self.gold_balance_after, self.silver_balance_after)


class ShopTransaction(BaseModel):
    """Cash movement of the shop itself, not attributable to a customer.

    `cash_change` is from the shop's side: cash in is positive.
    """

    model_config = ConfigDict(frozen=True)

    id: TransactionId
    timestamp: datetime
    category: TransactionCategory
    details: MovementDetails

    cash_change: Decimal
    cash_balance_after: Decimal

    @model_validator(mode="after")
    def _validate_category(self) -> ShopTransaction:
        if self.category not in CASH_CATEGORIES:
            raise ValueError(f"shop transactions must be CashIn or CashOut, got {self.category}")
        return self


class CustomerProfile(BaseModel):
    """Non-financial customer fields; the only part of a customer callers may set."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    phone: str
    pan: str | None = None
    notes: str | None = None
    photo_path: str | None = None
    aadhar_front_path: str | None = None
    aadhar_back_path: str | None = None

    @model_validator(mode="after")
    def _validate_fields(self) -> CustomerProfile:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        return self


PROFILE_FIELDS = frozenset(CustomerProfile.model_fields)


class Customer(CustomerProfile):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: CustomerId
    cash_balance: Decimal = ZERO
    gold_balance: Decimal = ZERO
    silver_balance: Decimal = ZERO

    # Newest first.
    transactions: tuple[Transaction, ...] = ()

    @property
    def profile(self) -> CustomerProfile:
        return CustomerProfile(**{name: getattr(self, name) for name in PROFILE_FIELDS})

    @property
    def balances(self) -> AssetDelta:
        return AssetDelta(self.cash_balance, self.gold_balance, self.silver_balance)

    def folded_balances(self) -> AssetDelta:
        """Balances recomputed from the transaction history."""
        total = ZERO_DELTA
        for transaction in self.transactions:
            total = total + transaction.delta
        return total


class LedgerSnapshot(BaseModel):
    """Everything that is persisted: the unit of load/save."""

    model_config = ConfigDict(frozen=True)

    customers: tuple[Customer, ...] = ()
    shop_transactions: tuple[ShopTransaction, ...] = ()
    customer_id_counter: int = 0
    transaction_id_counter: int = 0
    live_rates: RateBook = RateBook.default()

    @classmethod
    def default(cls) -> LedgerSnapshot:
        return cls()

    @property
    def is_empty(self) -> bool:
        return (
            not self.customers
            and not self.shop_transactions
            and self.customer_id_counter == 0
            and self.transaction_id_counter == 0
            and self.live_rates == RateBook.default()
        )


__all__ = [
    "Customer",
    "CustomerProfile",
    "LedgerSnapshot",
    "PROFILE_FIELDS",
    "SHOP_ACCOUNT_NAME",
    "ShopTransaction",
    "Transaction",
]
