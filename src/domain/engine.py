from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping

from .base_types import CustomerId, LedgerError, Metal, TransactionId
from .classifier import classify_payload
from .details import TransactionPayload
from .ledger import PROFILE_FIELDS, Customer, CustomerProfile, LedgerSnapshot, ShopTransaction, Transaction
from .persistence import LedgerGateway, LedgerHydrator, PersistenceError, load_ledger
from .rates import RateBook, RateQuote
from .shop_account import ShopAccount

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

PROTECTED_FIELDS = frozenset({"id", "cash_balance", "gold_balance", "silver_balance", "transactions"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CustomerNotFoundError(LedgerError):
    def __init__(self, customer_id: CustomerId) -> None:
        self.customer_id = customer_id
        super().__init__(f"Customer {customer_id} does not exist")


class ProtectedFieldError(LedgerError):
    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = sorted(fields)
        super().__init__(f"Fields derived from transaction history cannot be set: {', '.join(self.fields)}")


class LedgerEngine:
    """Owns customer balances, transaction history and the shop account.

    Every mutation runs to completion and then saves a snapshot through the
    gateway. A failed save is logged and kept in `last_save_error`; the
    in-memory ledger stays authoritative and is never rolled back.

    State is replaced, never edited in place: a customer update swaps in a new
    frozen `Customer`, so a `snapshot()` taken by a reader is never partial.
    Mutations and snapshots hold one re-entrant lock, so concurrent callers are
    applied one at a time, each together with its save.
    """

    def __init__(
        self,
        snapshot: LedgerSnapshot | None = None,
        *,
        gateway: LedgerGateway,
        clock: Clock = utc_now,
    ) -> None:
        self._gateway = gateway
        self._clock = clock
        self._lock = threading.RLock()
        self._last_save_error: PersistenceError | None = None
        self._restore(snapshot or LedgerSnapshot.default())

    @classmethod
    def open(
        cls,
        gateway: LedgerGateway,
        hydrator: LedgerHydrator | None = None,
        *,
        clock: Clock = utc_now,
    ) -> LedgerEngine:
        return cls(load_ledger(gateway, hydrator), gateway=gateway, clock=clock)

    # Read access

    @property
    def customers(self) -> tuple[Customer, ...]:
        with self._lock:
            return tuple(self._customers.values())

    @property
    def shop_transactions(self) -> tuple[ShopTransaction, ...]:
        return self._shop.transactions

    @property
    def shop_cash_balance(self) -> Decimal:
        return self._shop.cash_balance

    @property
    def live_rates(self) -> RateBook:
        return self._live_rates

    @property
    def last_save_error(self) -> PersistenceError | None:
        return self._last_save_error

    def get_customer(self, customer_id: CustomerId) -> Customer | None:
        return self._customers.get(customer_id)

    def snapshot(self) -> LedgerSnapshot:
        with self._lock:
            return LedgerSnapshot(
                customers=self.customers,
                shop_transactions=self._shop.transactions,
                customer_id_counter=self._customer_id_counter,
                transaction_id_counter=self._transaction_id_counter,
                live_rates=self._live_rates,
            )

    # Customers

    def create_customer(self, profile: CustomerProfile | Mapping[str, Any]) -> Customer:
        if not isinstance(profile, CustomerProfile):
            profile = CustomerProfile.model_validate(profile)

        with self._lock:
            customer_id = CustomerId(self._customer_id_counter + 1)
            customer = Customer(id=customer_id, **profile.model_dump())
            self._customer_id_counter = customer_id
            self._customers[customer_id] = customer

            logger.info("Created customer %s (%s)", customer_id, customer.name)
            self._persist()
        return customer

    def update_customer(self, customer_id: CustomerId, changes: Mapping[str, Any]) -> Customer:
        protected = PROTECTED_FIELDS & set(changes)
        if protected:
            raise ProtectedFieldError(protected)

        with self._lock:
            current = self._require_customer(customer_id)
            profile = CustomerProfile.model_validate({**current.profile.model_dump(), **changes})
            updated = current.model_copy(update={name: getattr(profile, name) for name in PROFILE_FIELDS})
            self._customers[customer_id] = updated

            logger.info("Updated customer %s: %s", customer_id, ", ".join(sorted(changes)))
            self._persist()
        return updated

    def delete_customer(self, customer_id: CustomerId) -> Customer:
        with self._lock:
            removed = self._require_customer(customer_id)
            del self._customers[customer_id]

            logger.info("Deleted customer %s with %d transactions", customer_id, len(removed.transactions))
            self._persist()
        return removed

    # Transactions

    def add_transaction(
        self,
        customer_id: CustomerId | None,
        payload: TransactionPayload | Mapping[str, Any],
    ) -> Transaction | ShopTransaction:
        """Record a transaction for a customer, or for the shop when `customer_id` is None."""
        if not isinstance(payload, TransactionPayload):
            payload = TransactionPayload.model_validate(payload)

        with self._lock:
            transaction_id = TransactionId(self._transaction_id_counter + 1)
            timestamp = self._clock()

            recorded: Transaction | ShopTransaction
            if customer_id is None:
                recorded = self._shop.record(payload, transaction_id=transaction_id, timestamp=timestamp)
            else:
                recorded = self._record_for_customer(customer_id, payload, transaction_id, timestamp)
            self._transaction_id_counter = transaction_id

            logger.debug(
                "Recorded transaction %s %s for %s",
                recorded.id,
                recorded.category,
                "shop" if customer_id is None else f"customer {customer_id}",
            )
            self._persist()
        return recorded

    def _record_for_customer(
        self,
        customer_id: CustomerId,
        payload: TransactionPayload,
        transaction_id: TransactionId,
        timestamp: datetime,
    ) -> Transaction:
        customer = self._require_customer(customer_id)
        delta = classify_payload(payload)
        after = customer.balances + delta

        transaction = Transaction(
            id=transaction_id,
            timestamp=timestamp,
            category=payload.category,
            details=payload.details,
            cash_change=delta.cash,
            gold_change=delta.gold,
            silver_change=delta.silver,
            cash_balance_after=after.cash,
            gold_balance_after=after.gold,
            silver_balance_after=after.silver,
        )
        # Stable sort keeps the new record ahead of any record with the same timestamp.
        history = sorted([transaction, *customer.transactions], key=lambda tx: tx.timestamp, reverse=True)
        self._customers[customer_id] = customer.model_copy(
            update={
                "cash_balance": after.cash,
                "gold_balance": after.gold,
                "silver_balance": after.silver,
                "transactions": tuple(history),
            }
        )
        return transaction

    # Rates

    def update_live_rates(self, metal: Metal | str, quote: RateQuote | Mapping[str, Any]) -> RateBook:
        metal = Metal(metal)
        if not isinstance(quote, RateQuote):
            quote = RateQuote.model_validate(quote)

        with self._lock:
            self._live_rates = self._live_rates.with_quote(metal, quote)
            logger.info("Updated %s rates: buy=%s sell=%s", metal, quote.buy, quote.sell)
            self._persist()
            return self._live_rates

    # Bulk resets

    def clear_all_transactions(self) -> None:
        """Drop every transaction and zero all balances; customer profiles stay."""
        with self._lock:
            self._customers = {
                customer_id: Customer(id=customer_id, **customer.profile.model_dump())
                for customer_id, customer in self._customers.items()
            }
            self._shop.clear()
            self._transaction_id_counter = 0

            logger.info("Cleared all transactions for %d customers", len(self._customers))
            self._persist()

    def clear_all_data(self) -> None:
        with self._lock:
            self._restore(LedgerSnapshot.default())
            logger.info("Cleared all ledger data")
            self._persist()

    # Internals

    def _restore(self, snapshot: LedgerSnapshot) -> None:
        self._customers: dict[CustomerId, Customer] = {customer.id: customer for customer in snapshot.customers}
        self._shop = ShopAccount(snapshot.shop_transactions)
        self._customer_id_counter = snapshot.customer_id_counter
        self._transaction_id_counter = snapshot.transaction_id_counter
        self._live_rates = snapshot.live_rates

    def _require_customer(self, customer_id: CustomerId) -> Customer:
        customer = self._customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def _persist(self) -> None:
        try:
            self._gateway.save(self.snapshot())
        except PersistenceError as err:
            logger.warning("Ledger snapshot was not saved (%s): %s", err.operation, err)
            self._last_save_error = err
        else:
            self._last_save_error = None


__all__ = [
    "Clock",
    "CustomerNotFoundError",
    "LedgerEngine",
    "PROTECTED_FIELDS",
    "ProtectedFieldError",
    "utc_now",
]
