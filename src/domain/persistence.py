from __future__ import annotations

import logging
from typing import Protocol

from .base_types import CustomerId
from .ledger import Customer, LedgerSnapshot, ShopTransaction, Transaction
from .rates import RateBook

logger = logging.getLogger(__name__)

META_CUSTOMER_ID_COUNTER = "customer_id_counter"
META_TRANSACTION_ID_COUNTER = "transaction_id_counter"
META_LIVE_RATES = "live_rates"


class PersistenceError(Exception):
    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class LedgerGateway(Protocol):
    """Whole-snapshot storage used by the ledger engine.

    Implementations report every storage failure as `PersistenceError`. The engine
    keeps working in memory on a failed save; any other exception type reaches the
    caller after the mutation has already been applied.
    """

    def load(self) -> LedgerSnapshot | None: ...

    def save(self, snapshot: LedgerSnapshot) -> None: ...


class LedgerHydrator(Protocol):
    """Per-entity reads, used only when no snapshot is available."""

    def list_customers(self) -> list[Customer]: ...

    def list_customer_transactions(self, customer_id: CustomerId) -> list[Transaction]: ...

    def list_shop_transactions(self) -> list[ShopTransaction]: ...

    def read_meta(self, key: str) -> str | None: ...


def load_ledger(gateway: LedgerGateway, hydrator: LedgerHydrator | None = None) -> LedgerSnapshot:
    """Startup procedure: snapshot, else per-entity hydration, else the default ledger.

    Any stored snapshot wins outright, even one that only carries rates or was
    just cleared; hydration runs only when the gateway has nothing stored.
    Results are never merged.
    """
    snapshot = gateway.load()
    if snapshot is not None:
        logger.info(
            "Loaded ledger snapshot: %d customers, %d shop transactions",
            len(snapshot.customers),
            len(snapshot.shop_transactions),
        )
        return snapshot

    if hydrator is not None:
        hydrated = hydrate_ledger(hydrator)
        if not hydrated.is_empty:
            logger.info(
                "Hydrated ledger per entity: %d customers, %d shop transactions",
                len(hydrated.customers),
                len(hydrated.shop_transactions),
            )
            return hydrated

    logger.info("No stored ledger found, starting from defaults")
    return LedgerSnapshot.default()


def hydrate_ledger(hydrator: LedgerHydrator) -> LedgerSnapshot:
    customers: list[Customer] = []
    max_transaction_id = 0
    for stored in hydrator.list_customers():
        history = sorted(hydrator.list_customer_transactions(stored.id), key=lambda tx: tx.timestamp, reverse=True)
        customer = stored.model_copy(update={"transactions": tuple(history)})
        folded = customer.folded_balances()
        if folded != customer.balances:
            logger.warning(
                "Customer %s stored balances %s disagree with history %s; using history",
                customer.id,
                tuple(customer.balances),
                tuple(folded),
            )
        customers.append(
            customer.model_copy(
                update={"cash_balance": folded.cash, "gold_balance": folded.gold, "silver_balance": folded.silver}
            )
        )
        max_transaction_id = max([max_transaction_id, *(tx.id for tx in history)])

    shop_transactions = sorted(hydrator.list_shop_transactions(), key=lambda tx: tx.timestamp, reverse=True)
    max_transaction_id = max([max_transaction_id, *(tx.id for tx in shop_transactions)])
    max_customer_id = max((customer.id for customer in customers), default=0)

    rates_raw = hydrator.read_meta(META_LIVE_RATES)
    live_rates = RateBook.model_validate_json(rates_raw) if rates_raw else RateBook.default()

    customers.sort(key=lambda customer: customer.id)
    return LedgerSnapshot(
        customers=tuple(customers),
        shop_transactions=tuple(shop_transactions),
        customer_id_counter=max(max_customer_id, _read_counter(hydrator, META_CUSTOMER_ID_COUNTER)),
        transaction_id_counter=max(max_transaction_id, _read_counter(hydrator, META_TRANSACTION_ID_COUNTER)),
        live_rates=live_rates,
    )


def _read_counter(hydrator: LedgerHydrator, key: str) -> int:
    raw = hydrator.read_meta(key)
    return int(raw) if raw else 0


__all__ = [
    "LedgerGateway",
    "LedgerHydrator",
    "META_CUSTOMER_ID_COUNTER",
    "META_LIVE_RATES",
    "META_TRANSACTION_ID_COUNTER",
    "PersistenceError",
    "hydrate_ledger",
    "load_ledger",
]
