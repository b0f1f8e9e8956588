from dataclasses import dataclass, field
from decimal import Decimal

from domain.base_types import CustomerId, Metal, TransactionCategory
from domain.engine import LedgerEngine
from domain.ledger import Customer, LedgerSnapshot, ShopTransaction, Transaction
from domain.persistence import (
    META_CUSTOMER_ID_COUNTER,
    META_LIVE_RATES,
    META_TRANSACTION_ID_COUNTER,
    hydrate_ledger,
    load_ledger,
)
from domain.rates import RateBook, RateQuote
from tests.constants import ASHA, GOLD_RATE, RAVI
from tests.helpers.memory_gateway import MemoryGateway
from tests.helpers.payloads import movement, sale, tunch
from tests.helpers.time_utils import TimeGenerator


@dataclass
class FakeHydrator:
    customers: list[Customer] = field(default_factory=list)
    shop_transactions: list[ShopTransaction] = field(default_factory=list)
    meta: dict[str, str] = field(default_factory=dict)

    def list_customers(self) -> list[Customer]:
        return [customer.model_copy(update={"transactions": ()}) for customer in self.customers]

    def list_customer_transactions(self, customer_id: CustomerId) -> list[Transaction]:
        (customer,) = [c for c in self.customers if c.id == customer_id]
        return list(reversed(customer.transactions))

    def list_shop_transactions(self) -> list[ShopTransaction]:
        return list(self.shop_transactions)

    def read_meta(self, key: str) -> str | None:
        return self.meta.get(key)


def _populated_snapshot() -> LedgerSnapshot:
    ledger = LedgerEngine(gateway=MemoryGateway(), clock=TimeGenerator())
    asha = ledger.create_customer(ASHA)
    ravi = ledger.create_customer(RAVI)
    ledger.add_transaction(asha.id, sale("10", GOLD_RATE, "60000"))
    ledger.add_transaction(None, movement(TransactionCategory.CASH_IN, "500"))
    ledger.add_transaction(ravi.id, tunch("150"))
    ledger.add_transaction(asha.id, movement(TransactionCategory.CASH_IN, "4000"))
    return ledger.snapshot()


def test_load_prefers_snapshot_over_hydration() -> None:
    snapshot = _populated_snapshot()
    hydrator = FakeHydrator(customers=[snapshot.customers[0]])

    loaded = load_ledger(MemoryGateway(stored=snapshot), hydrator)

    assert loaded == snapshot


def test_load_falls_back_to_hydration_when_snapshot_missing() -> None:
    snapshot = _populated_snapshot()
    hydrator = FakeHydrator(customers=list(snapshot.customers), shop_transactions=list(snapshot.shop_transactions))

    loaded = load_ledger(MemoryGateway(), hydrator)

    assert loaded.customers == snapshot.customers
    assert loaded.shop_transactions == snapshot.shop_transactions
    assert loaded.customer_id_counter == 2
    assert loaded.transaction_id_counter == 4
    assert loaded.live_rates == RateBook.default()


def test_load_keeps_cleared_snapshot_over_stale_hydration() -> None:
    snapshot = _populated_snapshot()
    hydrator = FakeHydrator(customers=list(snapshot.customers), shop_transactions=list(snapshot.shop_transactions))

    loaded = load_ledger(MemoryGateway(stored=LedgerSnapshot.default()), hydrator)

    assert loaded == LedgerSnapshot.default()


def test_reopen_keeps_rates_set_before_any_customer() -> None:
    gateway = MemoryGateway()
    ledger = LedgerEngine(gateway=gateway, clock=TimeGenerator())
    ledger.update_live_rates(Metal.GOLD, RateQuote(buy=Decimal("7200"), sell=Decimal("7400")))

    reopened = LedgerEngine.open(gateway, FakeHydrator())

    assert reopened.live_rates.gold == RateQuote(buy=Decimal("7200"), sell=Decimal("7400"))
    assert not reopened.snapshot().is_empty


def test_load_defaults_when_nothing_stored() -> None:
    assert load_ledger(MemoryGateway(), FakeHydrator()) == LedgerSnapshot.default()
    assert load_ledger(MemoryGateway()) == LedgerSnapshot.default()


def test_hydration_refolds_balances_from_history() -> None:
    snapshot = _populated_snapshot()
    drifted = snapshot.customers[0].model_copy(update={"cash_balance": Decimal("999")})
    hydrator = FakeHydrator(customers=[drifted])

    hydrated = hydrate_ledger(hydrator)

    assert hydrated.customers[0].cash_balance == Decimal("-14000")
    assert hydrated.customers[0].balances == hydrated.customers[0].folded_balances()


def test_hydration_uses_larger_stored_counters_and_rates() -> None:
    snapshot = _populated_snapshot()
    rates = RateBook.default().with_quote(Metal.GOLD, RateQuote(buy=Decimal("7200"), sell=Decimal("7400")))
    hydrator = FakeHydrator(
        customers=list(snapshot.customers),
        meta={
            META_CUSTOMER_ID_COUNTER: "5",
            META_TRANSACTION_ID_COUNTER: "3",
            META_LIVE_RATES: rates.model_dump_json(),
        },
    )

    hydrated = hydrate_ledger(hydrator)

    assert hydrated.customer_id_counter == 5
    assert hydrated.transaction_id_counter == 4
    assert hydrated.live_rates == rates
