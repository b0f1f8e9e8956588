from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from domain.base_types import ZERO, CustomerId, TransactionCategory
from domain.ledger import LedgerSnapshot

from .formatting import format_currency

DEFAULT_EXPENSE_CATEGORY = "general"


@dataclass
class CustomerDue:
    customer_id: CustomerId
    name: str
    cash_balance: Decimal


@dataclass
class MarketDues:
    customers: list[CustomerDue] = field(default_factory=list)
    total: Decimal = ZERO


def compute_market_dues(snapshot: LedgerSnapshot) -> MarketDues:
    """Customers whose cash balance is negative, i.e. who owe the shop money."""
    dues = [
        CustomerDue(customer_id=customer.id, name=customer.name, cash_balance=customer.cash_balance)
        for customer in snapshot.customers
        if customer.cash_balance < 0
    ]
    dues.sort(key=lambda due: (due.cash_balance, due.customer_id))
    return MarketDues(customers=dues, total=sum((due.cash_balance for due in dues), start=ZERO))


@dataclass
class ExpenseCategory:
    name: str
    count: int
    total: Decimal


def expense_category(remarks: str | None) -> str:
    words = (remarks or "").split()
    if not words:
        return DEFAULT_EXPENSE_CATEGORY
    return words[0].lower()


def compute_expense_report(snapshot: LedgerSnapshot) -> list[ExpenseCategory]:
    """Shop cash outflows grouped by the first word of their remarks, largest total first."""
    totals: dict[str, tuple[int, Decimal]] = {}
    for transaction in snapshot.shop_transactions:
        if transaction.category != TransactionCategory.CASH_OUT:
            continue
        name = expense_category(transaction.details.remarks)
        count, total = totals.get(name, (0, ZERO))
        totals[name] = (count + 1, total + transaction.details.amount)

    report = [ExpenseCategory(name=name, count=count, total=total) for name, (count, total) in totals.items()]
    report.sort(key=lambda row: (-row.total, row.name))
    return report


def render_market_dues(dues: MarketDues) -> None:
    print("Market dues:")
    if not dues.customers:
        print("  (no outstanding dues)")
        return

    rows = [(str(due.customer_id), due.name, format_currency(-due.cash_balance)) for due in dues.customers]
    total_text = format_currency(-dues.total)

    id_width = max(len("ID"), max((len(row[0]) for row in rows), default=0))
    name_width = max(len("Customer"), max((len(row[1]) for row in rows), default=0))
    due_width = max(len("Due"), len(total_text), max((len(row[2]) for row in rows), default=0))

    header = f"{'ID':>{id_width}} {'Customer':<{name_width}} {'Due':>{due_width}}"
    lines = [header, "-" * len(header)]
    for customer_id, name, due in rows:
        lines.append(f"{customer_id:>{id_width}} {name:<{name_width}} {due:>{due_width}}")
    lines.append("-" * len(header))
    lines.append(f"{'':>{id_width}} {'Total':<{name_width}} {total_text:>{due_width}}")

    print("\n".join(lines))


def render_expense_report(report: list[ExpenseCategory]) -> None:
    print("Shop expenses:")
    if not report:
        print("  (no expenses)")
        return

    name_width = max(len("Category"), max((len(row.name) for row in report), default=0))
    count_width = max(len("Entries"), max((len(str(row.count)) for row in report), default=0))
    total_width = max(len("Total"), max((len(format_currency(row.total)) for row in report), default=0))

    header = f"{'Category':<{name_width}} {'Entries':>{count_width}} {'Total':>{total_width}}"
    lines = [header, "-" * len(header)]
    for row in report:
        lines.append(f"{row.name:<{name_width}} {row.count:>{count_width}} {format_currency(row.total):>{total_width}}")

    print("\n".join(lines))
