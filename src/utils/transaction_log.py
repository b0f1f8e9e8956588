from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from domain.base_types import ZERO, TransactionCategory, TransactionId
from domain.ledger import SHOP_ACCOUNT_NAME, LedgerSnapshot

from .formatting import format_currency, format_weight


@dataclass
class LogEntry:
    transaction_id: TransactionId
    timestamp: datetime
    account: str
    category: TransactionCategory
    cash_change: Decimal
    gold_change: Decimal
    silver_change: Decimal


def compute_transaction_log(snapshot: LedgerSnapshot) -> list[LogEntry]:
    """Every customer and shop transaction, newest first."""
    entries = [
        LogEntry(
            transaction_id=tx.id,
            timestamp=tx.timestamp,
            account=customer.name,
            category=tx.category,
            cash_change=tx.cash_change,
            gold_change=tx.gold_change,
            silver_change=tx.silver_change,
        )
        for customer in snapshot.customers
        for tx in customer.transactions
    ]
    entries.extend(
        LogEntry(
            transaction_id=tx.id,
            timestamp=tx.timestamp,
            account=SHOP_ACCOUNT_NAME,
            category=tx.category,
            cash_change=tx.cash_change,
            gold_change=ZERO,
            silver_change=ZERO,
        )
        for tx in snapshot.shop_transactions
    )
    entries.sort(key=lambda entry: (entry.timestamp, entry.transaction_id), reverse=True)
    return entries


def render_transaction_log(entries: list[LogEntry]) -> None:
    print("All transactions:")
    if not entries:
        print("  (no transactions)")
        return

    rows = [
        (
            str(entry.transaction_id),
            entry.timestamp.strftime("%Y-%m-%d %H:%M"),
            entry.account,
            str(entry.category),
            format_currency(entry.cash_change),
            format_weight(entry.gold_change),
            format_weight(entry.silver_change),
        )
        for entry in entries
    ]
    labels = ("ID", "Time", "Account", "Category", "Cash", "Gold", "Silver")
    widths = [max(len(label), max(len(row[index]) for row in rows)) for index, label in enumerate(labels)]

    def line(values: tuple[str, ...]) -> str:
        # Text columns left aligned, numbers right aligned.
        cells = [
            f"{value:<{width}}" if index in (1, 2, 3) else f"{value:>{width}}"
            for index, (value, width) in enumerate(zip(values, widths))
        ]
        return " ".join(cells)

    header = line(labels)
    lines = [header, "-" * len(header)]
    lines.extend(line(row) for row in rows)
    print("\n".join(lines))
