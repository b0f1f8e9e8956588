from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta, timezone, tzinfo
from decimal import Decimal

from domain.base_types import CASH_CATEGORIES, ZERO, CustomerId, TransactionCategory
from domain.details import MetalExchangeDetails, MovementDetails, TradeDetails, TransactionDetails, TunchDetails
from domain.ledger import LedgerSnapshot

from .balance_summary import transaction_day
from .formatting import format_currency


def business_value(details: TransactionDetails) -> Decimal:
    """Turnover a customer transaction contributes to the customer's business volume."""
    if isinstance(details, TradeDetails):
        return details.total_amount
    if isinstance(details, MetalExchangeDetails):
        return abs(details.value_of_difference)
    if isinstance(details, TunchDetails):
        return details.tunch_charges
    return ZERO


def transaction_value(category: TransactionCategory, details: TransactionDetails) -> Decimal:
    """Cash value of a transaction as counted on the daily activity chart."""
    if isinstance(details, TradeDetails):
        return details.total_amount
    if isinstance(details, MetalExchangeDetails):
        return abs(details.final_amount)
    if isinstance(details, TunchDetails):
        return details.tunch_charges
    if isinstance(details, MovementDetails) and category in CASH_CATEGORIES:
        return details.amount
    return ZERO


@dataclass
class CustomerVolume:
    customer_id: CustomerId
    name: str
    transactions: int
    volume: Decimal


def compute_business_volume(snapshot: LedgerSnapshot, top_n: int = 10) -> list[CustomerVolume]:
    """Customers ranked by trading volume, highest first; customers without volume are left out."""
    if top_n < 0:
        msg = f"top_n must be >= 0, got {top_n}"
        raise ValueError(msg)

    ranking: list[CustomerVolume] = []
    for customer in snapshot.customers:
        volume = ZERO
        counted = 0
        for transaction in customer.transactions:
            value = business_value(transaction.details)
            if value:
                volume += value
                counted += 1
        if volume > 0:
            ranking.append(
                CustomerVolume(customer_id=customer.id, name=customer.name, transactions=counted, volume=volume)
            )

    ranking.sort(key=lambda row: (-row.volume, row.customer_id))
    return ranking[:top_n]


@dataclass
class DailyTransactionValue:
    day: date
    transactions: int
    total: Decimal


def compute_daily_transaction_value(
    snapshot: LedgerSnapshot,
    start: date,
    end: date,
    *,
    tz: tzinfo = timezone.utc,
) -> list[DailyTransactionValue]:
    """Summed transaction value per calendar day, customer and shop records together."""
    if start > end:
        msg = f"Range start {start} is after range end {end}"
        raise ValueError(msg)

    buckets: dict[date, tuple[int, Decimal]] = {}
    day = start
    while day <= end:
        buckets[day] = (0, ZERO)
        day += timedelta(days=1)

    records = [tx for customer in snapshot.customers for tx in customer.transactions]
    for transaction in [*records, *snapshot.shop_transactions]:
        day = transaction_day(transaction, tz)
        if day not in buckets:
            continue
        count, total = buckets[day]
        buckets[day] = (count + 1, total + transaction_value(transaction.category, transaction.details))

    return [DailyTransactionValue(day=day, transactions=count, total=total) for day, (count, total) in buckets.items()]


def render_business_volume(ranking: list[CustomerVolume]) -> None:
    print("Top customers by business volume:")
    if not ranking:
        print("  (no business recorded)")
        return

    rank_width = max(len("#"), len(str(len(ranking))))
    name_width = max(len("Customer"), max((len(row.name) for row in ranking), default=0))
    count_width = max(len("Entries"), max((len(str(row.transactions)) for row in ranking), default=0))
    volume_width = max(len("Volume"), max((len(format_currency(row.volume)) for row in ranking), default=0))

    header = f"{'#':>{rank_width}} {'Customer':<{name_width}} {'Entries':>{count_width}} {'Volume':>{volume_width}}"
    lines = [header, "-" * len(header)]
    for rank, row in enumerate(ranking, start=1):
        lines.append(
            f"{rank:>{rank_width}} "
            f"{row.name:<{name_width}} "
            f"{row.transactions:>{count_width}} "
            f"{format_currency(row.volume):>{volume_width}}"
        )

    print("\n".join(lines))


def render_daily_transaction_value(days: list[DailyTransactionValue]) -> None:
    print("Daily transaction value:")
    if not days:
        print("  (empty range)")
        return

    day_width = max(len("Day"), max((len(str(row.day)) for row in days), default=0))
    count_width = max(len("Entries"), max((len(str(row.transactions)) for row in days), default=0))
    total_width = max(len("Value"), max((len(format_currency(row.total)) for row in days), default=0))

    header = f"{'Day':<{day_width}} {'Entries':>{count_width}} {'Value':>{total_width}}"
    lines = [header, "-" * len(header)]
    for row in days:
        lines.append(
            f"{str(row.day):<{day_width}} {row.transactions:>{count_width}} {format_currency(row.total):>{total_width}}"
        )

    print("\n".join(lines))
