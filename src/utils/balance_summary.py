from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timezone, tzinfo
from decimal import Decimal

from domain.base_types import ZERO_DELTA, AssetDelta
from domain.ledger import Customer, LedgerSnapshot, ShopTransaction, Transaction

from .formatting import format_currency, format_weight


@dataclass
class AssetBalanceSummary:
    asset: str
    opening: Decimal
    net: Decimal
    closing: Decimal


@dataclass
class BalanceSummary:
    start: date | None
    end: date | None
    customer_count: int
    assets: list[AssetBalanceSummary] = field(default_factory=list)


def transaction_day(transaction: Transaction | ShopTransaction, tz: tzinfo) -> date:
    return transaction.timestamp.astimezone(tz).date()


def _opening_balances(customer: Customer, start: date | None, tz: tzinfo) -> AssetDelta:
    if start is None:
        return ZERO_DELTA
    # History is newest first, so the first record before `start` is the latest one.
    for transaction in customer.transactions:
        if transaction_day(transaction, tz) < start:
            return transaction.balances_after
    return ZERO_DELTA


def _in_range(day: date, start: date | None, end: date | None) -> bool:
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def compute_balance_summary(
    snapshot: LedgerSnapshot,
    start: date | None = None,
    end: date | None = None,
    *,
    tz: tzinfo = timezone.utc,
) -> BalanceSummary:
    """Opening, net movement and closing balances across all customers for an inclusive day range."""
    if start is not None and end is not None and start > end:
        msg = f"Range start {start} is after range end {end}"
        raise ValueError(msg)

    opening = ZERO_DELTA
    net = ZERO_DELTA
    for customer in snapshot.customers:
        opening = opening + _opening_balances(customer, start, tz)
        for transaction in customer.transactions:
            if _in_range(transaction_day(transaction, tz), start, end):
                net = net + transaction.delta

    closing = opening + net
    return BalanceSummary(
        start=start,
        end=end,
        customer_count=len(snapshot.customers),
        assets=[
            AssetBalanceSummary(
                asset=asset,
                opening=getattr(opening, asset),
                net=getattr(net, asset),
                closing=getattr(closing, asset),
            )
            for asset in AssetDelta._fields
        ],
    )


def _format_amount(asset: str, value: Decimal) -> str:
    if asset == "cash":
        return format_currency(value)
    return format_weight(value)


def render_balance_summary(summary: BalanceSummary) -> None:
    period = f"{summary.start or 'beginning'} → {summary.end or 'today'}"
    print(f"Customer balances ({summary.customer_count} customers, {period}):")

    rows = [
        (
            asset.asset,
            _format_amount(asset.asset, asset.opening),
            _format_amount(asset.asset, asset.net),
            _format_amount(asset.asset, asset.closing),
        )
        for asset in summary.assets
    ]

    asset_width = max(len("Asset"), max((len(row[0]) for row in rows), default=0))
    opening_width = max(len("Opening"), max((len(row[1]) for row in rows), default=0))
    net_width = max(len("Net"), max((len(row[2]) for row in rows), default=0))
    closing_width = max(len("Closing"), max((len(row[3]) for row in rows), default=0))

    header = (
        f"{'Asset':<{asset_width}} "
        f"{'Opening':>{opening_width}} "
        f"{'Net':>{net_width}} "
        f"{'Closing':>{closing_width}}"
    )
    lines = [header, "-" * len(header)]
    for asset, opening, net, closing in rows:
        lines.append(
            f"{asset:<{asset_width}} {opening:>{opening_width}} {net:>{net_width}} {closing:>{closing_width}}"
        )

    print("\n".join(lines))
