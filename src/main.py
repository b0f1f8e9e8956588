from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date, datetime, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from config import AppSettings, config
from domain.base_types import CustomerId, LedgerError, Metal
from domain.engine import LedgerEngine
from domain.persistence import PersistenceError
from domain.rates import RateQuote
from importers.transactions_csv import import_transactions, load_transaction_rows
from services.ledger_factory import build_engine
from utils.balance_summary import compute_balance_summary, render_balance_summary
from utils.dues_summary import compute_expense_report, compute_market_dues, render_expense_report, render_market_dues
from utils.formatting import format_currency, format_weight
from utils.transaction_log import compute_transaction_log, render_transaction_log
from utils.volume_summary import (
    compute_business_volume,
    compute_daily_transaction_value,
    render_business_volume,
    render_daily_transaction_value,
)

logger = logging.getLogger(__name__)

PROFILE_OPTIONS = ("name", "phone", "pan", "notes", "photo_path", "aadhar_front_path", "aadhar_back_path")


def warn_if_unsaved(engine: LedgerEngine) -> None:
    if engine.last_save_error is not None:
        print(f"warning: changes are kept in memory only, save failed: {engine.last_save_error}", file=sys.stderr)


def print_customers(engine: LedgerEngine) -> None:
    print("Customers:")
    if not engine.customers:
        print("  (none)")
        return

    rows = [
        (
            str(customer.id),
            customer.name,
            customer.phone,
            format_currency(customer.cash_balance),
            format_weight(customer.gold_balance),
            format_weight(customer.silver_balance),
        )
        for customer in engine.customers
    ]
    labels = ("ID", "Name", "Phone", "Cash", "Gold", "Silver")
    widths = [max(len(label), max(len(row[index]) for row in rows)) for index, label in enumerate(labels)]

    header = " ".join(f"{label:<{width}}" for label, width in zip(labels, widths))
    lines = [header, "-" * len(header)]
    for row in rows:
        lines.append(" ".join(f"{value:<{width}}" for value, width in zip(row, widths)))
    print("\n".join(lines))


def print_rates(engine: LedgerEngine) -> None:
    print("Live rates:")
    for metal in Metal:
        quote = engine.live_rates.quote(metal)
        print(f"  {metal:<6} buy {format_currency(quote.buy):>12}  sell {format_currency(quote.sell):>12}")


def profile_changes(args: argparse.Namespace) -> dict[str, str]:
    return {name: value for name in PROFILE_OPTIONS if (value := getattr(args, name)) is not None}


def run_customers(engine: LedgerEngine, args: argparse.Namespace) -> None:
    if args.action == "list":
        print_customers(engine)
    elif args.action == "add":
        customer = engine.create_customer(profile_changes(args))
        print(f"Created customer {customer.id}: {customer.name}")
    elif args.action == "update":
        customer = engine.update_customer(CustomerId(args.id), profile_changes(args))
        print(f"Updated customer {customer.id}: {customer.name}")
    elif args.action == "delete":
        customer = engine.delete_customer(CustomerId(args.id))
        print(f"Deleted customer {customer.id}: {customer.name} ({len(customer.transactions)} transactions)")


def run_add_transaction(engine: LedgerEngine, args: argparse.Namespace) -> None:
    customer_id = None if args.customer is None else CustomerId(args.customer)
    recorded = engine.add_transaction(customer_id, {"category": args.category, "details": json.loads(args.details)})
    account = "shop account" if customer_id is None else f"customer {customer_id}"
    print(f"Recorded transaction {recorded.id} ({recorded.category}) for {account}")


def run_rates(engine: LedgerEngine, args: argparse.Namespace) -> None:
    if args.action == "set":
        engine.update_live_rates(args.metal, RateQuote(buy=args.buy, sell=args.sell))
    print_rates(engine)


def run_import(engine: LedgerEngine, args: argparse.Namespace) -> None:
    rows = load_transaction_rows(args.csv)
    recorded = import_transactions(engine, rows)
    print(f"Imported {len(recorded)} transactions from {args.csv}")


def run_report(engine: LedgerEngine, args: argparse.Namespace, settings: AppSettings) -> None:
    snapshot = engine.snapshot()
    tz = settings.report_tz

    if args.kind == "balances":
        render_balance_summary(compute_balance_summary(snapshot, args.start, args.end, tz=tz))
    elif args.kind == "dues":
        render_market_dues(compute_market_dues(snapshot))
    elif args.kind == "volume":
        render_business_volume(compute_business_volume(snapshot, top_n=args.top))
    elif args.kind == "daily":
        end = args.end or datetime.now(tz).date()
        start = args.start or end - timedelta(days=6)
        render_daily_transaction_value(compute_daily_transaction_value(snapshot, start, end, tz=tz))
    elif args.kind == "expenses":
        render_expense_report(compute_expense_report(snapshot))
    elif args.kind == "log":
        render_transaction_log(compute_transaction_log(snapshot))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Customer ledger for a jewellery shop: cash, gold and silver.")
    parser.add_argument("--backend", choices=("json", "sqlite"), help="Override the configured storage backend")
    parser.add_argument("--data-dir", type=Path, help="Override the configured data directory")
    commands = parser.add_subparsers(dest="command", required=True)

    customers = commands.add_parser("customers", help="Manage customer profiles")
    customer_actions = customers.add_subparsers(dest="action", required=True)
    customer_actions.add_parser("list")
    add = customer_actions.add_parser("add")
    add.add_argument("--name", required=True)
    add.add_argument("--phone", required=True)
    update = customer_actions.add_parser("update")
    update.add_argument("id", type=int)
    update.add_argument("--name")
    update.add_argument("--phone")
    for action in (add, update):
        for name in PROFILE_OPTIONS[2:]:
            action.add_argument(f"--{name.replace('_', '-')}", dest=name)
    delete = customer_actions.add_parser("delete")
    delete.add_argument("id", type=int)

    transaction = commands.add_parser("add-transaction", help="Record a transaction")
    transaction.add_argument("--customer", type=int, help="Customer id; omit to book on the shop account")
    transaction.add_argument("--category", required=True)
    transaction.add_argument("--details", required=True, help="Category details as a JSON object")

    rates = commands.add_parser("rates", help="Show or set live buy/sell rates")
    rate_actions = rates.add_subparsers(dest="action", required=True)
    rate_actions.add_parser("show")
    rate_set = rate_actions.add_parser("set")
    rate_set.add_argument("metal", choices=[metal.value for metal in Metal])
    rate_set.add_argument("buy", type=Decimal)
    rate_set.add_argument("sell", type=Decimal)

    batch = commands.add_parser("import", help="Import transactions from a CSV file")
    batch.add_argument("csv", type=Path)

    report = commands.add_parser("report", help="Print a report")
    report.add_argument("kind", choices=("balances", "dues", "volume", "daily", "expenses", "log"))
    report.add_argument("--from", dest="start", type=date.fromisoformat)
    report.add_argument("--to", dest="end", type=date.fromisoformat)
    report.add_argument("--top", type=int, default=10)

    commands.add_parser("clear-transactions", help="Remove all transactions, keep customer profiles")
    commands.add_parser("clear-all", help="Remove all data and reset rates")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    overrides = {
        key: value for key, value in (("storage_backend", args.backend), ("data_dir", args.data_dir)) if value
    }
    settings = config().model_copy(update=overrides) if overrides else config()
    logger.debug("Running %s with %s backend", args.command, settings.storage_backend)

    try:
        engine = build_engine(settings)
    except PersistenceError as err:
        parser.exit(1, f"error: could not load ledger: {err}\n")

    try:
        if args.command == "customers":
            run_customers(engine, args)
        elif args.command == "add-transaction":
            run_add_transaction(engine, args)
        elif args.command == "rates":
            run_rates(engine, args)
        elif args.command == "import":
            run_import(engine, args)
        elif args.command == "report":
            run_report(engine, args, settings)
        elif args.command == "clear-transactions":
            engine.clear_all_transactions()
            print("Cleared all transactions")
        elif args.command == "clear-all":
            engine.clear_all_data()
            print("Cleared all data")
    except (LedgerError, ValidationError, ValueError, OSError) as err:
        parser.exit(1, f"error: {err}\n")

    warn_if_unsaved(engine)


if __name__ == "__main__":
    logging.basicConfig(level=config().log_level, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    main()
