from __future__ import annotations

import csv
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from domain.base_types import CustomerId
from domain.details import TransactionPayload
from domain.engine import CustomerNotFoundError, LedgerEngine
from domain.ledger import ShopTransaction, Transaction
from domain.shop_account import ShopAccount

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = frozenset({"category", "details"})


@dataclass(frozen=True)
class ImportRow:
    line: int
    customer_id: CustomerId | None
    payload: TransactionPayload


class TransactionImportError(ValueError):
    def __init__(self, csv_path: Path, line: int, reason: str) -> None:
        self.csv_path = csv_path
        self.line = line
        super().__init__(f"{csv_path}:{line}: {reason}")


def load_transaction_rows(csv_path: Path) -> list[ImportRow]:
    """Read and validate a batch of transactions.

    Each row should contain: category,details[,customer_id]
    `details` is a JSON object; a blank `customer_id` books the row on the shop account.
    Every row is validated before any is returned, so a bad row rejects the whole file.
    """
    with csv_path.open(newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"Transaction CSV {csv_path} is empty or missing headers")

        missing = REQUIRED_COLUMNS - set(reader.fieldnames)
        if missing:
            raise ValueError(f"Transaction CSV {csv_path} missing required columns: {', '.join(sorted(missing))}")

        rows: list[ImportRow] = []
        for row in reader:
            line = reader.line_num
            rows.append(
                ImportRow(
                    line=line,
                    customer_id=_parse_customer_id(csv_path, line, row.get("customer_id")),
                    payload=_parse_payload(csv_path, line, row),
                )
            )

    logger.info("Validated %d transaction rows from %s", len(rows), csv_path)
    return rows


def import_transactions(engine: LedgerEngine, rows: list[ImportRow]) -> list[Transaction | ShopTransaction]:
    """Apply validated rows in file order.

    Rows are checked against the ledger first: unknown customers and non-cash shop rows
    fail the batch before any transaction is recorded.
    """
    for row in rows:
        if row.customer_id is None:
            ShopAccount.ensure_accepts(row.payload.category)
        elif engine.get_customer(row.customer_id) is None:
            raise CustomerNotFoundError(row.customer_id)

    recorded = [engine.add_transaction(row.customer_id, row.payload) for row in rows]
    logger.info("Imported %d transactions", len(recorded))
    return recorded


def _parse_customer_id(csv_path: Path, line: int, raw: str | None) -> CustomerId | None:
    if raw is None or not raw.strip():
        return None
    try:
        value = int(raw.strip())
    except ValueError as err:
        raise TransactionImportError(csv_path, line, f"customer_id {raw!r} is not an integer") from err
    if value <= 0:
        raise TransactionImportError(csv_path, line, f"customer_id must be positive, got {value}")
    return CustomerId(value)


def _parse_payload(csv_path: Path, line: int, row: dict[str, str]) -> TransactionPayload:
    try:
        details = json.loads(row["details"] or "{}")
    except json.JSONDecodeError as err:
        raise TransactionImportError(csv_path, line, f"details is not valid JSON: {err.msg}") from err

    try:
        return TransactionPayload.model_validate({"category": (row["category"] or "").strip(), "details": details})
    except ValidationError as err:
        raise TransactionImportError(csv_path, line, f"invalid transaction: {err}") from err
