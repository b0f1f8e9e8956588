"""Importers for batches of ledger transactions."""

from importers.transactions_csv import ImportRow, TransactionImportError, import_transactions, load_transaction_rows

__all__ = ["ImportRow", "TransactionImportError", "import_transactions", "load_transaction_rows"]
