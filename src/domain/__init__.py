"""Domain models and the ledger engine for the jewellery shop khata.

This package holds the in-memory (Pydantic) models for customers, their
transactions and the shop account, the rules that classify a transaction into
cash/gold/silver deltas, and the engine that applies them. Persistence is
reached only through the protocols in `domain.persistence`, so business logic
and tests do not depend on any particular store.
"""

__all__ = [
    "base_types",
    "classifier",
    "details",
    "engine",
    "ledger",
    "persistence",
    "rates",
    "shop_account",
]
