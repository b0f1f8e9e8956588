from __future__ import annotations

import logging

from config import AppSettings
from db.db import init_db
from db.repositories import SqlLedgerStore
from domain.engine import LedgerEngine
from domain.persistence import LedgerHydrator
from services.snapshot_store import JsonSnapshotStore

logger = logging.getLogger(__name__)


def build_engine(settings: AppSettings) -> LedgerEngine:
    """Open the ledger on the configured primary store.

    With the JSON backend an existing database is used as the per-entity fallback
    when the snapshot file is missing or empty.
    """
    if settings.storage_backend == "sqlite":
        logger.info("Opening ledger database at %s", settings.db_path)
        store = SqlLedgerStore(init_db(db_file=settings.db_path))
        return LedgerEngine.open(store)

    gateway = JsonSnapshotStore(path=settings.snapshot_path)
    hydrator: LedgerHydrator | None = None
    if settings.db_path.exists():
        hydrator = SqlLedgerStore(init_db(db_file=settings.db_path))
    logger.info("Opening ledger snapshot at %s", settings.snapshot_path)
    return LedgerEngine.open(gateway, hydrator)
