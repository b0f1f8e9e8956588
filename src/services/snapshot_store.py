from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import ValidationError

from domain.ledger import LedgerSnapshot
from domain.persistence import LedgerGateway, PersistenceError

logger = logging.getLogger(__name__)


class JsonSnapshotStore(LedgerGateway):
    """Keeps the whole ledger as a single JSON document on disk."""

    def __init__(self, *, path: Path) -> None:
        self.path = path

    def load(self) -> LedgerSnapshot | None:
        if not self.path.exists():
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as err:
            raise PersistenceError(f"Could not read {self.path}: {err}", operation="load") from err

        if not raw.strip():
            return None

        try:
            snapshot = LedgerSnapshot.model_validate_json(raw)
        except ValidationError as err:
            raise PersistenceError(f"Snapshot {self.path} is not a valid ledger: {err}", operation="load") from err

        logger.info("Read ledger snapshot from %s", self.path)
        return snapshot

    def save(self, snapshot: LedgerSnapshot) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                handle.write(snapshot.model_dump_json(indent=2))
                handle.write("\n")
            os.replace(tmp_path, self.path)
        except OSError as err:
            raise PersistenceError(f"Could not write {self.path}: {err}", operation="save") from err


__all__ = ["JsonSnapshotStore"]
