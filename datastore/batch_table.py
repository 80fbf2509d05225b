"""Thread-safe keyed store for batch scoring results."""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Optional

from app.schemas import BatchResult, BatchStatus, RowError
from settings import get_settings

logger = logging.getLogger(__name__)

_UNFINISHED_STATUSES = {BatchStatus.uploaded, BatchStatus.processing}
_INTERRUPTED_REASON = "Batch was interrupted before scoring finished."


class BatchTable:

    def __init__(self, name: str, persistence_path: Optional[Path] = None) -> None:
        self.name = name
        self.persistence_path = persistence_path
        self._records: Dict[str, BatchResult] = {}
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load()

    def put(self, record: BatchResult) -> None:
        with self._lock:
            self._records[record.batch_id] = record.model_copy(deep=True)
            self._flush()

    def get(self, batch_id: str) -> Optional[BatchResult]:
        with self._lock:
            record = self._records.get(batch_id)
            return record.model_copy(deep=True) if record is not None else None

    def scan(self) -> list[BatchResult]:
        """Return deep copies of every stored batch record."""
        with self._lock:
            return [record.model_copy(deep=True) for record in self._records.values()]

    def _flush(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            batch_id: record.model_dump(mode="json")
            for batch_id, record in self._records.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            data = json.loads(self.persistence_path.read_text() or "{}")
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable batch table file %s", self.persistence_path
            )
            data = {}

        for batch_id, payload in data.items():
            record = BatchResult.model_validate(payload)
            if record.status in _UNFINISHED_STATUSES:
                # Left behind by a process that stopped mid-batch.
                record = record.model_copy(
                    update={
                        "status": BatchStatus.failed,
                        "errors": [*record.errors, RowError(row_number=1, reason=_INTERRUPTED_REASON)],
                    }
                )
                logger.warning(
                    "Marking interrupted batch as failed",
                    extra={"batch_id": batch_id, "status": BatchStatus.failed.value},
                )
            self._records[batch_id] = record


@lru_cache
def build_default_table(
    name: Optional[str] = None,
    path: Optional[str] = None,
) -> BatchTable:
    settings = get_settings()
    table_name = settings.table_name if name is None else name
    table_path = settings.table_persistence_path if path is None else path
    return BatchTable(name=table_name, persistence_path=Path(table_path) if table_path else None)
