"""Background scoring of CSV telemetry exports."""

from __future__ import annotations

import csv
import io
import logging
import math
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from fastapi import BackgroundTasks, UploadFile

from app.schemas import BatchResult, BatchStatus, BatchSummary, RowError, RowScore
from datastore.batch_table import BatchTable, build_default_table
from models.records import METRIC_NAMES, ScoreResult, SensorReading
from services.aggregator import ScoreAggregator
from services.soil_health import SoilHealthCalculator
from settings import get_settings

logger = logging.getLogger(__name__)

_READING_ID_COLUMN = "reading_id"
_CANCELLED_REASON = "Batch cancelled before scoring started."


class RowRejected(ValueError):
    """A CSV row that cannot be turned into a reading."""


class BatchScoringService:
    """Stores uploaded batches, scores them on a worker pool, and serves results."""

    def __init__(
        self,
        table: BatchTable,
        calculator: SoilHealthCalculator,
        aggregator: ScoreAggregator,
        workers: int = 4,
    ) -> None:
        self.table = table
        self.calculator = calculator
        self.aggregator = aggregator
        self.executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="batch")
        self._futures: Dict[str, Future[None]] = {}
        self._futures_lock = Lock()

    def enqueue_batch(self, background_tasks: BackgroundTasks, file: UploadFile) -> str:
        """Record the upload and submit it for scoring."""
        batch_id = str(uuid4())
        filename = Path(file.filename or "readings.csv").name

        file.file.seek(0)
        contents = file.file.read()
        if isinstance(contents, str):
            contents = contents.encode("utf-8")
        if not contents:
            raise ValueError("Uploaded file is empty.")

        uploaded_at = datetime.now(timezone.utc)
        self.table.put(
            BatchResult(
                batch_id=batch_id,
                filename=filename,
                status=BatchStatus.uploaded,
                uploaded_at=uploaded_at,
            )
        )
        logger.info("Batch accepted", extra={"batch_id": batch_id, "upload_name": filename})

        future = self.executor.submit(
            self._process_batch,
            batch_id=batch_id,
            filename=filename,
            contents=contents,
            uploaded_at=uploaded_at,
        )
        with self._futures_lock:
            self._futures[batch_id] = future
        future.add_done_callback(lambda _f, bid=batch_id: self._forget_future(bid))

        background_tasks.add_task(file.close)
        return batch_id

    def fetch_batch(self, batch_id: str) -> BatchResult:
        record = self.table.get(batch_id)
        if record is None:
            raise KeyError(f"Batch {batch_id!r} not found.")
        return record

    def list_batches(self) -> list[BatchResult]:
        """All batches, most recent upload first."""
        return sorted(self.table.scan(), key=lambda record: record.uploaded_at, reverse=True)

    def shutdown(self) -> None:
        """Stop the pool; batches still queued are recorded as failed."""
        with self._futures_lock:
            pending = dict(self._futures)
        self.executor.shutdown(wait=False, cancel_futures=True)

        for batch_id, future in pending.items():
            if not future.cancelled():
                continue
            record = self.table.get(batch_id)
            if record is None:
                continue
            self.table.put(
                record.model_copy(
                    update={
                        "status": BatchStatus.failed,
                        "processed_at": datetime.now(timezone.utc),
                        "errors": [RowError(row_number=1, reason=_CANCELLED_REASON)],
                    }
                )
            )
            logger.warning(
                "Batch cancelled during shutdown",
                extra={"batch_id": batch_id, "status": BatchStatus.failed.value},
            )

    def _forget_future(self, batch_id: str) -> None:
        with self._futures_lock:
            self._futures.pop(batch_id, None)

    def _process_batch(
        self,
        batch_id: str,
        filename: str,
        contents: bytes,
        uploaded_at: datetime,
    ) -> None:
        start_time = time.perf_counter()
        context = {"batch_id": batch_id, "upload_name": filename}

        errors: List[RowError] = []
        scores: List[RowScore] = []
        summary: Optional[BatchSummary] = None

        try:
            self.table.put(
                BatchResult(
                    batch_id=batch_id,
                    filename=filename,
                    status=BatchStatus.processing,
                    uploaded_at=uploaded_at,
                )
            )

            reader = csv.DictReader(io.StringIO(contents.decode("utf-8-sig")))
            columns = self._resolve_columns(reader.fieldnames)

            results: List[ScoreResult] = []
            for row_number, row in enumerate(reader, start=2):
                try:
                    reading_id, reading = self._parse_row(row, columns)
                except RowRejected as exc:
                    reason = str(exc)
                    logger.warning(
                        "Skipping row %d: %s",
                        row_number,
                        reason,
                        extra={**context, "row_number": row_number, "reason": reason},
                    )
                    errors.append(RowError(row_number=row_number, reason=reason))
                    continue

                result = self.calculator.score(reading)
                results.append(result)
                scores.append(
                    RowScore(
                        row_number=row_number,
                        reading_id=reading_id,
                        percent=result.percent,
                        band=result.band,
                    )
                )

            stats = self.aggregator.aggregate(results)
            summary = BatchSummary(
                row_count=stats.row_count,
                min_percent=stats.min_percent,
                max_percent=stats.max_percent,
                mean_percent=stats.mean_percent,
                per_band_count=dict(stats.per_band_count),
            )

            if stats.row_count == 0 and errors:
                status = BatchStatus.failed
                summary = None
            elif errors:
                status = BatchStatus.partial
            else:
                status = BatchStatus.processed
        except (ValueError, csv.Error) as exc:
            logger.error("Batch could not be scored", extra={**context, "reason": str(exc)})
            status = BatchStatus.failed
            errors.append(RowError(row_number=1, reason=str(exc)))
            scores = []
            summary = None
        except Exception as exc:
            logger.exception("Unexpected failure while scoring batch", extra=context)
            status = BatchStatus.failed
            errors.append(RowError(row_number=1, reason=f"internal error: {exc}"))
            scores = []
            summary = None

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        final_record = BatchResult(
            batch_id=batch_id,
            filename=filename,
            status=status,
            uploaded_at=uploaded_at,
            processed_at=datetime.now(timezone.utc),
            processing_ms=processing_ms,
            summary=summary,
            scores=scores,
            errors=errors,
        )
        try:
            self.table.put(final_record)
        except Exception:
            logger.exception("Could not store final batch record", extra={**context, "status": status.value})
            return
        logger.info(
            "Batch finished",
            extra={
                "batch_id": batch_id,
                "status": status.value,
                "row_count": summary.row_count if summary else 0,
                "error_count": len(errors),
                "processing_ms": processing_ms,
            },
        )

    @staticmethod
    def _resolve_columns(fieldnames: Optional[List[str]]) -> Dict[str, str]:
        """Map lower-cased metric names onto the header's actual spelling."""
        if not fieldnames:
            raise ValueError("CSV file is missing a header row.")

        normalized = {name.lower().strip(): name for name in fieldnames if name}
        missing = [name for name in METRIC_NAMES if name not in normalized]
        if missing:
            raise ValueError(f"CSV missing required columns: {', '.join(missing)}")

        columns = {name: normalized[name] for name in METRIC_NAMES}
        if _READING_ID_COLUMN in normalized:
            columns[_READING_ID_COLUMN] = normalized[_READING_ID_COLUMN]
        return columns

    @staticmethod
    def _parse_row(
        row: Dict[str, Optional[str]], columns: Dict[str, str]
    ) -> Tuple[Optional[str], SensorReading]:
        values: Dict[str, float] = {}
        for name in METRIC_NAMES:
            raw = (row.get(columns[name]) or "").strip()
            if not raw:
                raise RowRejected(f"missing {name}")
            try:
                value = float(raw)
            except ValueError:
                raise RowRejected(f"invalid numeric value for {name}") from None
            if not math.isfinite(value):
                raise RowRejected(f"non-finite value for {name}")
            values[name] = value

        reading_id = None
        if _READING_ID_COLUMN in columns:
            reading_id = (row.get(columns[_READING_ID_COLUMN]) or "").strip() or None
        return reading_id, SensorReading(**values)


@lru_cache
def build_default_batch_service(
    workers: Optional[int] = None,
) -> BatchScoringService:
    """Factory that wires the batch service with the configured table."""
    return BatchScoringService(
        table=build_default_table(),
        calculator=SoilHealthCalculator(),
        aggregator=ScoreAggregator(),
        workers=workers or get_settings().batch_workers,
    )
