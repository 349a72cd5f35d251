from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Processing result models for one import run.

ProcessingResult aggregates the outcome of every batch claimed in a run and
feeds the SUMMARY line; BatchStat keeps the per-batch detail.
"""


@dataclass(frozen=True)
class BatchStat:
    """Per-batch processing statistics."""
    batch_id: int
    file_name: str
    status: str  # imported/error
    imported_rows: int  # rows that produced a process record
    error_rows: int  # rows recorded with status error
    elapsed_seconds: float
    message: str | None = None  # file-level failure cause


@dataclass(frozen=True)
class ProcessingResult:
    """Aggregated results of a run, rendered as the SUMMARY line."""
    imported_batches: int
    failed_batches: int
    total_imported_rows: int
    total_error_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float  # (imported + error rows) / elapsed
    batch_stats: list[BatchStat] | None = None

    @property
    def total_batches(self) -> int:
        return self.imported_batches + self.failed_batches


@dataclass(frozen=True)
class ReportCounts:
    """Row counts shown in the result report banner."""
    imported: int  # imported + manuallyImported
    error: int

    @property
    def total(self) -> int:
        return self.imported + self.error
