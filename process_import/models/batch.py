from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

"""ImportBatch domain model and BatchStatus enum.

An ImportBatch is one uploaded spreadsheet (table ``processes_file``). It is
created ``waiting`` by the upload intake, flipped to ``inProgress`` by the
claim queue and finished as ``imported`` or ``error`` by the pipeline.
"""

__all__ = [
    "BatchStatus",
    "ImportBatch",
    "BatchSummary",
]


class BatchStatus(Enum):
    """Lifecycle of an uploaded batch.

    State transitions: waiting → inProgress → (imported | error)

    ``error`` is terminal for a run; an operator may reset it to ``waiting``.
    """
    WAITING = "waiting"
    IN_PROGRESS = "inProgress"
    IMPORTED = "imported"
    ERROR = "error"


@dataclass(frozen=True)
class ImportBatch:
    id: int
    file_name: str                      # stored (sanitised) file name
    data: bytes | None = None           # raw original upload
    name: str | None = None             # operator-facing display name
    status: BatchStatus = BatchStatus.WAITING
    message: str | None = None          # cause of the last file-level failure
    imported_by: str | None = None
    imported_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class BatchSummary:
    """Listing entry with per-status row counts."""
    id: int
    name: str | None
    file_name: str
    status: BatchStatus
    message: str | None
    created_at: datetime | None
    all_items_count: int = 0
    error_items_count: int = 0
    imported_items_count: int = 0
