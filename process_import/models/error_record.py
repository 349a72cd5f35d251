from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per file-level failure (parse error, header error, persistence
error). Row-level validation failures are stored on the ImportRow and are not
written here.

The record shape is fixed by ``process_import/contracts/error_log_schema.json``.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        batch_id: id of the ImportBatch; -1 when the failure is not tied to a batch
        file: stored file name of the batch
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Error text (same text stored in processes_file.message)
    """
    timestamp: str  # ISO8601 UTC
    batch_id: int
    file: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(batch_id: int, file: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            batch_id=batch_id,
            file=file,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
