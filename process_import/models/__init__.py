"""Domain models for the legal-process batch importer.

Batches (``processes_file``), their rows (``processes_file_item``), the
process payloads created from valid rows and the run-level result models.
"""

from .batch import BatchStatus, BatchSummary, ImportBatch
from .config_models import CsvConfig, DatabaseConfig, ImportConfig
from .reference import Flow
from .row import ImportRow, Invalid, ProcessPayload, RawRow, RowResult, RowStatus, Valid

__all__ = [
    # Configuration models
    "CsvConfig",
    "DatabaseConfig",
    "ImportConfig",
    # Batch models
    "BatchStatus",
    "BatchSummary",
    "ImportBatch",
    # Row models
    "Flow",
    "ImportRow",
    "Invalid",
    "ProcessPayload",
    "RawRow",
    "RowResult",
    "RowStatus",
    "Valid",
]
