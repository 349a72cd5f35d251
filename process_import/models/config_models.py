from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the importer.

Built by ``process_import.config.loader.load_config`` from ``config/import.yml``.
"""


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class CsvConfig:
    """How CSV uploads are decoded before conversion to a workbook."""
    encoding: str = "utf-8-sig"
    delimiter: str = ","


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for the import job."""
    max_batches_per_run: int = 10  # claim size per run
    page_size: int = 1000  # execute_values page size
    timezone: str = "UTC"  # used to render dates in the result report
    error_log_dir: str = "./logs"
    csv: CsvConfig = field(default_factory=CsvConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
