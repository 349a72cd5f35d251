from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigError
from ..models.config_models import CsvConfig, DatabaseConfig, ImportConfig

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate keys and types against contracts/config_schema.json
- Apply defaults (max_batches_per_run=10, timezone=UTC, ...)
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_config",
]

# process_import/config/loader.py -> process_import/contracts
SCHEMA_PATH = Path(__file__).parent.parent / "contracts" / "config_schema.json"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or if
            the config data fails schema validation (missing required keys,
            wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    tz = data.get("timezone", "UTC")
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {tz}") from e

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    csv_raw = data.get("csv") or {}
    csv_cfg = CsvConfig(
        encoding=csv_raw.get("encoding", "utf-8-sig"),
        delimiter=csv_raw.get("delimiter", ","),
    )
    return ImportConfig(
        max_batches_per_run=data.get("max_batches_per_run", 10),
        page_size=data.get("page_size", 1000),
        timezone=tz,
        error_log_dir=data.get("error_log_dir", "./logs"),
        csv=csv_cfg,
        database=db,
    )
