from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from ..errors import PersistenceError
from ..models.batch import BatchStatus
from ..models.row import ImportRow
from .batch_insert import batch_insert
from .tables import AUDIT_TABLE, BATCH_TABLE, PROCESS_TABLE, ROW_TABLE

"""Batch persistence.

Everything produced for one batch is written in a single transaction:

1. one ``process`` row per valid ImportRow (RETURNING the generated ids)
2. one ``process_aud`` INSERT entry per created process
3. every ImportRow (valid and error), valid ones pointing at their process
4. the batch flipped to ``imported``

Any failure rolls the whole transaction back and surfaces as PersistenceError;
the caller then records the batch as ``error``.
"""

__all__ = [
    "PROCESS_COLUMNS",
    "AUDIT_COLUMNS",
    "ROW_COLUMNS",
    "persist_batch",
    "mark_batch_error",
]

logger = logging.getLogger(__name__)

PROCESS_COLUMNS = ["record", "id_flow", "id_unit", "id_priority", "nickname", "finalised"]
PROCESS_RETURNING = ["id_process", *PROCESS_COLUMNS]
AUDIT_COLUMNS = [
    "id_process",
    "process_record",
    "operation",
    "changed_by",
    "changed_at",
    "new_values",
    "old_values",
    "remarks",
]
ROW_COLUMNS = [
    "id_processes_file",
    "record",
    "flow",
    "nickname",
    "priority",
    "row_index",
    "status",
    "message",
    "id_process",
]

AUDIT_OPERATION_INSERT = "INSERT"


def _audit_values(returned: Sequence[Any], imported_by: str | None, changed_at: datetime) -> list[Any]:
    snapshot = dict(zip(PROCESS_RETURNING, returned, strict=True))
    return [
        snapshot["id_process"],
        snapshot["record"],
        AUDIT_OPERATION_INSERT,
        imported_by,
        changed_at,
        json.dumps(snapshot, ensure_ascii=False, default=str),
        None,
        None,
    ]


def _row_values(batch_id: int, row: ImportRow) -> list[Any]:
    return [
        batch_id,
        row.raw.record,
        row.raw.flow,
        row.raw.nickname,
        row.raw.priority,
        row.raw.row_index,
        row.status.value,
        row.message,
        row.id_process,
    ]


def _write(
    cursor: Any,
    batch_id: int,
    imported_by: str | None,
    rows: Sequence[ImportRow],
    page_size: int,
    now: datetime,
) -> list[ImportRow]:
    valid = [r for r in rows if not r.is_error]
    created = batch_insert(
        cursor,
        PROCESS_TABLE,
        PROCESS_COLUMNS,
        [r.payload.as_insert_values() for r in valid if r.payload is not None],
        returning=PROCESS_RETURNING,
        page_size=page_size,
    )
    returned = created.returned_values or []
    if len(returned) != len(valid):
        raise PersistenceError(
            f"expected {len(valid)} created processes, database returned {len(returned)}"
        )

    batch_insert(
        cursor,
        AUDIT_TABLE,
        AUDIT_COLUMNS,
        [_audit_values(rv, imported_by, now) for rv in returned],
        page_size=page_size,
    )

    ids = iter(rv[0] for rv in returned)
    persisted = [r if r.is_error else r.with_process_id(next(ids)) for r in rows]
    batch_insert(
        cursor,
        ROW_TABLE,
        ROW_COLUMNS,
        [_row_values(batch_id, r) for r in persisted],
        page_size=page_size,
    )

    cursor.execute(
        f"UPDATE {BATCH_TABLE} SET status = %s, message = NULL, imported_at = %s "
        "WHERE id_processes_file = %s",
        (BatchStatus.IMPORTED.value, now, batch_id),
    )
    return persisted


def _rollback(cursor: Any) -> None:
    try:
        cursor.execute("ROLLBACK")
    except Exception:
        logger.warning("rollback failed", exc_info=True)


def persist_batch(
    cursor: Any,
    batch_id: int,
    imported_by: str | None,
    rows: Sequence[ImportRow],
    *,
    page_size: int = 1000,
    now: datetime | None = None,
) -> list[ImportRow]:
    """Write processes, audit entries and rows of one batch atomically.

    Returns the rows as persisted (valid rows carry ``id_process``).

    Raises:
        PersistenceError: the transaction failed and was rolled back
    """
    now = now or datetime.now(UTC)
    try:
        cursor.execute("BEGIN")
        persisted = _write(cursor, batch_id, imported_by, rows, page_size, now)
        cursor.execute("COMMIT")
    except PersistenceError:
        _rollback(cursor)
        raise
    except Exception as e:
        _rollback(cursor)
        raise PersistenceError(str(e)) from e
    logger.debug(
        "batch=%s persisted rows=%d processes=%d",
        batch_id,
        len(persisted),
        sum(1 for r in persisted if r.id_process is not None),
    )
    return persisted


def mark_batch_error(cursor: Any, batch_id: int, message: str) -> None:
    """Record a file-level failure: status error, cause message, no import time."""
    cursor.execute(
        f"UPDATE {BATCH_TABLE} SET status = %s, message = %s, imported_at = NULL "
        "WHERE id_processes_file = %s",
        (BatchStatus.ERROR.value, message, batch_id),
    )
