from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..errors import BatchNotFoundError
from ..models.batch import BatchStatus, BatchSummary, ImportBatch
from ..models.row import RowStatus
from .tables import BATCH_TABLE, ROW_TABLE

"""Batch and batch-row queries outside the import run itself."""

__all__ = [
    "EDITABLE_ROW_FIELDS",
    "ReportRow",
    "insert_batch",
    "get_batch",
    "list_batches",
    "load_report_rows",
    "delete_batch",
    "update_batch_row",
]

EDITABLE_ROW_FIELDS = frozenset({"record", "flow", "nickname", "priority", "status", "id_process"})


@dataclass(frozen=True)
class ReportRow:
    record: str | None
    nickname: str | None
    flow: str | None
    priority: str | None
    status: RowStatus
    message: str | None


def insert_batch(
    cursor: Any,
    *,
    name: str | None,
    file_name: str,
    data: bytes,
    imported_by: str | None,
) -> ImportBatch:
    cursor.execute(
        f"INSERT INTO {BATCH_TABLE} (name, file_name, data_original_file, status, imported_by) "
        "VALUES (%s, %s, %s, %s, %s) RETURNING id_processes_file, created_at",
        (name, file_name, data, BatchStatus.WAITING.value, imported_by),
    )
    batch_id, created_at = cursor.fetchone()
    return ImportBatch(
        id=batch_id,
        file_name=file_name,
        data=data,
        name=name,
        status=BatchStatus.WAITING,
        imported_by=imported_by,
        created_at=created_at,
    )


def get_batch(cursor: Any, batch_id: int, *, with_data: bool = False) -> ImportBatch:
    data_col = "data_original_file" if with_data else "NULL"
    cursor.execute(
        f"SELECT id_processes_file, file_name, {data_col}, name, status, message, "
        f"imported_by, imported_at, created_at FROM {BATCH_TABLE} WHERE id_processes_file = %s",
        (batch_id,),
    )
    row = cursor.fetchone()
    if row is None:
        raise BatchNotFoundError(f"Lote {batch_id} não encontrado")
    return ImportBatch(
        id=row[0],
        file_name=row[1],
        data=bytes(row[2]) if row[2] is not None else None,
        name=row[3],
        status=BatchStatus(row[4]),
        message=row[5],
        imported_by=row[6],
        imported_at=row[7],
        created_at=row[8],
    )


def list_batches(cursor: Any, limit: int = 20) -> list[BatchSummary]:
    """Newest batches first, with row counts per outcome."""
    cursor.execute(
        f"""
        SELECT pf.id_processes_file, pf.name, pf.file_name, pf.status, pf.message, pf.created_at,
               COUNT(pfi.id_processes_file_item) AS all_items,
               COUNT(pfi.id_processes_file_item) FILTER (WHERE pfi.status = %s) AS error_items,
               COUNT(pfi.id_processes_file_item) FILTER (WHERE pfi.status IN (%s, %s)) AS imported_items
          FROM {BATCH_TABLE} pf
          LEFT JOIN {ROW_TABLE} pfi ON pfi.id_processes_file = pf.id_processes_file
         GROUP BY pf.id_processes_file
         ORDER BY pf.id_processes_file DESC
         LIMIT %s
        """,
        (
            RowStatus.ERROR.value,
            RowStatus.IMPORTED.value,
            RowStatus.MANUALLY_IMPORTED.value,
            limit,
        ),
    )
    return [
        BatchSummary(
            id=r[0],
            name=r[1],
            file_name=r[2],
            status=BatchStatus(r[3]),
            message=r[4],
            created_at=r[5],
            all_items_count=r[6],
            error_items_count=r[7],
            imported_items_count=r[8],
        )
        for r in cursor.fetchall()
    ]


def load_report_rows(cursor: Any, batch_id: int) -> tuple[str | None, datetime | None, list[ReportRow]]:
    """Batch display name, import time and its rows in insertion order."""
    cursor.execute(
        f"SELECT name, imported_at FROM {BATCH_TABLE} WHERE id_processes_file = %s",
        (batch_id,),
    )
    head = cursor.fetchone()
    if head is None:
        raise BatchNotFoundError(f"Lote {batch_id} não encontrado")
    cursor.execute(
        f"SELECT record, nickname, flow, priority, status, message FROM {ROW_TABLE} "
        "WHERE id_processes_file = %s ORDER BY id_processes_file_item ASC",
        (batch_id,),
    )
    rows = [
        ReportRow(
            record=r[0],
            nickname=r[1],
            flow=r[2],
            priority=r[3],
            status=RowStatus(r[4]),
            message=r[5],
        )
        for r in cursor.fetchall()
    ]
    return head[0], head[1], rows


def delete_batch(cursor: Any, batch_id: int) -> bool:
    """Delete a batch and its rows; False when the batch does not exist."""
    cursor.execute("BEGIN")
    try:
        cursor.execute(f"DELETE FROM {ROW_TABLE} WHERE id_processes_file = %s", (batch_id,))
        cursor.execute(f"DELETE FROM {BATCH_TABLE} WHERE id_processes_file = %s", (batch_id,))
        deleted = cursor.rowcount > 0
        cursor.execute("COMMIT")
    except Exception:
        cursor.execute("ROLLBACK")
        raise
    return deleted


def update_batch_row(cursor: Any, row_id: int, changes: Mapping[str, Any]) -> None:
    """Apply an operator correction to one batch row; the row message is cleared."""
    unknown = set(changes) - EDITABLE_ROW_FIELDS
    if unknown:
        raise ValueError(f"fields not editable: {sorted(unknown)}")
    values = dict(changes)
    if isinstance(values.get("status"), RowStatus):
        values["status"] = values["status"].value
    if "status" in values:
        RowStatus(values["status"])  # reject unknown statuses

    assignments = [f'"{k}" = %s' for k in sorted(values)] + ["message = NULL"]
    params = [values[k] for k in sorted(values)] + [row_id]
    cursor.execute(
        f"UPDATE {ROW_TABLE} SET {', '.join(assignments)} WHERE id_processes_file_item = %s",
        params,
    )
