from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""Batched INSERT helper built on psycopg2.extras.execute_values.

Rows are sent in pages of ``page_size``. When ``returning`` names columns,
execute_values is run with ``fetch=True`` so the RETURNING rows of every page
are collected, in input order.
"""

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "batch_insert",
]


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None


def _quote(identifier: str) -> str:
    return f'"{identifier}"'


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning: Sequence[str] | None = None,
    page_size: int = 1000,
) -> InsertResult:
    """Perform a batched INSERT.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (trusted identifier, not user input)
    columns: inserted columns, same order as each row
    rows: row sequence
    returning: columns to return for each inserted row (None = no RETURNING)
    page_size: execute_values page size
    """
    rows_list = [list(r) for r in rows]
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[] if returning else None)

    cols_sql = ",".join(_quote(c) for c in columns)
    sql = f"INSERT INTO {_quote(table)} ({cols_sql}) VALUES %s"
    if returning:
        sql += " RETURNING " + ",".join(_quote(c) for c in returning)

    try:
        returned = execute_values(
            cursor, sql, rows_list, page_size=page_size, fetch=bool(returning)
        )
    except Exception as e:
        raise BatchInsertError(f"insert into {table} failed: {e}") from e

    if returning:
        return InsertResult(inserted_rows=len(rows_list), returned_values=list(returned or []))
    return InsertResult(inserted_rows=len(rows_list))
