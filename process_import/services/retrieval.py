from __future__ import annotations

from typing import Any

from ..db.batches import get_batch
from ..excel.reader import is_file_type, workbook_to_csv
from .intake import format_file_name
from .report import generate_report

"""Download of a batch's original upload or of its result report."""

__all__ = [
    "SUPPORTED_FORMATS",
    "fetch_batch_file",
]

SUPPORTED_FORMATS = ("xlsx", "csv")


def fetch_batch_file(
    cursor: Any,
    batch_id: int,
    *,
    original: bool = True,
    fmt: str = "xlsx",
    tz: str = "UTC",
) -> tuple[str, bytes]:
    """Return ``(file_name, content)`` for the original upload or the result report.

    With ``fmt="csv"`` the workbook is converted (first sheet) on read; an
    original upload that already is a CSV is returned as stored.
    """
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"unsupported format: {fmt}")

    batch = get_batch(cursor, batch_id, with_data=original)
    if original:
        file_name, content = batch.file_name, batch.data or b""
    else:
        file_name = format_file_name(f"resultado_{batch.file_name}", "xlsx")
        content = generate_report(cursor, batch_id, tz=tz)

    if fmt == "csv" and not is_file_type(file_name, "csv"):
        content = workbook_to_csv(content)
        file_name = format_file_name(file_name, "csv")
    return file_name, content
