from __future__ import annotations

import io
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any
from zoneinfo import ZoneInfo

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter

from ..db.batches import ReportRow, load_report_rows
from ..models.processing_result import ReportCounts
from ..models.row import RowStatus

"""Result report generation.

Builds the single-sheet "RESULTADO" workbook an operator downloads after an
import: a merged banner with batch name, import date and counts, a header
row, then one line per batch row with its status and messages.
"""

__all__ = [
    "REPORT_HEADERS",
    "STATUS_LABELS",
    "count_rows",
    "column_widths",
    "build_report",
    "generate_report",
]

SHEET_TITLE = "RESULTADO"
REPORT_HEADERS = ["Número do Processo", "Apelido", "Fluxo", "Prioridade", "Status", "Mensagens"]
STATUS_LABELS = {
    RowStatus.IMPORTED: "IMPORTADO",
    RowStatus.ERROR: "ERRO",
    RowStatus.MANUALLY_IMPORTED: "IMPORTADO MANUALMENTE",
}
EMPTY_CELL = "-"
DATE_FMT = "%d/%m/%Y %H:%M:%S"

ERROR_FONT = Font(color="D62D2D")
SUCCESS_FONT = Font(color="34EB4C")
BANNER_HEIGHT = 90
STATUS_COLUMN_WIDTH = 15  # second-to-last column
WIDTH_PADDING = 5


def count_rows(rows: Sequence[ReportRow]) -> ReportCounts:
    errors = sum(1 for r in rows if r.status is RowStatus.ERROR)
    return ReportCounts(imported=len(rows) - errors, error=errors)


def _format_date(value: datetime | None, tz: str) -> str:
    if value is None:
        return EMPTY_CELL
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(ZoneInfo(tz)).strftime(DATE_FMT)


def _banner(name: str | None, imported_at: datetime | None, counts: ReportCounts, tz: str) -> str:
    return (
        "RESULTADO IMPORTAÇÃO\n\n"
        f"Lote: {name or EMPTY_CELL}\n"
        f"Data Importação: {_format_date(imported_at, tz)}\n"
        f"Importados: {counts.imported}\n"
        f"Erro: {counts.error}"
    )


def _row_cells(row: ReportRow) -> list[str]:
    message = (row.message or EMPTY_CELL).replace("\\n", "\n")
    return [
        row.record or EMPTY_CELL,
        row.nickname or EMPTY_CELL,
        row.flow or EMPTY_CELL,
        row.priority or EMPTY_CELL,
        STATUS_LABELS[row.status],
        message,
    ]


def column_widths(table: Sequence[Sequence[Any]]) -> list[int]:
    """Width per column: longest line of its cells (line breaks split lines) plus padding.

    The second-to-last cell of each row belongs to a fixed-width column.
    """
    longest: dict[int, int] = {}
    for row in table:
        for idx, value in enumerate(row):
            if idx == len(row) - 2:
                longest[idx] = STATUS_COLUMN_WIDTH
                continue
            text = "" if value is None else str(value)
            line = max(len(part) for part in text.split("\n"))
            longest[idx] = max(longest.get(idx, 0), line)
    if not longest:
        return []
    return [longest.get(i, 0) + WIDTH_PADDING for i in range(max(longest) + 1)]


def build_report(
    name: str | None,
    imported_at: datetime | None,
    rows: Sequence[ReportRow],
    tz: str = "UTC",
) -> bytes:
    counts = count_rows(rows)
    table: list[list[str]] = [
        [_banner(name, imported_at, counts, tz)],
        list(REPORT_HEADERS),
        *(_row_cells(r) for r in rows),
    ]

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    for line in table:
        ws.append(line)

    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(REPORT_HEADERS))
    ws["A1"].alignment = Alignment(wrap_text=True, horizontal="center")
    ws.row_dimensions[1].height = BANNER_HEIGHT

    status_col = REPORT_HEADERS.index("Status") + 1
    message_col = REPORT_HEADERS.index("Mensagens") + 1
    for offset, row in enumerate(rows):
        excel_row = offset + 3
        ws.cell(row=excel_row, column=message_col).alignment = Alignment(wrap_text=True)
        ws.cell(row=excel_row, column=status_col).font = (
            ERROR_FONT if row.status is RowStatus.ERROR else SUCCESS_FONT
        )

    for idx, width in enumerate(column_widths(table), start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def generate_report(cursor: Any, batch_id: int, *, tz: str = "UTC") -> bytes:
    """Load a batch and its rows and render the result workbook (read only)."""
    name, imported_at, rows = load_report_rows(cursor, batch_id)
    return build_report(name, imported_at, rows, tz)
