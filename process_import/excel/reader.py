from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Any

import pandas as pd

from ..errors import ParseError
from ..models.config_models import CsvConfig

"""Tabular ingestion: uploaded binary -> one Grid per worksheet.

CSV uploads are first converted to a single-sheet XLSX workbook entirely in
memory, then every upload goes through the same workbook parser. CSV lines
are tokenized before building the frame so blank or narrow leading lines (a
title above the header) and ragged rows keep their position in the grid.

Cells are read with ``keep_default_na=False`` so that labels such as "NA" or
"null" survive; empty cells become ``None`` in the grid.
"""

__all__ = [
    "Grid",
    "ingest",
    "read_workbook",
    "convert_csv_to_xlsx",
    "workbook_to_csv",
    "extract_extension",
    "is_file_type",
    "cell_to_text",
]

CSV_SHEET_NAME = "Sheet1"


@dataclass(frozen=True)
class Grid:
    """Raw rows/columns of one worksheet, in file order."""
    sheet_name: str
    rows: list[list[Any]]

    def __len__(self) -> int:
        return len(self.rows)


def extract_extension(file_name: str) -> str:
    return file_name.rsplit(".", 1)[-1].lower()


def is_file_type(file_name: str, extension: str) -> bool:
    return extract_extension(file_name) == extension


def _normalize_cell(val: Any) -> Any:
    if val is None:
        return None
    if isinstance(val, str):
        return val if val != "" else None
    try:
        if pd.isna(val):
            return None
    except (TypeError, ValueError):  # pragma: no cover - non scalar cell
        pass
    return val


def cell_to_text(val: Any) -> str | None:
    """Render a grid cell as text; integral floats lose their trailing ``.0``."""
    val = _normalize_cell(val)
    if val is None:
        return None
    if isinstance(val, str):
        return val
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val)


def _frame_to_rows(df: pd.DataFrame) -> list[list[Any]]:
    return [[_normalize_cell(v) for v in raw] for raw in df.itertuples(index=False, name=None)]


def read_workbook(binary: bytes) -> list[Grid]:
    """Parse a workbook binary (xlsx or legacy xls) keeping every worksheet.

    Raises:
        ParseError: if the binary is not a well-formed workbook
    """
    try:
        frames = pd.read_excel(
            io.BytesIO(binary),
            sheet_name=None,
            header=None,
            dtype=object,
            keep_default_na=False,
        )
    except Exception as e:  # xlrd/openpyxl/zipfile raise unrelated types
        raise ParseError(f"Arquivo inválido: {e}") from e
    return [Grid(sheet_name=str(name), rows=_frame_to_rows(df)) for name, df in frames.items()]


def convert_csv_to_xlsx(binary: bytes, csv_config: CsvConfig | None = None) -> bytes:
    """Convert CSV bytes to a single-sheet XLSX workbook (all cells as text)."""
    cfg = csv_config or CsvConfig()
    try:
        text = binary.decode(cfg.encoding)
        rows = list(csv.reader(io.StringIO(text, newline=""), delimiter=cfg.delimiter))
    except (UnicodeDecodeError, LookupError, csv.Error) as e:
        raise ParseError(f"CSV inválido: {e}") from e

    # DataFrame pads short rows; blank lines stay as empty rows
    df = pd.DataFrame(rows) if text.strip() else pd.DataFrame()

    out = io.BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=CSV_SHEET_NAME, header=False, index=False)
    return out.getvalue()


def ingest(binary: bytes, original_file_name: str, csv_config: CsvConfig | None = None) -> list[Grid]:
    """Normalize an uploaded binary and parse it into one Grid per worksheet."""
    if is_file_type(original_file_name, "csv"):
        binary = convert_csv_to_xlsx(binary, csv_config)
    return read_workbook(binary)


def workbook_to_csv(binary: bytes) -> bytes:
    """Render the first worksheet of a workbook as UTF-8 CSV text."""
    try:
        df = pd.read_excel(
            io.BytesIO(binary), sheet_name=0, header=None, dtype=object, keep_default_na=False
        )
    except Exception as e:
        raise ParseError(f"Arquivo inválido: {e}") from e
    return df.to_csv(index=False, header=False).encode("utf-8")
