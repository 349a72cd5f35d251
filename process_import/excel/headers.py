from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ..errors import HeaderValidationError, MissingHeaderError
from .reader import Grid

"""Header resolution.

The header row is the first row holding at least one non-empty cell. Columns
are matched against fixed alias sets (case-sensitive, exact). Record number
and flow are mandatory; nickname and priority are optional.
"""

__all__ = [
    "RECORD_HEADERS",
    "FLOW_HEADERS",
    "NICKNAME_HEADERS",
    "PRIORITY_HEADERS",
    "HeaderIndexMap",
    "find_header_row",
    "resolve_headers",
]

RECORD_HEADERS = ("Número processo", "Número do Processo", "Processos")
FLOW_HEADERS = ("Fluxo", "Fluxos")
NICKNAME_HEADERS = ("Apelido", "Apelidos")
PRIORITY_HEADERS = ("Prioridade", "Prioridades", "prioridades")

MISSING_HEADER_MESSAGE = "Cabeçalho não encontrado"


@dataclass(frozen=True)
class HeaderIndexMap:
    header_row: int  # index of the header row in the grid
    record: int
    flow: int
    nickname: int | None = None
    priority: int | None = None


@dataclass(frozen=True)
class _MandatoryColumn:
    key: str
    aliases: tuple[str, ...]
    label: str

    @property
    def error_message(self) -> str:
        return f"Coluna {self.label} não encontrada"


MANDATORY_COLUMNS = (
    _MandatoryColumn("record", RECORD_HEADERS, "Número processo"),
    _MandatoryColumn("flow", FLOW_HEADERS, "Fluxo"),
)


def _is_blank(cell: Any) -> bool:
    return cell is None or cell == ""


def find_header_row(rows: Sequence[Sequence[Any]]) -> int:
    for idx, row in enumerate(rows):
        if any(not _is_blank(c) for c in row):
            return idx
    raise MissingHeaderError(MISSING_HEADER_MESSAGE)


def _find_column(header: Sequence[Any], aliases: tuple[str, ...]) -> int | None:
    for idx, cell in enumerate(header):
        if isinstance(cell, str) and cell in aliases:
            return idx
    return None


def resolve_headers(grid: Grid) -> HeaderIndexMap:
    """Locate the header row and map logical columns to their indexes.

    Raises:
        MissingHeaderError: grid has no non-empty row
        HeaderValidationError: one line per missing mandatory column
    """
    header_row = find_header_row(grid.rows)
    header = grid.rows[header_row]

    found: dict[str, int] = {}
    errors: list[str] = []
    for column in MANDATORY_COLUMNS:
        idx = _find_column(header, column.aliases)
        if idx is None:
            errors.append(column.error_message)
        else:
            found[column.key] = idx
    if errors:
        raise HeaderValidationError(errors)

    return HeaderIndexMap(
        header_row=header_row,
        record=found["record"],
        flow=found["flow"],
        nickname=_find_column(header, NICKNAME_HEADERS),
        priority=_find_column(header, PRIORITY_HEADERS),
    )
