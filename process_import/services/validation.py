from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from ..excel.headers import HeaderIndexMap
from ..excel.reader import Grid, cell_to_text
from ..models.reference import Flow
from ..models.row import ImportRow, Invalid, ProcessPayload, RawRow, RowResult, Valid
from .priority import resolve_priority

"""Row validation.

Turns grid rows into ImportRows. Every check runs for every row, so one row
may report several problems at once; messages are kept in check order.

Checks (message texts are shown to operators in the result report):
1. record and flow must be present
2. flow label must match a known flow name exactly
3. record, stripped of non-digits, must be exactly 20 digits (format only,
   no check-digit validation)
4. nickname at most 50 characters (not trimmed here)
5. priority label must match the static priority table
"""

__all__ = [
    "NICKNAME_MAX_LENGTH",
    "normalize_record",
    "extract_raw_rows",
    "distinct_flow_names",
    "validate_row",
    "validate_raw_rows",
    "validate_rows",
]

NICKNAME_MAX_LENGTH = 50
RECORD_DIGITS = 20

_NON_DIGIT = re.compile(r"\D")
_RECORD_PATTERN = re.compile(rf"^\d{{{RECORD_DIGITS}}}$")


def normalize_record(record: str) -> tuple[str, bool]:
    """Strip every non-digit character; returns (digits, is_valid_format)."""
    digits = _NON_DIGIT.sub("", record)
    return digits, bool(_RECORD_PATTERN.match(digits))


def _cell(row: list, index: int | None) -> str | None:
    if index is None or index >= len(row):
        return None
    return cell_to_text(row[index])


def extract_raw_rows(grid: Grid, header_map: HeaderIndexMap) -> list[RawRow]:
    """Data rows after the header row; rows with all tracked cells empty are skipped."""
    raw_rows: list[RawRow] = []
    for row_index, row in enumerate(grid.rows[header_map.header_row + 1:]):
        raw = RawRow(
            row_index=row_index,
            record=_cell(row, header_map.record),
            flow=_cell(row, header_map.flow),
            nickname=_cell(row, header_map.nickname),
            priority=_cell(row, header_map.priority),
        )
        if raw.is_empty():
            continue
        raw_rows.append(raw)
    return raw_rows


def distinct_flow_names(raw_rows: Iterable[RawRow]) -> list[str]:
    """Distinct non-empty flow labels in first-seen order."""
    return list(dict.fromkeys(r.flow for r in raw_rows if r.flow))


def validate_row(raw: RawRow, flows_by_name: Mapping[str, Flow]) -> RowResult:
    messages: list[str] = []

    if not raw.record:
        messages.append("Número processo vazio")
    if not raw.flow:
        messages.append("Fluxo vazio")

    flow: Flow | None = None
    if raw.flow:
        flow = flows_by_name.get(raw.flow)
        if flow is None:
            messages.append(f"Fluxo {raw.flow} inválido")

    record: str | None = None
    if raw.record:
        digits, valid = normalize_record(raw.record)
        if valid:
            record = digits
        else:
            messages.append(f"Número de processo {raw.record} fora do padrão CNJ")

    if raw.nickname and len(raw.nickname) > NICKNAME_MAX_LENGTH:
        messages.append(f"Apelido não pode exceder os {NICKNAME_MAX_LENGTH} caracteres")

    id_priority = resolve_priority(raw.priority)
    if id_priority is None:
        messages.append(f"Prioridade {raw.priority} não encontrada")

    if messages:
        return Invalid(tuple(messages))

    # all checks passed, so every field below is populated
    assert flow is not None and record is not None and id_priority is not None
    return Valid(
        ProcessPayload(
            record=record,
            id_flow=flow.id_flow,
            id_unit=flow.id_unit,
            id_priority=id_priority,
            nickname=raw.nickname,
            finalised=False,
        )
    )


def validate_raw_rows(raw_rows: Iterable[RawRow], flows: Iterable[Flow]) -> list[ImportRow]:
    flows_by_name: dict[str, Flow] = {}
    for f in flows:
        flows_by_name.setdefault(f.name, f)
    return [ImportRow.from_result(raw, validate_row(raw, flows_by_name)) for raw in raw_rows]


def validate_rows(grid: Grid, header_map: HeaderIndexMap, flows: Iterable[Flow]) -> list[ImportRow]:
    """Extract and validate every data row of ``grid`` against the resolved flows."""
    return validate_raw_rows(extract_raw_rows(grid, header_map), flows)
