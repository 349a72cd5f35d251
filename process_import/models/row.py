from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Union

"""Row level models: raw spreadsheet rows, validation results and ImportRow.

The validator turns a RawRow into either ``Valid`` (carrying the ProcessPayload
that will become a ``process`` record) or ``Invalid`` (carrying the ordered
error messages). ImportRow is what gets persisted in ``processes_file_item``.
"""

__all__ = [
    "RowStatus",
    "RawRow",
    "ProcessPayload",
    "Valid",
    "Invalid",
    "RowResult",
    "ImportRow",
]


class RowStatus(Enum):
    IMPORTED = "imported"
    MANUALLY_IMPORTED = "manuallyImported"
    ERROR = "error"


@dataclass(frozen=True)
class RawRow:
    """Tracked cells of one data row, as text (``None`` when the cell is empty)."""
    row_index: int  # 0-based position after the header row
    record: str | None = None
    flow: str | None = None
    nickname: str | None = None
    priority: str | None = None

    def is_empty(self) -> bool:
        return not (self.record or self.flow or self.nickname or self.priority)


@dataclass(frozen=True)
class ProcessPayload:
    """Values of the ``process`` row created for a valid spreadsheet row."""
    record: str  # canonical 20-digit form
    id_flow: int
    id_unit: int
    id_priority: int
    nickname: str | None = None
    finalised: bool = False

    def as_insert_values(self) -> list[Any]:
        return [
            self.record,
            self.id_flow,
            self.id_unit,
            self.id_priority,
            self.nickname,
            self.finalised,
        ]


@dataclass(frozen=True)
class Valid:
    payload: ProcessPayload


@dataclass(frozen=True)
class Invalid:
    messages: tuple[str, ...]

    @property
    def message(self) -> str:
        return "\n".join(self.messages).strip()


RowResult = Union[Valid, Invalid]


@dataclass(frozen=True)
class ImportRow:
    """One parsed spreadsheet row and its outcome.

    An ``error`` row never carries a payload nor an ``id_process``; an
    ``imported`` row always carries its payload and, once persisted, the id of
    the created process.
    """
    raw: RawRow
    status: RowStatus
    message: str | None = None
    payload: ProcessPayload | None = None
    id_process: int | None = None

    @classmethod
    def from_result(cls, raw: RawRow, result: RowResult) -> ImportRow:
        if isinstance(result, Valid):
            return cls(raw=raw, status=RowStatus.IMPORTED, payload=result.payload)
        return cls(raw=raw, status=RowStatus.ERROR, message=result.message)

    @property
    def is_error(self) -> bool:
        return self.status is RowStatus.ERROR

    def with_process_id(self, id_process: int) -> ImportRow:
        return replace(self, id_process=id_process)
