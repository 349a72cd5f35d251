from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "Flow",
]


@dataclass(frozen=True)
class Flow:
    """Reference-data flow as exposed to the importer (table ``flow``)."""
    id_flow: int
    id_unit: int
    name: str
