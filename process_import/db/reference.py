from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from ..models.reference import Flow
from .tables import FLOW_TABLE

"""Reference-data lookup for flows (read only)."""

__all__ = [
    "find_flows_by_names",
]


def find_flows_by_names(cursor: Any, names: Iterable[str]) -> list[Flow]:
    """Return the flows whose name is in ``names`` (exact, case-sensitive)."""
    distinct = sorted({n for n in names if n})
    if not distinct:
        return []
    cursor.execute(
        f"SELECT id_flow, id_unit, name FROM {FLOW_TABLE} WHERE name = ANY(%s)",
        (distinct,),
    )
    return [Flow(id_flow=r[0], id_unit=r[1], name=r[2]) for r in cursor.fetchall()]
