from __future__ import annotations

"""Static priority lookup.

Priorities are not queried from reference data: labels found in uploaded
spreadsheets are matched, in table order, against fixed alias sets. The first
matching entry wins. A blank or absent label means "Sem prioridade" (id 0).
"""

__all__ = [
    "NO_PRIORITY_ID",
    "PRIORITY_TABLE",
    "resolve_priority",
]

NO_PRIORITY_ID = 0

PRIORITY_TABLE: tuple[tuple[frozenset[str | None], int], ...] = (
    (frozenset({"Sem prioridade", "", None}), NO_PRIORITY_ID),
    (frozenset({"Idoso", "Idosa(a) maior de 80 anos"}), 4),
    (frozenset({"Art. 1048, II", "ECA"}), 1),
    (frozenset({"Art. 1048, IV", "Licitação"}), 2),
    (frozenset({"Art. 7 - 12.016/2009"}), 3),
    (frozenset({"Doença grave", "Portador(a) de doença grave"}), 7),
    (frozenset({"Deficiente", "Pessoa com deficiencia"}), 5),
    (frozenset({"Situação rua", "Pessoa em situação de rua"}), 6),
    (frozenset({"Réu Preso", "Réu preso", "preso"}), 8),
)


def resolve_priority(label: str | None) -> int | None:
    """Return the priority id for a label, or None when no alias matches."""
    for aliases, priority_id in PRIORITY_TABLE:
        if label in aliases:
            return priority_id
    return None
