"""
Query-string filters for note listings.

Turns request values such as ``set=0``, ``timestamp=>=1700000000000`` or
``marked=true`` into repository predicates. Only the columns and operators
listed here are accepted, so everything reaching the SQL layer is trusted.
"""
from __future__ import annotations

from typing import Mapping, Optional

from ..domain.note import NO_SET
from ..repository import Predicate

# two-char operators must be tried before their one-char prefixes
_OPERATOR_PREFIXES = ("<>", "!=", ">=", "<=", "=", ">", "<")

INT_FILTERS = ("id", "set", "timestamp")
BOOL_FILTERS = ("marked",)


def split_operator(raw: str) -> tuple[str, str]:
    """``">=12"`` -> ``(">=", "12")``; a bare value means equality."""
    for op in _OPERATOR_PREFIXES:
        if raw.startswith(op):
            return ("<>" if op == "!=" else op), raw[len(op):]
    return "=", raw


def _int_predicate(column: str, raw: str) -> Predicate:
    op, text = split_operator(raw.strip())
    text = text.strip()
    if column == "set" and text.lower() in ("none", "null"):
        return Predicate(column, op, NO_SET)
    try:
        value = int(text)
    except ValueError:
        raise ValueError(f"Expected integer at {column}={raw}")
    return Predicate(column, op, value)


def _bool_predicate(column: str, raw: str) -> Predicate:
    text = raw.strip().lower()
    if text not in ("true", "false"):
        raise ValueError(f"Expected boolean at {column}={raw}")
    return Predicate(column, "=", text == "true")


def parse_note_filters(query: Mapping[str, Optional[str]]) -> list[Predicate]:
    """Build the extra predicates for ``User.get_notes`` from query parameters."""
    predicates: list[Predicate] = []
    for col in INT_FILTERS:
        raw = query.get(col)
        if raw:
            predicates.append(_int_predicate(col, raw))
    for col in BOOL_FILTERS:
        raw = query.get(col)
        if raw:
            predicates.append(_bool_predicate(col, raw))
    search = query.get("search")
    if search:
        predicates.append(Predicate("body", "LIKE", f"%{search}%"))
    return predicates
