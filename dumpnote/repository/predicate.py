"""
Composable WHERE-clause predicates.

A Predicate is a ``column operator value`` comparison with an ordered list of
AND/OR-attached children. Compiling yields SQL text containing generic
placeholders plus the parameter list in the same left-to-right order; the
statement builder turns the placeholders into positional markers afterwards
(see ``finalize``).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Sequence

PLACEHOLDER = "$?"

OPERATORS = ("=", "<>", ">", "<", ">=", "<=", "LIKE")


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


@dataclass(frozen=True)
class Predicate:
    column: str
    operator: str
    value: Any
    children: tuple[tuple[str, "Predicate"], ...] = ()

    def __post_init__(self):
        op = self.operator.strip().upper()
        if op not in OPERATORS:
            raise ValueError(f"invalid_operator: {self.operator!r}")
        object.__setattr__(self, "operator", op)

    def _attach(self, conj: str, other: "Predicate") -> "Predicate":
        if not isinstance(other, Predicate):
            raise TypeError(f"expected Predicate, got {type(other).__name__}")
        return Predicate(self.column, self.operator, self.value, self.children + ((conj, other),))

    def and_(self, other: "Predicate") -> "Predicate":
        """Return a copy of this predicate with ``AND other`` appended."""
        return self._attach("AND", other)

    def or_(self, other: "Predicate") -> "Predicate":
        """Return a copy of this predicate with ``OR other`` appended."""
        return self._attach("OR", other)

    __and__ = and_
    __or__ = or_

    @property
    def is_compound(self) -> bool:
        return len(self.children) > 0

    def columns(self) -> Iterator[str]:
        yield self.column
        for _, child in self.children:
            yield from child.columns()

    def compile(self) -> tuple[str, list[Any]]:
        text = f"{quote_ident(self.column)} {self.operator} {PLACEHOLDER}"
        params: list[Any] = [self.value]
        for conj, child in self.children:
            child_text, child_params = child.compile()
            if child.is_compound:
                child_text = f"({child_text})"
            text += f" {conj} {child_text}"
            params.extend(child_params)
        return text, params


def all_of(predicates: Sequence[Predicate]) -> Predicate | None:
    """Chain predicates with AND onto the first one; None for an empty sequence."""
    if not predicates:
        return None
    head = predicates[0]
    for p in predicates[1:]:
        head = head.and_(p)
    return head


def finalize(text: str, params: Sequence[Any]) -> str:
    """
    Replace the n-th generic placeholder with the positional marker ``?n``.

    Runs exactly once per statement, over the fully assembled text. The
    placeholder count must match the parameter count, so finalizing text that
    was already finalized is rejected.
    """
    pieces = text.split(PLACEHOLDER)
    if len(pieces) - 1 != len(params):
        raise ValueError(
            f"placeholder_mismatch: {len(pieces) - 1} placeholders for {len(params)} params"
        )
    out = [pieces[0]]
    for i, piece in enumerate(pieces[1:], start=1):
        out.append(f"?{i}")
        out.append(piece)
    return "".join(out)
