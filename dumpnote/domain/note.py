from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from ..db import get_executor
from ..repository import Predicate, get_table

NO_SET = -1


class SetType(str, Enum):
    DAILY = "daily"
    MONTHLY = "monthly"
    UNTIMED = "untimed"


def _set_to_row(value: Optional[int]) -> int:
    return NO_SET if value is None else int(value)


def _set_from_row(value: Any) -> Optional[int]:
    if value is None or int(value) < 0:
        return None
    return int(value)


@dataclass(frozen=True)
class Note:
    id: int
    owner: int
    set: Optional[int]
    timestamp: int
    body: str
    marked: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Note":
        return cls(
            id=int(row["id"]),
            owner=int(row["owner"]),
            set=_set_from_row(row["set"]),
            timestamp=int(row["timestamp"]),
            body=row["body"],
            marked=bool(row["marked"]),
        )

    def edit(self, fields: Mapping[str, Any]) -> None:
        """Write the given fields; this snapshot is left as is, re-fetch to observe them."""
        upd = dict(fields)
        if "set" in upd:
            upd["set"] = _set_to_row(upd["set"])
        if "marked" in upd:
            upd["marked"] = bool(upd["marked"])
        get_table("notes").update(Predicate("id", "=", self.id), upd)

    def delete(self) -> None:
        get_table("notes").delete(Predicate("id", "=", self.id))

    def serialize(self) -> dict:
        return {
            "id": self.id,
            "owner": self.owner,
            "set": self.set,
            "timestamp": self.timestamp,
            "body": self.body,
            "marked": self.marked,
        }

    @staticmethod
    def get_note(id_: int) -> Optional["Note"]:
        res = get_table("notes").select("*").where(Predicate("id", "=", id_)).execute()
        return Note.from_row(res.rows[0]) if res.rowcount > 0 else None

    @staticmethod
    def get_next_id() -> int:
        return get_table("notes").next_id()


@dataclass(frozen=True)
class NoteSet:
    id: int
    owner: int
    name: str
    type: SetType

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "NoteSet":
        return cls(
            id=int(row["id"]),
            owner=int(row["owner"]),
            name=row["name"],
            type=SetType(row["type"]),
        )

    def edit(self, fields: Mapping[str, Any]) -> None:
        upd = dict(fields)
        if "type" in upd:
            upd["type"] = SetType(upd["type"]).value
        get_table("sets").update(Predicate("id", "=", self.id), upd)

    def delete(self) -> None:
        """Delete the set and every note filed under it, in one transaction."""
        with get_executor().transaction() as tx:
            get_table("notes", tx).delete(Predicate("set", "=", self.id))
            get_table("sets", tx).delete(Predicate("id", "=", self.id))

    def get_notes(self) -> list[Note]:
        res = (
            get_table("notes")
            .select("*")
            .where(Predicate("set", "=", self.id))
            .order_by("id")
            .execute()
        )
        return [Note.from_row(r) for r in res.rows]

    def serialize(self) -> dict:
        return {
            "id": self.id,
            "owner": self.owner,
            "name": self.name,
            "type": self.type.value,
        }

    @staticmethod
    def get_set(id_: int) -> Optional["NoteSet"]:
        res = get_table("sets").select("*").where(Predicate("id", "=", id_)).execute()
        return NoteSet.from_row(res.rows[0]) if res.rowcount > 0 else None

    @staticmethod
    def get_next_id() -> int:
        return get_table("sets").next_id()
