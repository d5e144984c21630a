from __future__ import annotations

from typing import Any, Mapping, Optional

from ..domain import Note, NoteSet, SetType, User
from ..logs import LogContext
from .filter_svc import parse_note_filters

NOTE_EDITABLE = ("body", "marked", "set")
SET_EDITABLE = ("name", "type")
NOTE_NULLABLE = ("set",)


def _pick(fields: Mapping[str, Any], allowed: tuple[str, ...],
          nullable: tuple[str, ...] = ()) -> dict[str, Any]:
    unknown = [k for k in fields if k not in allowed]
    if unknown:
        raise ValueError(f"not_editable: {', '.join(sorted(unknown))}")
    if not fields:
        raise ValueError("no fields to update")
    nulls = [k for k, v in fields.items() if v is None and k not in nullable]
    if nulls:
        raise ValueError(f"null_not_allowed: {', '.join(sorted(nulls))}")
    return dict(fields)


# ===== notes =====
def list_notes(user: User, query: Mapping[str, Optional[str]], offset: int = 0,
               newest_first: bool = False) -> list[dict]:
    predicates = parse_note_filters(query)
    return [n.serialize() for n in user.get_notes(predicates, offset, newest_first=newest_first)]


def get_owned_note(user: User, note_id: int) -> Optional[Note]:
    note = Note.get_note(note_id)
    if note is None or note.owner != user.id:
        return None
    return note


def get_owned_set(user: User, set_id: int) -> Optional[NoteSet]:
    note_set = NoteSet.get_set(set_id)
    if note_set is None or note_set.owner != user.id:
        return None
    return note_set


def _resolve_set(user: User, set_id: Optional[int]) -> Optional[NoteSet]:
    if set_id is None:
        return None
    note_set = get_owned_set(user, set_id)
    if note_set is None:
        raise ValueError("set_not_found")
    return note_set


def create_note(user: User, body: str, set_id: Optional[int], log: LogContext) -> dict:
    note = user.post_note(body, _resolve_set(user, set_id))
    log.set_entity("NOTE", note.id)
    log.set_after(note.serialize())
    return note.serialize()


def update_note(user: User, note: Note, fields: Mapping[str, Any], log: LogContext) -> dict:
    upd = _pick(fields, NOTE_EDITABLE, NOTE_NULLABLE)
    if upd.get("set") is not None:
        _resolve_set(user, upd["set"])
    log.set_entity("NOTE", note.id)
    log.set_before(note.serialize())
    note.edit(upd)
    after = Note.get_note(note.id)
    if after is None:
        raise LookupError("note_not_found")
    log.set_after(after.serialize())
    return after.serialize()


def delete_note(note: Note, log: LogContext) -> None:
    log.set_entity("NOTE", note.id)
    log.set_before(note.serialize())
    note.delete()


# ===== sets =====
def list_sets(user: User, offset: int = 0) -> list[dict]:
    return [s.serialize() for s in user.get_note_sets(offset)]


def create_set(user: User, name: str, set_type: str, log: LogContext) -> dict:
    try:
        kind = SetType(set_type)
    except ValueError:
        raise ValueError(f"invalid_set_type: {set_type}")
    note_set = user.create_set(name, kind)
    log.set_entity("SET", note_set.id)
    log.set_after(note_set.serialize())
    return note_set.serialize()


def update_set(note_set: NoteSet, fields: Mapping[str, Any], log: LogContext) -> dict:
    upd = _pick(fields, SET_EDITABLE)
    if "type" in upd:
        try:
            SetType(upd["type"])
        except ValueError:
            raise ValueError(f"invalid_set_type: {upd['type']}")
    log.set_entity("SET", note_set.id)
    log.set_before(note_set.serialize())
    note_set.edit(upd)
    after = NoteSet.get_set(note_set.id)
    if after is None:
        raise LookupError("set_not_found")
    log.set_after(after.serialize())
    return after.serialize()


def delete_set(note_set: NoteSet, log: LogContext) -> int:
    """Delete the set and its notes; returns how many notes went with it."""
    notes = note_set.get_notes()
    log.set_entity("SET", note_set.id)
    log.set_before({**note_set.serialize(), "note_ids": [n.id for n in notes]})
    note_set.delete()
    return len(notes)
