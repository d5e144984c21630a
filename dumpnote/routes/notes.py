from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..domain import User
from ..logs import LogContext
from ..services import note_svc
from .auth import current_user

router = APIRouter()


class NoteCreate(BaseModel):
    body: str
    set: int | None = None


class NotePatch(BaseModel):
    body: str | None = None
    marked: bool | None = None
    set: int | None = None


@router.get("/api/notes")
def api_notes_list(
    id: str | None = None,
    set: str | None = None,
    timestamp: str | None = None,
    marked: str | None = None,
    search: str | None = None,
    offset: int = Query(0, ge=0),
    newest_first: bool = False,
    user: User = Depends(current_user),
):
    query = {"id": id, "set": set, "timestamp": timestamp, "marked": marked, "search": search}
    try:
        items = note_svc.list_notes(user, query, offset, newest_first=newest_first)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"items": items}


@router.post("/api/notes", status_code=201)
def api_notes_create(body: NoteCreate, user: User = Depends(current_user)):
    log = LogContext("CREATE_NOTE", str(user.id))
    log.set_payload(body.dict())
    try:
        note = note_svc.create_note(user, body.body, body.set, log)
        log.write("OK")
        return note
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        log.write("ERROR", "internal error")
        raise HTTPException(status_code=500, detail="internal error")


@router.get("/api/notes/{note_id}")
def api_notes_get(note_id: int, user: User = Depends(current_user)):
    note = note_svc.get_owned_note(user, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="note_not_found")
    return note.serialize()


@router.patch("/api/notes/{note_id}")
def api_notes_patch(note_id: int, body: NotePatch, user: User = Depends(current_user)):
    note = note_svc.get_owned_note(user, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="note_not_found")
    log = LogContext("EDIT_NOTE", str(user.id))
    fields = body.dict(exclude_unset=True)
    log.set_payload(fields)
    try:
        out = note_svc.update_note(user, note, fields, log)
        log.write("OK")
        return out
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except LookupError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        log.write("ERROR", "internal error")
        raise HTTPException(status_code=500, detail="internal error")


@router.delete("/api/notes/{note_id}")
def api_notes_delete(note_id: int, user: User = Depends(current_user)):
    note = note_svc.get_owned_note(user, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="note_not_found")
    log = LogContext("DELETE_NOTE", str(user.id))
    try:
        note_svc.delete_note(note, log)
        log.write("OK")
        return {"message": "ok"}
    except Exception:
        log.write("ERROR", "internal error")
        raise HTTPException(status_code=500, detail="internal error")
