from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..domain import User
from ..logs import LogContext
from ..services import note_svc
from .auth import current_user

router = APIRouter()


class SetCreate(BaseModel):
    name: str
    type: str  # daily/monthly/untimed


class SetPatch(BaseModel):
    name: str | None = None
    type: str | None = None


def _owned_set_or_404(user: User, set_id: int):
    note_set = note_svc.get_owned_set(user, set_id)
    if note_set is None:
        raise HTTPException(status_code=404, detail="set_not_found")
    return note_set


@router.get("/api/sets")
def api_sets_list(offset: int = Query(0, ge=0), user: User = Depends(current_user)):
    return {"items": note_svc.list_sets(user, offset)}


@router.post("/api/sets", status_code=201)
def api_sets_create(body: SetCreate, user: User = Depends(current_user)):
    log = LogContext("CREATE_SET", str(user.id))
    log.set_payload(body.dict())
    try:
        out = note_svc.create_set(user, body.name, body.type, log)
        log.write("OK")
        return out
    except ValueError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        log.write("ERROR", "internal error")
        raise HTTPException(status_code=500, detail="internal error")


@router.get("/api/sets/{set_id}")
def api_sets_get(set_id: int, user: User = Depends(current_user)):
    return _owned_set_or_404(user, set_id).serialize()


@router.get("/api/sets/{set_id}/notes")
def api_sets_notes(set_id: int, user: User = Depends(current_user)):
    note_set = _owned_set_or_404(user, set_id)
    return {"items": [n.serialize() for n in note_set.get_notes()]}


@router.patch("/api/sets/{set_id}")
def api_sets_patch(set_id: int, body: SetPatch, user: User = Depends(current_user)):
    note_set = _owned_set_or_404(user, set_id)
    log = LogContext("EDIT_SET", str(user.id))
    fields = body.dict(exclude_unset=True)
    log.set_payload(fields)
    try:
        out = note_svc.update_set(note_set, fields, log)
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


@router.delete("/api/sets/{set_id}")
def api_sets_delete(set_id: int, user: User = Depends(current_user)):
    note_set = _owned_set_or_404(user, set_id)
    log = LogContext("DELETE_SET", str(user.id))
    try:
        removed = note_svc.delete_set(note_set, log)
        log.set_after({"notes_deleted": removed})
        log.write("OK")
        return {"message": "ok", "notes_deleted": removed}
    except Exception:
        log.write("ERROR", "internal error")
        raise HTTPException(status_code=500, detail="internal error")
