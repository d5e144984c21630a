"""
Identity hand-off from the OAuth front.

The provider handshake happens outside this service. Its callback posts the
verified profile to ``/api/auth/login``; afterwards every request carries the
resolved user id in the ``X-User-Id`` header.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Header, HTTPException
from pydantic import BaseModel

from ..domain import User
from ..logs import LogContext

router = APIRouter()


def current_user(x_user_id: int | None = Header(None)) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Unauthenticated!")
    user = User.resolve(x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthenticated!")
    return user


def optional_user(x_user_id: int | None = Header(None)) -> User | None:
    return User.resolve(x_user_id) if x_user_id is not None else None


class LoginBody(BaseModel):
    gid: str
    name: str | None = None
    email: str | None = None


@router.post("/api/auth/login")
def api_auth_login(body: LoginBody):
    log = LogContext("LOGIN")
    log.set_payload({"gid": body.gid})
    try:
        user = User.create_or_get(body.gid, body.name, body.email)
        log.set_user(user.id)
        log.set_entity("USER", user.id)
        log.write("OK")
        return user.serialize()
    except Exception:
        log.write("ERROR", "internal error")
        raise HTTPException(status_code=500, detail="internal error")


@router.get("/api/auth/status")
def api_auth_status(user: User | None = Depends(optional_user)):
    return {"authed": user is not None}
