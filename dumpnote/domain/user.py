from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from ..db import DEFAULT_USER_CACHE_SIZE, get_executor, read_config_yaml
from ..repository import Predicate, all_of, get_table
from ..services.config_svc import get_config
from .cache import IdentityCache
from .note import NO_SET, Note, NoteSet, SetType

logger = logging.getLogger(__name__)

_cache: Optional[IdentityCache["User"]] = None


def user_cache() -> IdentityCache["User"]:
    global _cache
    if _cache is None:
        size = read_config_yaml().get("user_cache_size", DEFAULT_USER_CACHE_SIZE)
        _cache = IdentityCache(size)
    return _cache


@dataclass(frozen=True)
class User:
    id: int
    name: Optional[str]
    email: Optional[str]
    gid: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(id=int(row["id"]), name=row["name"], email=row["email"], gid=row["gid"])

    def serialize(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email, "gid": self.gid}

    # ===== identity =====
    @staticmethod
    def resolve(id_: int) -> Optional["User"]:
        cached = user_cache().get(id_)
        if cached is not None:
            return cached
        logger.debug("user cache miss id=%s", id_)
        generation = user_cache().generation
        user = User._fetch_one(Predicate("id", "=", id_))
        if user is not None:
            # skipped if an edit invalidated this user while the row was being read
            user_cache().put(user.id, user.gid, user, generation)
        return user

    @staticmethod
    def create_or_get(gid: str, name: Optional[str], email: Optional[str]) -> "User":
        cached = user_cache().get_by_key(gid)
        if cached is not None:
            return cached
        generation = user_cache().generation
        user = User._fetch_one(Predicate("gid", "=", gid))
        if user is None:
            try:
                with get_executor().transaction() as tx:
                    users = get_table("users", tx)
                    user = User(id=users.next_id(), name=name, email=email, gid=gid)
                    users.insert([user.id, user.name, user.email, user.gid])
            except sqlite3.IntegrityError:
                # another request inserted the same gid first
                logger.warning("user insert conflict for gid=%s, re-reading", gid)
                user = User._fetch_one(Predicate("gid", "=", gid))
                if user is None:
                    raise
        user_cache().put(user.id, user.gid, user, generation)
        return user

    def edit(self, fields: Mapping[str, Any]) -> None:
        get_table("users").update(Predicate("id", "=", self.id), dict(fields))
        user_cache().invalidate(self.id)

    @staticmethod
    def get_next_id() -> int:
        return get_table("users").next_id()

    @staticmethod
    def _fetch_one(predicate: Predicate) -> Optional["User"]:
        res = get_table("users").select("*").where(predicate).execute()
        return User.from_row(res.rows[0]) if res.rowcount > 0 else None

    # ===== notes =====
    def get_notes(
        self,
        predicates: Sequence[Predicate] = (),
        offset: int = 0,
        newest_first: bool = False,
        page_size: Optional[int] = None,
    ) -> list[Note]:
        size = page_size or get_config()["page_size"]
        where = all_of([Predicate("owner", "=", self.id), *predicates])
        query = get_table("notes").select("*").where(where)
        if newest_first:
            query.order_by("timestamp", descending=True)
        else:
            query.order_by("id")
        res = query.limit(size).offset(offset).execute()
        return [Note.from_row(r) for r in res.rows]

    def post_note(self, body: str, set: Optional[NoteSet] = None) -> Note:
        timestamp = int(time.time() * 1000)
        with get_executor().transaction() as tx:
            notes = get_table("notes", tx)
            id_ = notes.next_id()
            notes.insert([
                id_, self.id,
                set.id if set is not None else NO_SET,
                timestamp, body, False,
            ])
        return Note(
            id=id_, owner=self.id, set=set.id if set is not None else None,
            timestamp=timestamp, body=body, marked=False,
        )

    # ===== sets =====
    def get_note_sets(self, offset: int = 0, page_size: Optional[int] = None) -> list[NoteSet]:
        size = page_size or get_config()["page_size"]
        res = (
            get_table("sets")
            .select("*")
            .where(Predicate("owner", "=", self.id))
            .order_by("id")
            .limit(size)
            .offset(offset)
            .execute()
        )
        return [NoteSet.from_row(r) for r in res.rows]

    def create_set(self, name: str, type: SetType | str) -> NoteSet:
        set_type = SetType(type)
        with get_executor().transaction() as tx:
            sets = get_table("sets", tx)
            id_ = sets.next_id()
            sets.insert([id_, self.id, name, set_type.value])
        return NoteSet(id=id_, owner=self.id, name=name, type=set_type)
