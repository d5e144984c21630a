from __future__ import annotations

from sqlite3 import Connection

from ..db import Executor, get_executor
from .table import Table

TABLE_COLUMNS: dict[str, tuple[str, ...]] = {
    "users": ("id", "name", "email", "gid"),
    "sets": ("id", "owner", "name", "type"),
    "notes": ("id", "owner", "set", "timestamp", "body", "marked"),
}

DDL = """
CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY,
  name TEXT,
  email TEXT,
  gid TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS sets (
  id INTEGER PRIMARY KEY,
  owner INTEGER NOT NULL REFERENCES users(id),
  name TEXT NOT NULL,
  type TEXT NOT NULL CHECK (type IN ('daily', 'monthly', 'untimed'))
);
CREATE TABLE IF NOT EXISTS notes (
  id INTEGER PRIMARY KEY,
  owner INTEGER NOT NULL REFERENCES users(id),
  "set" INTEGER NOT NULL DEFAULT -1,
  timestamp INTEGER NOT NULL,
  body TEXT NOT NULL,
  marked INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_notes_owner ON notes(owner);
CREATE INDEX IF NOT EXISTS idx_notes_set ON notes("set");
CREATE INDEX IF NOT EXISTS idx_sets_owner ON sets(owner);
"""


def ensure_schema(conn: Connection):
    conn.executescript(DDL)


def get_table(name: str, executor: Executor | None = None) -> Table:
    return Table(executor or get_executor(), name, TABLE_COLUMNS[name])
