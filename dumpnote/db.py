from __future__ import annotations

# dumpnote/db.py
import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

import yaml

logger = logging.getLogger(__name__)

# DB path resolution order:
# 1) env DUMPNOTE_DB_PATH (highest priority)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path
# 4) fallback: dumpnote.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "dumpnote.db")

DEFAULT_USER_CACHE_SIZE = 1024


def read_config_yaml() -> dict:
    cfg_path = os.environ.get("DUMPNOTE_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    with open(cfg_path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    out: dict[str, Any] = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    size = cfg.get("user_cache_size")
    if isinstance(size, int) and size > 0:
        out["user_cache_size"] = size
    return out


def get_db_path(_: str | None = None) -> str:
    env_path = os.environ.get("DUMPNOTE_DB_PATH")
    cfg = read_config_yaml()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    Open a SQLite connection, using db_path when given and get_db_path() otherwise.
    Autocommit mode (isolation_level=None); rows come back as sqlite3.Row.
    """
    path = db_path or get_db_path()
    conn = sqlite3.connect(
        path,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
        isolation_level=None,
        timeout=10.0,
    )
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


@dataclass
class QueryResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    rowcount: int = 0


def _run(conn: sqlite3.Connection, sql: str, params: Sequence[Any]) -> QueryResult:
    logger.debug("execute: %s params=%r", sql, list(params))
    cur = conn.execute(sql, tuple(params))
    if cur.description is None:
        return QueryResult([], cur.rowcount)
    rows = [dict(r) for r in cur.fetchall()]
    return QueryResult(rows, len(rows))


class Executor:
    """
    SQL execution boundary.

    Runs finalized statement text (positional ``?n`` markers) with its ordered
    parameter list. Without a bound connection every call opens its own connection
    and closes it when the statement completes; inside ``transaction()`` all calls
    share one connection holding SQLite's write lock.

    sqlite3 errors are not caught here; callers see them unchanged.
    """

    def __init__(self, db_path: str | None = None, conn: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._conn = conn

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        if self._conn is not None:
            return _run(self._conn, sql, params)
        with get_conn(self.db_path) as conn:
            return _run(conn, sql, params)

    @contextmanager
    def transaction(self) -> Iterator["Executor"]:
        # nested use joins the outer transaction
        if self._conn is not None:
            yield self
            return
        with get_conn(self.db_path) as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield Executor(self.db_path, conn=conn)
            except BaseException:
                # SQLite may already have rolled back (e.g. SQLITE_FULL)
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")


_default_executor = Executor()


def get_executor() -> Executor:
    return _default_executor
