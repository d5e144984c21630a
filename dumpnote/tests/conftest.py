import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "dumpnote_test.db"
    # Point the app to this temp DB
    os.environ["DUMPNOTE_DB_PATH"] = str(path)
    from dumpnote.api import ensure_all_schemas
    ensure_all_schemas()
    return str(path)


@pytest.fixture()
def client(tmp_db_path):
    from dumpnote.api import app
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture()
def auth_headers(client):
    """Log a user in through the API and return the identity header for it."""
    res = client.post("/api/auth/login", json={"gid": "g-client", "name": "Client", "email": "c@example.com"})
    assert res.status_code == 200
    return {"X-User-Id": str(res.json()["id"])}


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("DUMPNOTE_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    tables = ["notes", "sets", "users", "operation_log", "config"]
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in tables:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    from dumpnote.services.config_svc import ensure_default_config
    from dumpnote.domain import user_cache
    ensure_default_config()
    user_cache().clear()
    yield
