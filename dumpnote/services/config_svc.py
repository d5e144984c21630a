# dumpnote/services/config_svc.py
from ..db import get_conn
from ..logs import LogContext

DEFAULTS = {
    "page_size": "50",
}

MAX_PAGE_SIZE = 500


def ensure_default_config():
    """Create the config table and seed missing keys (existing values are kept)."""
    with get_conn() as conn:
        conn.execute("CREATE TABLE IF NOT EXISTS config (key TEXT PRIMARY KEY, value TEXT)")
        for k, v in DEFAULTS.items():
            conn.execute(
                "INSERT INTO config(key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO NOTHING",
                (k, v),
            )
        conn.commit()


def _to_page_size(raw) -> int:
    try:
        n = int(raw)
    except (TypeError, ValueError):
        return int(DEFAULTS["page_size"])
    return min(max(n, 1), MAX_PAGE_SIZE)


def get_config() -> dict:
    with get_conn() as conn:
        rows = conn.execute("SELECT key, value FROM config").fetchall()
    cfg = {r["key"]: r["value"] for r in rows}
    return {
        "page_size": _to_page_size(cfg.get("page_size", DEFAULTS["page_size"])),
    }


def update_config(upd: dict, log: LogContext) -> list[str]:
    unknown = [k for k in upd if k not in DEFAULTS]
    if unknown:
        raise ValueError(f"unknown_setting: {', '.join(sorted(unknown))}")
    if "page_size" in upd:
        try:
            n = int(upd["page_size"])
        except (TypeError, ValueError):
            raise ValueError("page_size must be an integer")
        if not 1 <= n <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    updated = []
    with get_conn() as conn:
        before = {r["key"]: r["value"] for r in conn.execute("SELECT key,value FROM config")}
        for k, v in upd.items():
            conn.execute(
                "INSERT INTO config(key,value) VALUES(?,?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (k, str(v))
            )
            updated.append(k)
        conn.commit()
        after = {r["key"]: r["value"] for r in conn.execute("SELECT key,value FROM config")}
    log.set_before(before); log.set_after(after)
    return updated
