from __future__ import annotations

from fastapi import APIRouter, Depends

from ..domain import User
from ..logs import search_operation_logs
from .auth import current_user

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    entity_type: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    user: User = Depends(current_user),
):
    # users only ever see their own operations
    total, items = search_operation_logs(
        query, action, ts_from, ts_to, page, size, user=str(user.id), entity_type=entity_type
    )
    return {"total": total, "items": items}
