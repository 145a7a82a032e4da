from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pricealert.api.deps import get_db, get_settings
from pricealert.api.schemas.history import HistoryItem, HistoryResponse
from pricealert.config import Settings
from pricealert.db.repos.history_repo import HistoryRepo
from pricealert.history.query import HistoryQueryEngine
from pricealert.lookup.validator import validate_pagination_request

router = APIRouter(prefix="/api/history", tags=["history"])

DbDep = Annotated[AsyncSession, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


@router.get("", response_model=HistoryResponse)
async def get_history(
    db: DbDep,
    settings: SettingsDep,
    email: Optional[str] = Query(None),
    limit: Optional[str] = Query(None, description="Page size; non-numeric or <= 0 means default"),
    start_key: Optional[str] = Query(None, alias="startKey"),
    token: Optional[str] = Query(None, description="Alias of startKey"),
) -> HistoryResponse:
    """Newest-first search history for one email. Feed ``nextStartKey`` back to get the next page."""
    request = validate_pagination_request(
        email,
        limit,
        start_key or token,
        default_limit=settings.history_default_limit,
        max_limit=settings.history_max_limit,
    )
    engine = HistoryQueryEngine(HistoryRepo(db))
    page = await engine.query(request.email, request.limit, request.cursor)
    return HistoryResponse(
        items=[HistoryItem(**item) for item in page.items],
        next_start_key=page.next_token,
    )
