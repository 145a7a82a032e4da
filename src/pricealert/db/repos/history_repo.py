import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pricealert.db.models.search_history import SearchHistoryRecord


def utc_now_iso() -> str:
    """Fixed-width ISO-8601 UTC timestamp; lexical order equals time order."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class HistoryRepo:
    """Email-partitioned, timestamp-ordered search log.

    Store-native cursor is the last returned row's key:
    ``{"email": ..., "timestamp": ..., "id": ...}``.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def append(
        self,
        email: str,
        crypto: str,
        currency: str,
        prices: dict[str, Any],
        timestamp: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> SearchHistoryRecord:
        """Insert one immutable record. A duplicate ``record_id`` fails on flush."""
        record = SearchHistoryRecord(
            id=record_id or str(uuid.uuid4()),
            email=email,
            crypto=crypto,
            currency=currency,
            timestamp=timestamp or utc_now_iso(),
            prices=prices,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def query(
        self,
        email: str,
        limit: int,
        exclusive_start_key: Optional[dict[str, str]] = None,
        descending: bool = True,
    ) -> tuple[list[SearchHistoryRecord], Optional[dict[str, str]]]:
        """Return one page for ``email`` and the key to resume after it (None on the last page)."""
        ts_col = SearchHistoryRecord.timestamp
        id_col = SearchHistoryRecord.id

        stmt = select(SearchHistoryRecord).where(SearchHistoryRecord.email == email)

        if exclusive_start_key is not None:
            start_ts = exclusive_start_key["timestamp"]
            start_id = exclusive_start_key["id"]
            if descending:
                stmt = stmt.where(or_(ts_col < start_ts, and_(ts_col == start_ts, id_col < start_id)))
            else:
                stmt = stmt.where(or_(ts_col > start_ts, and_(ts_col == start_ts, id_col > start_id)))

        if descending:
            stmt = stmt.order_by(ts_col.desc(), id_col.desc())
        else:
            stmt = stmt.order_by(ts_col.asc(), id_col.asc())

        # One extra row tells us whether another page exists
        result = await self._session.execute(stmt.limit(limit + 1))
        rows = list(result.scalars().all())

        if len(rows) <= limit:
            return rows, None

        rows = rows[:limit]
        last = rows[-1]
        return rows, {"email": last.email, "timestamp": last.timestamp, "id": last.id}

    async def count_for_email(self, email: str) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(SearchHistoryRecord).where(SearchHistoryRecord.email == email)
        )
        return result.scalar_one()
