import logging
from typing import Optional

from pricealert.db.repos.history_repo import HistoryRepo
from pricealert.domain.models.lookup import HistoryPage
from pricealert.exceptions import InvalidToken
from pricealert.history.cursor import encode_token

logger = logging.getLogger(__name__)


class HistoryQueryEngine:
    """Newest-first paginated reads of one email's search history."""

    def __init__(self, repo: HistoryRepo) -> None:
        self._repo = repo

    async def query(self, email: str, limit: int, cursor: Optional[dict[str, str]] = None) -> HistoryPage:
        """Return up to ``limit`` records after ``cursor``.

        ``next_token`` is set only when the store has more records past this
        page, and is the store's own key re-encoded.
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        if cursor is not None and cursor.get("email") != email:
            raise InvalidToken()

        rows, last_key = await self._repo.query(email, limit, exclusive_start_key=cursor, descending=True)
        logger.debug("History page: %d items, more=%s", len(rows), last_key is not None)

        return HistoryPage(
            items=[row.to_dict() for row in rows],
            next_token=encode_token(last_key) if last_key is not None else None,
        )
