from pricealert.db.models.search_history import SearchHistoryRecord

__all__ = [
    "SearchHistoryRecord",
]
