from pricealert.db.repos.history_repo import HistoryRepo

__all__ = ["HistoryRepo"]
