"""Domain types for price lookups and history pagination."""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel

# crypto id -> currency code -> price; sparse
PriceMatrix = dict[str, dict[str, Decimal]]


class LookupRequest(BaseModel):
    """A validated lookup: normalized ids in request order."""

    email: str
    crypto_ids: list[str]
    currency_codes: list[str]


class PaginationRequest(BaseModel):
    email: str
    limit: int
    cursor: Optional[dict[str, str]] = None  # Store-native key, already decoded


class HistoryPage(BaseModel):
    items: list[dict[str, Any]]
    next_token: Optional[str] = None
