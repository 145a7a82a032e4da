from typing import Optional

from pydantic import BaseModel, Field


class HistoryItem(BaseModel):
    id: str
    email: str
    crypto: str
    currency: str
    timestamp: str
    prices: dict[str, dict[str, str]] = {}


class HistoryResponse(BaseModel):
    items: list[HistoryItem]
    next_start_key: Optional[str] = Field(None, alias="nextStartKey")

    model_config = {"populate_by_name": True}
