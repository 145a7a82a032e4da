from typing import Any, Optional

from pydantic import BaseModel


class LookupBody(BaseModel):
    """Raw lookup body. Fields are untyped so the validator, not pydantic, picks the 400 code."""

    email: Optional[Any] = None
    crypto: Optional[Any] = None  # comma-separated CoinGecko ids
    currency: Optional[Any] = None  # comma-separated quote currency codes


class ReportRowResponse(BaseModel):
    crypto: str
    cells: list[str]


class ReportResponse(BaseModel):
    crypto: list[str]
    currency: list[str]
    rows: list[ReportRowResponse]


class LookupResponse(BaseModel):
    message: str
    prices: dict[str, dict[str, str]]
    report: ReportResponse
