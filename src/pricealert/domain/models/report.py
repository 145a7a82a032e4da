from decimal import Decimal
from typing import Union

from pydantic import BaseModel

NOT_AVAILABLE = "N/A"

Cell = Union[Decimal, str]


class ReportRow(BaseModel):
    crypto_id: str
    cells: list[Cell]  # One per currency code, request order; NOT_AVAILABLE when missing


class ReportBody(BaseModel):
    subject: str
    crypto_ids: list[str]
    currency_codes: list[str]
    rows: list[ReportRow]
    text: str
    html: str
