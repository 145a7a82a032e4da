"""Search history: one immutable row per successful price lookup."""

from typing import Any

from sqlalchemy import JSON, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pricealert.db.session import Base


class SearchHistoryRecord(Base):
    """Partitioned by ``email``, ordered by ``timestamp`` (ISO-8601 UTC, fixed width).

    Ties on timestamp are broken by ``id`` so the (timestamp, id) pair is a
    total order inside one partition.
    """

    __tablename__ = "search_history"
    __table_args__ = (Index("ix_search_history_email_timestamp", "email", "timestamp"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(320))
    crypto: Mapped[str] = mapped_column(Text)  # comma-joined ids, request order
    currency: Mapped[str] = mapped_column(Text)  # comma-joined codes, request order
    timestamp: Mapped[str] = mapped_column(String(40))
    prices: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)  # {id: {code: "price"}}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "crypto": self.crypto,
            "currency": self.currency,
            "timestamp": self.timestamp,
            "prices": self.prices or {},
        }
