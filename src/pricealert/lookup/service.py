"""LookupService — validate against the cache, price, render, then notify and record."""

import asyncio
import logging
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricealert.db.repos.history_repo import HistoryRepo
from pricealert.domain.enums import IdentifierKind
from pricealert.domain.models.lookup import LookupRequest, PriceMatrix
from pricealert.domain.models.report import ReportBody
from pricealert.exceptions import HistoryWriteFailed, NotificationFailed
from pricealert.lookup.identifier_cache import IdentifierCache
from pricealert.report.renderer import NotificationRenderer, format_plain

logger = logging.getLogger(__name__)


class LookupResult(BaseModel):
    email: str
    prices: PriceMatrix
    report: ReportBody
    message_id: str
    history_id: str


def _serialize_matrix(matrix: PriceMatrix) -> dict[str, dict[str, str]]:
    return {crypto_id: {code: format_plain(price) for code, price in quotes.items()} for crypto_id, quotes in matrix.items()}


class LookupService:
    """Runs one lookup request end to end.

    Notification and history append are independent and run concurrently.
    Neither is rolled back when the other fails; the raised error says which
    side completed.
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: IdentifierCache,
        price_source: Any,
        notifier: Any,
        renderer: Optional[NotificationRenderer] = None,
    ) -> None:
        self._session = session
        self._history = HistoryRepo(session)
        self._cache = cache
        self._prices = price_source
        self._notifier = notifier
        self._renderer = renderer or NotificationRenderer()

    async def lookup(self, request: LookupRequest) -> LookupResult:
        await self._cache.ensure_populated()

        # Crypto before currency: the first failing kind is reported
        self._cache.validate_against_cache(request.crypto_ids, IdentifierKind.CRYPTO)
        self._cache.validate_against_cache(request.currency_codes, IdentifierKind.CURRENCY)

        matrix = await self._prices.get_prices(
            list(dict.fromkeys(request.crypto_ids)),
            list(dict.fromkeys(request.currency_codes)),
        )
        report = self._renderer.render(matrix, request.crypto_ids, request.currency_codes)

        sent, saved = await asyncio.gather(
            self._notify(request, report),
            self._record(request, matrix),
            return_exceptions=True,
        )
        for outcome in (sent, saved):
            if isinstance(outcome, BaseException) and not isinstance(outcome, Exception):
                raise outcome

        notification_sent = not isinstance(sent, Exception)
        history_saved = not isinstance(saved, Exception)

        if not notification_sent:
            raise NotificationFailed(notification_sent=False, history_saved=history_saved) from sent
        if not history_saved:
            raise HistoryWriteFailed(notification_sent=True, history_saved=False) from saved

        logger.info(
            "Lookup complete: %d crypto x %d currency, history %s",
            len(request.crypto_ids),
            len(request.currency_codes),
            saved,
        )
        return LookupResult(
            email=request.email,
            prices=matrix,
            report=report,
            message_id=sent,
            history_id=saved,
        )

    async def _notify(self, request: LookupRequest, report: ReportBody) -> str:
        try:
            return await self._notifier.send(request.email, report.subject, report.text, report.html)
        except NotificationFailed:
            raise
        except Exception as exc:
            logger.exception("Unexpected notifier failure")
            raise NotificationFailed() from exc

    async def _record(self, request: LookupRequest, matrix: PriceMatrix) -> str:
        try:
            record = await self._history.append(
                email=request.email,
                crypto=",".join(request.crypto_ids),
                currency=",".join(request.currency_codes),
                prices=_serialize_matrix(matrix),
            )
            await self._session.commit()
        except SQLAlchemyError as exc:
            await self._session.rollback()
            logger.exception("Search history append failed")
            raise HistoryWriteFailed() from exc
        return record.id
