"""Process-wide cache of valid crypto ids and currency codes.

Populated on first use and kept for the life of the process. A coin listed
after population is rejected until restart, and a delisted one is still
accepted; the price source degrades that case to an N/A cell.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable

from pricealert.domain.enums import IdentifierKind
from pricealert.exceptions import UnknownIdentifiers, UpstreamUnavailable

logger = logging.getLogger(__name__)


def _consume_outcome(task: asyncio.Task) -> None:
    # Every waiter may have been cancelled; read the result so a failed fetch
    # is not reported as "Task exception was never retrieved".
    if not task.cancelled():
        task.exception()


@dataclass(frozen=True)
class IdentifierSnapshot:
    crypto_ids: frozenset[str]
    currency_codes: frozenset[str]
    populated_at: datetime


class IdentifierCache:
    """Owns the identifier sets; ``source`` provides ``list_crypto_ids`` / ``list_currency_codes``.

    Both sets live in one immutable snapshot swapped in by a single
    assignment, so readers see either nothing or the complete pair.
    """

    def __init__(self, source: Any) -> None:
        self._source = source
        self._snapshot: IdentifierSnapshot | None = None
        self._inflight: asyncio.Task[IdentifierSnapshot] | None = None

    @property
    def populated(self) -> bool:
        return self._snapshot is not None

    @property
    def populated_at(self) -> datetime | None:
        return self._snapshot.populated_at if self._snapshot else None

    async def ensure_populated(self) -> None:
        """Fetch both sets if empty. Concurrent callers share one in-flight fetch."""
        if self._snapshot is not None:
            return
        # No await between the check and the assignment: atomic on the event loop
        if self._inflight is None:
            self._inflight = asyncio.create_task(self._populate())
            self._inflight.add_done_callback(_consume_outcome)
        # shield: a cancelled waiter must not cancel the fetch the others await
        await asyncio.shield(self._inflight)

    async def _populate(self) -> IdentifierSnapshot:
        try:
            crypto_ids, currency_codes = await asyncio.gather(
                self._source.list_crypto_ids(),
                self._source.list_currency_codes(),
            )
            if not crypto_ids or not currency_codes:
                raise UpstreamUnavailable("Identifier listing returned no entries.")

            snapshot = IdentifierSnapshot(
                crypto_ids=frozenset(crypto_ids),
                currency_codes=frozenset(currency_codes),
                populated_at=datetime.now(timezone.utc),
            )
            self._snapshot = snapshot
            logger.info(
                "Identifier cache populated: %d crypto ids, %d currency codes",
                len(snapshot.crypto_ids),
                len(snapshot.currency_codes),
            )
            return snapshot
        except Exception:
            logger.warning("Identifier cache population failed", exc_info=True)
            raise
        finally:
            self._inflight = None

    def reset(self) -> None:
        """Drop the cached sets; the next ``ensure_populated`` refetches.

        Ignored while a population is in flight: that fetch replaces the
        snapshot when it finishes.
        """
        if self._inflight is not None:
            logger.info("Identifier cache reset skipped: population in flight")
            return
        self._snapshot = None

    def _require(self) -> IdentifierSnapshot:
        if self._snapshot is None:
            raise RuntimeError("IdentifierCache read before ensure_populated() completed")
        return self._snapshot

    def is_valid_crypto(self, crypto_id: str) -> bool:
        return crypto_id in self._require().crypto_ids

    def is_valid_currency(self, code: str) -> bool:
        return code in self._require().currency_codes

    def unknown(self, identifiers: Iterable[str], kind: IdentifierKind) -> list[str]:
        """Identifiers missing from the cached set, in input order, each reported once."""
        snapshot = self._require()
        valid = snapshot.crypto_ids if kind == IdentifierKind.CRYPTO else snapshot.currency_codes
        return [i for i in dict.fromkeys(identifiers) if i not in valid]

    def validate_against_cache(self, identifiers: Iterable[str], kind: IdentifierKind) -> None:
        missing = self.unknown(identifiers, kind)
        if missing:
            raise UnknownIdentifiers(kind.value, missing)
