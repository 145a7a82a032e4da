"""Tests for IdentifierCache — single-flight population and validation policy."""

import asyncio
import gc
from unittest.mock import AsyncMock, patch

import pytest

from pricealert.domain.enums import IdentifierKind
from pricealert.exceptions import UnknownIdentifiers, UpstreamRateLimited, UpstreamUnavailable
from pricealert.lookup.identifier_cache import IdentifierCache


class TestPopulation:
    async def test_starts_empty(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        assert cache.populated is False
        assert cache.populated_at is None
        with pytest.raises(RuntimeError):
            cache.is_valid_crypto("bitcoin")

    async def test_populates_both_sets(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        await cache.ensure_populated()

        assert cache.populated is True
        assert cache.populated_at is not None
        assert cache.is_valid_crypto("bitcoin")
        assert not cache.is_valid_crypto("notacoin")
        assert cache.is_valid_currency("aud")
        assert not cache.is_valid_currency("xyz")

    async def test_reused_after_population(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        await cache.ensure_populated()
        await cache.ensure_populated()
        await cache.ensure_populated()

        identifier_source.list_crypto_ids.assert_called_once()
        identifier_source.list_currency_codes.assert_called_once()

    async def test_concurrent_first_callers_share_one_fetch(self, identifier_source):
        release = asyncio.Event()

        async def slow_crypto_ids():
            await release.wait()
            return ["bitcoin"]

        identifier_source.list_crypto_ids = AsyncMock(side_effect=slow_crypto_ids)
        cache = IdentifierCache(identifier_source)

        callers = [asyncio.create_task(cache.ensure_populated()) for _ in range(8)]
        await asyncio.sleep(0)  # every caller is now waiting on the same fetch
        assert cache.populated is False

        release.set()
        await asyncio.gather(*callers)

        assert identifier_source.list_crypto_ids.call_count == 1
        assert identifier_source.list_currency_codes.call_count == 1
        assert cache.populated is True
        assert cache.is_valid_crypto("bitcoin")

    async def test_failure_shared_then_retried_next_time(self, identifier_source):
        identifier_source.list_crypto_ids = AsyncMock(side_effect=[UpstreamRateLimited(), ["bitcoin"]])
        cache = IdentifierCache(identifier_source)

        results = await asyncio.gather(*(cache.ensure_populated() for _ in range(5)), return_exceptions=True)
        assert all(isinstance(r, UpstreamRateLimited) for r in results)
        assert identifier_source.list_crypto_ids.call_count == 1
        assert cache.populated is False

        await cache.ensure_populated()
        assert cache.populated is True
        assert identifier_source.list_crypto_ids.call_count == 2

    async def test_empty_listing_never_half_populates(self, identifier_source):
        identifier_source.list_currency_codes = AsyncMock(return_value=[])
        cache = IdentifierCache(identifier_source)

        with pytest.raises(UpstreamUnavailable):
            await cache.ensure_populated()
        assert cache.populated is False

    async def test_cancelled_waiter_does_not_cancel_fetch(self, identifier_source):
        release = asyncio.Event()

        async def slow_crypto_ids():
            await release.wait()
            return ["bitcoin"]

        identifier_source.list_crypto_ids = AsyncMock(side_effect=slow_crypto_ids)
        cache = IdentifierCache(identifier_source)

        first = asyncio.create_task(cache.ensure_populated())
        second = asyncio.create_task(cache.ensure_populated())
        await asyncio.sleep(0)
        first.cancel()
        release.set()

        await second
        assert cache.populated is True
        assert identifier_source.list_crypto_ids.call_count == 1

    async def test_failed_fetch_after_every_waiter_cancelled_is_not_reported(self, identifier_source):
        loop = asyncio.get_running_loop()
        reported = []
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        release = asyncio.Event()

        async def failing_crypto_ids():
            await release.wait()
            raise UpstreamUnavailable()

        identifier_source.list_crypto_ids = AsyncMock(side_effect=failing_crypto_ids)
        cache = IdentifierCache(identifier_source)
        try:
            waiter = asyncio.create_task(cache.ensure_populated())
            await asyncio.sleep(0)
            fetch = cache._inflight
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter

            release.set()
            while not fetch.done():
                await asyncio.sleep(0)
            await asyncio.sleep(0)
            del fetch
            gc.collect()
        finally:
            loop.set_exception_handler(previous_handler)

        assert reported == []
        assert cache.populated is False

    async def test_reset_ignored_while_population_in_flight(self, identifier_source):
        release = asyncio.Event()

        async def slow_crypto_ids():
            await release.wait()
            return ["bitcoin"]

        identifier_source.list_crypto_ids = AsyncMock(side_effect=slow_crypto_ids)
        cache = IdentifierCache(identifier_source)
        waiter = asyncio.create_task(cache.ensure_populated())
        await asyncio.sleep(0)

        with patch("pricealert.lookup.identifier_cache.logger") as log:
            cache.reset()
        log.info.assert_called_once()
        assert "in flight" in log.info.call_args[0][0]

        release.set()
        await waiter
        assert cache.populated is True
        assert identifier_source.list_crypto_ids.call_count == 1

    async def test_reset_forces_refetch(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        await cache.ensure_populated()
        cache.reset()
        assert cache.populated is False

        await cache.ensure_populated()
        assert identifier_source.list_crypto_ids.call_count == 2


class TestValidateAgainstCache:
    async def test_known_ids_pass(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        await cache.ensure_populated()
        cache.validate_against_cache(["bitcoin", "ethereum"], IdentifierKind.CRYPTO)
        cache.validate_against_cache(["usd"], IdentifierKind.CURRENCY)

    async def test_unknown_reported_in_input_order(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        await cache.ensure_populated()

        with pytest.raises(UnknownIdentifiers) as exc_info:
            cache.validate_against_cache(["zzz", "bitcoin", "aaa", "zzz", "mmm"], IdentifierKind.CRYPTO)

        assert exc_info.value.unknown == ["zzz", "aaa", "mmm"]
        assert exc_info.value.kind == "crypto"

    async def test_currency_checked_against_currency_set(self, identifier_source):
        cache = IdentifierCache(identifier_source)
        await cache.ensure_populated()

        # "bitcoin" is a crypto id, not a currency code
        assert cache.unknown(["usd", "bitcoin"], IdentifierKind.CURRENCY) == ["bitcoin"]
