"""CoinGecko v3 client: identifier listings and the spot price matrix."""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from pricealert.domain.models.lookup import PriceMatrix
from pricealert.exceptions import UpstreamRateLimited, UpstreamUnavailable
from pricealert.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

BASE_URL = "https://api.coingecko.com"

COINS_LIST_PATH = "/api/v3/coins/list"
SUPPORTED_CURRENCIES_PATH = "/api/v3/simple/supported_vs_currencies"
SIMPLE_PRICE_PATH = "/api/v3/simple/price"

MAX_ATTEMPTS = 3


class CoinGeckoClient:
    """Identifier source and price source backed by the public CoinGecko API.

    429 is raised immediately as ``UpstreamRateLimited`` so the caller can back
    off. Other failures (timeouts, transport errors, non-200 responses,
    undecodable bodies) are retried, then raised as ``UpstreamUnavailable``.
    """

    def __init__(self, http_client: RateLimitedClient, base_url: str = BASE_URL, api_key: str = "") -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key

    @retry(
        retry=retry_if_exception_type(UpstreamUnavailable),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=0.2, max=2),
        reraise=True,
    )
    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        params = dict(params or {})
        if self._api_key:
            params["x_cg_demo_api_key"] = self._api_key

        try:
            response = await self._http.get(f"{self._base_url}{path}", params=params)
        except httpx.HTTPError as exc:
            logger.warning("CoinGecko request to %s failed: %r", path, exc)
            raise UpstreamUnavailable() from exc

        if response.status_code == 429:
            logger.info("CoinGecko 429 rate limit on %s", path)
            raise UpstreamRateLimited()

        if response.status_code != 200:
            logger.warning("CoinGecko returned %d for %s", response.status_code, path)
            raise UpstreamUnavailable()

        try:
            return response.json(parse_float=Decimal)
        except ValueError as exc:
            logger.warning("CoinGecko returned a non-JSON body for %s", path)
            raise UpstreamUnavailable() from exc

    async def list_crypto_ids(self) -> list[str]:
        """All coin ids CoinGecko knows (``bitcoin``, ``ethereum``, ...)."""
        data = await self._get_json(COINS_LIST_PATH)
        if not isinstance(data, list):
            raise UpstreamUnavailable("Unexpected coin list payload.")
        return [str(coin["id"]).lower() for coin in data if isinstance(coin, dict) and coin.get("id")]

    async def list_currency_codes(self) -> list[str]:
        """All quote currencies accepted by /simple/price (``usd``, ``aud``, ...)."""
        data = await self._get_json(SUPPORTED_CURRENCIES_PATH)
        if not isinstance(data, list):
            raise UpstreamUnavailable("Unexpected currency list payload.")
        return [str(code).lower() for code in data if code]

    async def get_prices(self, crypto_ids: list[str], currency_codes: list[str]) -> PriceMatrix:
        """Spot prices for every id × code pair the source has.

        The result is sparse: ids or crosses CoinGecko has no data for are
        simply absent.
        """
        data = await self._get_json(
            SIMPLE_PRICE_PATH,
            params={"ids": ",".join(crypto_ids), "vs_currencies": ",".join(currency_codes)},
        )
        if not isinstance(data, dict):
            raise UpstreamUnavailable("Unexpected price payload.")

        matrix: PriceMatrix = {}
        for crypto_id, quotes in data.items():
            if not isinstance(quotes, dict):
                continue
            row: dict[str, Decimal] = {}
            for code, value in quotes.items():
                if value is None:
                    continue
                try:
                    row[code.lower()] = Decimal(str(value))
                except InvalidOperation:
                    logger.warning("Skipping non-numeric price for %s/%s: %r", crypto_id, code, value)
            matrix[crypto_id.lower()] = row
        return matrix
