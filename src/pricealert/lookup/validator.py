"""Request shape checks. Pure functions: nothing here touches the network or the DB."""

import re
from typing import Any, Optional

from pricealert.domain.models.lookup import LookupRequest, PaginationRequest
from pricealert.exceptions import InvalidEmail, InvalidToken, MissingCrypto, MissingCurrency
from pricealert.history.cursor import decode_token

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

DEFAULT_LIMIT = 10


def normalize_identifiers(raw: Any) -> list[str]:
    """Split a comma-separated field into trimmed, lower-cased, non-empty tokens (order kept)."""
    if not isinstance(raw, str):
        return []
    return [token.strip().lower() for token in raw.split(",") if token.strip()]


def normalize_field(raw: Any) -> str:
    return ",".join(normalize_identifiers(raw))


def validate_email(raw: Any) -> str:
    if not isinstance(raw, str) or EMAIL_PATTERN.fullmatch(raw) is None:
        raise InvalidEmail()
    return raw


def validate_lookup_request(raw_email: Any, raw_crypto: Any, raw_currency: Any) -> LookupRequest:
    """Checks run in order email → crypto → currency; the first failure wins."""
    email = validate_email(raw_email)

    crypto_ids = normalize_identifiers(raw_crypto)
    if not crypto_ids:
        raise MissingCrypto()

    currency_codes = normalize_identifiers(raw_currency)
    if not currency_codes:
        raise MissingCurrency()

    return LookupRequest(email=email, crypto_ids=crypto_ids, currency_codes=currency_codes)


def parse_limit(raw: Any, default: int = DEFAULT_LIMIT, maximum: Optional[int] = None) -> int:
    """Permissive: anything non-numeric or <= 0 falls back to ``default``."""
    try:
        limit = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if limit <= 0:
        return default
    if maximum is not None:
        limit = min(limit, maximum)
    return limit


def validate_pagination_request(
    raw_email: Any,
    raw_limit: Any = None,
    raw_token: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> PaginationRequest:
    email = validate_email(raw_email)
    limit = parse_limit(raw_limit, default=default_limit, maximum=max_limit)

    cursor = None
    if raw_token:
        cursor = decode_token(raw_token)
        # A token from another partition is not a valid resume point for this one
        if cursor["email"] != email:
            raise InvalidToken()

    return PaginationRequest(email=email, limit=limit, cursor=cursor)
