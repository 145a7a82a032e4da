"""Continuation tokens: the store's last key as percent-encoded JSON.

Tokens are only ever produced by ``encode_token`` from a key the store
returned. ``decode_token`` rejects anything that does not decode back to a
well-formed key, so a garbled token never reaches the store.
"""

import json
import uuid
from datetime import datetime
from urllib.parse import quote, unquote

from pricealert.exceptions import InvalidToken

# Same unreserved set as JavaScript's encodeURIComponent
_SAFE_CHARS = "!*'()"

CURSOR_FIELDS = frozenset({"email", "timestamp", "id"})

MAX_TOKEN_LENGTH = 2048


def encode_token(key: dict[str, str]) -> str:
    return quote(json.dumps(key, separators=(",", ":"), sort_keys=True), safe=_SAFE_CHARS)


def decode_token(token: str) -> dict[str, str]:
    if not isinstance(token, str) or not token or len(token) > MAX_TOKEN_LENGTH:
        raise InvalidToken()

    try:
        key = json.loads(unquote(token, errors="strict"))
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        raise InvalidToken() from exc

    if not isinstance(key, dict) or set(key) != CURSOR_FIELDS:
        raise InvalidToken()
    if not all(isinstance(value, str) and value for value in key.values()):
        raise InvalidToken()

    try:
        datetime.fromisoformat(key["timestamp"])
        uuid.UUID(key["id"])
    except ValueError as exc:
        raise InvalidToken() from exc

    return key
