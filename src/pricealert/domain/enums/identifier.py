from enum import Enum


class IdentifierKind(str, Enum):
    """The two identifier families validated against the cache."""

    CRYPTO = "crypto"
    CURRENCY = "currency"
