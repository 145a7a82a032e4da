from pricealert.domain.enums.identifier import IdentifierKind

__all__ = [
    "IdentifierKind",
]
