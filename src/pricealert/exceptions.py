"""Error taxonomy for price lookups and history queries.

Every error carries a stable ``code`` and the HTTP status it maps to. The API
layer renders them as ``{"error": ..., "code": ...}`` bodies; anything that is
not a ``PriceAlertError`` is logged and collapsed to ``Internal``.
"""

from typing import Any


class PriceAlertError(Exception):
    code = "INTERNAL"
    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code}


class InvalidRequestError(PriceAlertError):
    """Rejected before any remote call. Never retried."""

    code = "INVALID_REQUEST"
    status_code = 400
    default_message = "Invalid request"


class InvalidEmail(InvalidRequestError):
    code = "INVALID_EMAIL"
    default_message = "Missing or invalid parameter: email."


class MissingCrypto(InvalidRequestError):
    code = "MISSING_CRYPTO"
    default_message = "Missing or empty parameter: crypto."


class MissingCurrency(InvalidRequestError):
    code = "MISSING_CURRENCY"
    default_message = "Missing or empty parameter: currency."


class UnknownIdentifiers(InvalidRequestError):
    code = "UNKNOWN_IDENTIFIERS"

    def __init__(self, kind: str, unknown: list[str]) -> None:
        self.kind = kind
        self.unknown = list(unknown)
        super().__init__(f"Unknown {kind}: {', '.join(self.unknown)}")

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "kind": self.kind, "unknown": self.unknown}


class InvalidToken(InvalidRequestError):
    code = "INVALID_TOKEN"
    default_message = "Invalid parameter: startKey."


class ExternalServiceError(PriceAlertError):
    code = "UPSTREAM_ERROR"
    status_code = 500
    default_message = "Upstream service error"


class UpstreamRateLimited(ExternalServiceError):
    code = "UPSTREAM_RATE_LIMITED"
    status_code = 429
    default_message = "Price source rate limit exceeded, retry later."


class UpstreamUnavailable(ExternalServiceError):
    code = "UPSTREAM_UNAVAILABLE"
    default_message = "Price source unavailable."


class DispatchError(PriceAlertError):
    """Post-lookup phase failure.

    Notification and history write run independently, so one side may have
    completed. ``delivery`` records the outcome of both sides.
    """

    def __init__(self, message: str | None = None, *, notification_sent: bool = False, history_saved: bool = False) -> None:
        super().__init__(message)
        self.notification_sent = notification_sent
        self.history_saved = history_saved

    @property
    def partial(self) -> bool:
        return self.notification_sent or self.history_saved

    def to_payload(self) -> dict[str, Any]:
        return {
            **super().to_payload(),
            "partial": self.partial,
            "delivery": {
                "notification": "sent" if self.notification_sent else "failed",
                "history": "saved" if self.history_saved else "failed",
            },
        }


class NotificationFailed(DispatchError):
    code = "NOTIFICATION_FAILED"
    default_message = "Failed to send price notification."


class HistoryWriteFailed(DispatchError):
    code = "HISTORY_WRITE_FAILED"
    default_message = "Failed to save search history."


class Internal(PriceAlertError):
    pass
