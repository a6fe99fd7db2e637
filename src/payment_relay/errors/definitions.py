"""Error taxonomy for the ingest and notification paths."""

from __future__ import annotations

from payment_relay.errors.relay_errors import RelayError

# -- Request errors --------------------------------------------------------


class ValidationError(RelayError):
    """Malformed or incomplete inbound payload. Nothing is written."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=400, code="validation-error")


class UnauthorizedError(RelayError):
    """Missing or wrong credentials."""

    def __init__(self, message: str = "unauthorized") -> None:
        super().__init__(message, status_code=401, code="unauthorized")


class ForbiddenError(RelayError):
    """Credentials are valid but the route is not available."""

    def __init__(self, message: str = "forbidden") -> None:
        super().__init__(message, status_code=403, code="forbidden")


class NotFoundError(RelayError):
    """The requested record does not exist."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message, status_code=404, code="not-found")


# -- Storage ---------------------------------------------------------------


class PersistenceError(RelayError):
    """Ledger or subscription store failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500, code="persistence-error")


# -- Notification path (never surfaced to the webhook caller) --------------


class SigningError(RelayError):
    """VAPID key import or signature failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500, code="signing-error")


class DeliveryError(RelayError):
    """Network failure or non-2xx answer from a push or relay endpoint."""

    def __init__(self, message: str, *, remote_status: int | None = None) -> None:
        super().__init__(message, status_code=502, code="delivery-error")
        self.remote_status = remote_status
