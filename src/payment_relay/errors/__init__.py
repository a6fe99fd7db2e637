"""Error types for payment-relay."""

from payment_relay.errors.definitions import (
    DeliveryError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    SigningError,
    UnauthorizedError,
    ValidationError,
)
from payment_relay.errors.relay_errors import RelayError

__all__ = [
    "DeliveryError",
    "ForbiddenError",
    "NotFoundError",
    "PersistenceError",
    "RelayError",
    "SigningError",
    "UnauthorizedError",
    "ValidationError",
]
