"""Engine data models (SQLAlchemy ORM).

Import :data:`ALL_MODELS` for migration and table creation.
"""

from payment_relay.engine.models.base import Base, MetadataMixin, TimestampMixin
from payment_relay.engine.models.notification_template import NotificationTemplate
from payment_relay.engine.models.push_subscription import PushSubscription
from payment_relay.engine.models.transaction import (
    Transaction,
    TransactionStatus,
    TransactionType,
)

ALL_MODELS: list[type[Base]] = [
    Transaction,
    PushSubscription,
    NotificationTemplate,
]

__all__ = [
    "ALL_MODELS",
    "Base",
    "MetadataMixin",
    "NotificationTemplate",
    "PushSubscription",
    "TimestampMixin",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
]
