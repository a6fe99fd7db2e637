"""Notifications: push broadcast and secondary relay.

Provides:
- ``NotificationDispatcher``: runs both channels for one ledger change
- ``TransactionNotice``: the dispatcher's input
- ``HttpRelay`` / ``NoopRelay``: secondary relay implementations
"""

from __future__ import annotations

from payment_relay.notifications.dispatcher import DispatchReport, NotificationDispatcher
from payment_relay.notifications.events import TransactionNotice
from payment_relay.notifications.relay import HttpRelay, NoopRelay, SecondaryRelay, build_relay

__all__ = [
    "DispatchReport",
    "HttpRelay",
    "NoopRelay",
    "NotificationDispatcher",
    "SecondaryRelay",
    "TransactionNotice",
    "build_relay",
]
