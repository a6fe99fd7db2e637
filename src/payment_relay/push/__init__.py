"""Web Push: VAPID signing and delivery."""

from payment_relay.push.sender import DeliveryOutcome, PushMessage, PushSender
from payment_relay.push.vapid import SignedAssertion, VapidSigner

__all__ = [
    "DeliveryOutcome",
    "PushMessage",
    "PushSender",
    "SignedAssertion",
    "VapidSigner",
]
