"""Data access layer."""

from payment_relay.engine.repository.subscriptions import SubscriptionStore
from payment_relay.engine.repository.templates import TemplateRepository
from payment_relay.engine.repository.transactions import TransactionRepository

__all__ = ["SubscriptionStore", "TemplateRepository", "TransactionRepository"]
