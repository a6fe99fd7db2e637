"""Datastore: async SQLAlchemy engine and session management."""

from payment_relay.datastore.client import Datastore

__all__ = ["Datastore"]
