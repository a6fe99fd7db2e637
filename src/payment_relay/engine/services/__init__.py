"""Engine services."""

from payment_relay.engine.services.importer import ImportSummary, TransactionImporter
from payment_relay.engine.services.reconciler import ReconcileResult, Reconciler

__all__ = ["ImportSummary", "ReconcileResult", "Reconciler", "TransactionImporter"]
