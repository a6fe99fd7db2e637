"""payment-relay: payment webhook reconciliation and Web Push notification relay."""

__version__ = "0.1.0"
