"""Relay engine: models, repositories and services."""
