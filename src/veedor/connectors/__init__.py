"""Connectors — read transactions from external sources."""
