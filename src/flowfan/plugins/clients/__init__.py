"""Clients for external systems used by processors."""
