"""Outbound adapters for the external systems the proxies forward to."""
