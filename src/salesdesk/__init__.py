"""SalesDesk: admin backend and client toolkit for a WhatsApp AI sales agent."""

__version__ = "0.3.0"
