"""Application layer: proxy use cases and business exceptions."""
