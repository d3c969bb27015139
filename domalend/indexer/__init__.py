"""Indexer event source."""
from .client import IndexerClient

__all__ = ["IndexerClient"]
