"""Metadata protocol — NFT metadata for tokenized domains."""
from typing import Protocol

from ..models import DomainMetadata


class MetadataLookup(Protocol):
    """Resolve a domain token id to its metadata; None when unavailable."""

    async def get_metadata(self, token_id: str) -> DomainMetadata | None: ...
