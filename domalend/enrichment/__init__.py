"""Best-effort enrichment clients."""
from .metadata import DomaMetadataClient
from .ownership import OwnershipClient
from .score_cache import ScoreCacheClient

__all__ = ["DomaMetadataClient", "OwnershipClient", "ScoreCacheClient"]
