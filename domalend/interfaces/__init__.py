"""Protocol interfaces for the DomaLend marketplace views."""
from .event_source import EventSource
from .metadata import MetadataLookup
from .ownership import OwnershipVerifier
from .score_cache import ScoreCache

__all__ = ["EventSource", "MetadataLookup", "OwnershipVerifier", "ScoreCache"]
