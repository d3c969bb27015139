"""Score cache protocol — cached AI domain valuation."""
from typing import Protocol

from ..models import DomainScore


class ScoreCache(Protocol):
    """Look up the cached AI score for a domain name; None on miss or error."""

    async def get_score(self, domain_name: str) -> DomainScore | None: ...
