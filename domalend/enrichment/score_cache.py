"""Domain score cache client — cached AI valuation lookups over HTTP."""
from __future__ import annotations

import logging
import ssl
from typing import Any
from urllib.parse import quote

import aiohttp
import certifi

from ..config import ScoringConfig
from ..models import DomainScore

logger = logging.getLogger(__name__)


def parse_score(data: dict[str, Any]) -> DomainScore | None:
    """Parse a score payload; payloads flagged with ``error`` are fallbacks, not scores."""
    if not data or data.get("error"):
        return None
    try:
        total = int(data.get("totalScore"))
    except (TypeError, ValueError):
        return None
    return DomainScore(
        total_score=max(0, min(100, total)),
        confidence=int(data.get("confidence") or 0),
        is_from_cache=bool(data.get("isFromCache", False)),
        cache_age_minutes=int(data.get("cacheAge") or 0),
    )


class ScoreCacheClient:
    """Fetch cached AI scores from the scoring service."""

    def __init__(self, config: ScoringConfig) -> None:
        self.base_url = config.base_url
        self.timeout = config.timeout

    async def get_score(self, domain_name: str) -> DomainScore | None:
        if not domain_name:
            return None

        url = f"{self.base_url}/domains/{quote(domain_name, safe='')}/score"
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        logger.warning(
                            "Score lookup for %s failed: HTTP %s", domain_name, response.status
                        )
                        return None
                    data = await response.json()
        except Exception as e:
            logger.warning("Score lookup for %s failed: %s", domain_name, e)
            return None

        score = parse_score(data)
        if score is None:
            logger.warning("No usable score for %s: %s", domain_name, data.get("error"))
        elif score.is_from_cache:
            logger.debug("[Cache HIT] %s: %d (age: %dm)", domain_name, score.total_score, score.cache_age_minutes)
        return score
