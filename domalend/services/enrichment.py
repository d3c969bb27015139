"""Best-effort domain enrichment with bounded concurrent fan-out."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Iterable

from ..interfaces.metadata import MetadataLookup
from ..interfaces.score_cache import ScoreCache
from ..models import AuctionView, DomainRef, LoanView

logger = logging.getLogger(__name__)


class DomainEnricher:
    """Attach NFT metadata and cached AI scores to domain references.

    A failed lookup leaves that one domain with the values it already had.
    Each token id is looked up at most once per batch.
    """

    def __init__(
        self,
        metadata: MetadataLookup | None = None,
        scores: ScoreCache | None = None,
        max_concurrency: int = 10,
    ) -> None:
        self._metadata = metadata
        self._scores = scores
        self._max_concurrency = max_concurrency

    async def _enrich_one(self, domain: DomainRef, semaphore: asyncio.Semaphore) -> DomainRef:
        async with semaphore:
            if self._metadata is not None:
                try:
                    meta = await self._metadata.get_metadata(domain.token_id)
                except Exception as e:
                    logger.warning("Metadata enrichment failed for token %s: %s", domain.token_id, e)
                    meta = None
                if meta is not None:
                    domain = replace(
                        domain,
                        name=domain.name or meta.name,
                        tld=meta.tld,
                        character_length=meta.character_length,
                        owner=meta.owner,
                    )

            if self._scores is not None and domain.name:
                try:
                    score = await self._scores.get_score(domain.name)
                except Exception as e:
                    logger.warning("Score enrichment failed for %s: %s", domain.name, e)
                    score = None
                if score is not None:
                    domain = replace(
                        domain,
                        ai_score=score.total_score,
                        score_from_cache=score.is_from_cache,
                    )

        return domain

    async def enrich(self, domains: Iterable[DomainRef]) -> dict[str, DomainRef]:
        """Enrich a batch; returns enriched refs keyed by token id."""
        unique: dict[str, DomainRef] = {}
        for domain in domains:
            if domain.token_id and domain.token_id not in unique:
                unique[domain.token_id] = domain
        if not unique or (self._metadata is None and self._scores is None):
            return unique

        semaphore = asyncio.Semaphore(self._max_concurrency)
        results = await asyncio.gather(
            *(self._enrich_one(d, semaphore) for d in unique.values()),
            return_exceptions=True,
        )

        enriched: dict[str, DomainRef] = {}
        for (token_id, original), result in zip(unique.items(), results):
            if isinstance(result, BaseException):
                logger.warning("Enrichment failed for token %s: %s", token_id, result)
                enriched[token_id] = original
            else:
                enriched[token_id] = result
        return enriched

    async def enrich_loans(self, loans: Iterable[LoanView]) -> list[LoanView]:
        loans = list(loans)
        refs = await self.enrich(loan.domain for loan in loans)
        return [replace(loan, domain=_merge(loan.domain, refs)) for loan in loans]

    async def enrich_auctions(self, auctions: Iterable[AuctionView]) -> list[AuctionView]:
        auctions = list(auctions)
        refs = await self.enrich(auction.domain for auction in auctions)
        return [replace(a, domain=_merge(a.domain, refs)) for a in auctions]


def _merge(own: DomainRef, refs: dict[str, DomainRef]) -> DomainRef:
    """Overlay looked-up fields on a view's own ref; values from events survive misses."""
    found = refs.get(own.token_id)
    if found is None or found is own:
        return own
    if found.score_from_cache is None:
        ai_score, from_cache = own.ai_score, own.score_from_cache
    else:
        ai_score, from_cache = found.ai_score, found.score_from_cache
    return replace(
        own,
        name=own.name or found.name,
        tld=found.tld or own.tld,
        character_length=found.character_length or own.character_length,
        owner=found.owner or own.owner,
        ai_score=ai_score,
        score_from_cache=from_cache,
    )
