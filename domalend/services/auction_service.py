"""Dutch auction listings, details and on-chain ownership verification."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Mapping, Sequence

from ..config import AuctionConfig, PaginationConfig
from ..derivation.auctions import derive_auction
from ..derivation.grouping import group_events
from ..interfaces.event_source import EventSource
from ..interfaces.ownership import OwnershipVerifier
from ..models import (
    AuctionDetail,
    AuctionEvent,
    AuctionPage,
    AuctionStatus,
    AuctionView,
    UserAuctions,
)
from .enrichment import DomainEnricher
from .loan_service import LoanService
from .query import AuctionQuery, paginate, sort_auctions
from .validation import validate_address, validate_pagination

logger = logging.getLogger(__name__)


class AuctionService:
    """Derive auction views and confirm live auctions against the chain."""

    def __init__(
        self,
        source: EventSource,
        loans: LoanService,
        enricher: DomainEnricher,
        auctions: AuctionConfig,
        pagination: PaginationConfig,
        verifier: OwnershipVerifier | None = None,
        auction_contract: str = "",
        max_concurrency: int = 10,
    ) -> None:
        self._source = source
        self._loans = loans
        self._enricher = enricher
        self._config = auctions
        self._pagination = pagination
        self._verifier = verifier
        self._auction_contract = auction_contract
        self._max_concurrency = max_concurrency

    async def derive_all(
        self, now: int, auction_ids: Sequence[str] | None = None
    ) -> list[AuctionView]:
        events = await self._source.fetch_auction_events(auction_ids=auction_ids)
        return await self._derive(group_events(events), now)

    async def _derive(
        self, grouped: Mapping[str, Sequence[AuctionEvent]], now: int
    ) -> list[AuctionView]:
        if not grouped:
            return []

        loan_ids = sorted({e.loan_id for history in grouped.values() for e in history if e.loan_id})
        principals: dict[str, int] = {}
        if loan_ids:
            for loan in await self._loans.derive_all(now, loan_ids=loan_ids):
                principals[loan.loan_id] = loan.principal_amount

        auctions = []
        for history in grouped.values():
            loan_id = next((e.loan_id for e in history if e.loan_id), "")
            view = derive_auction(
                history,
                now,
                daily_decay=self._config.daily_decay,
                max_duration_days=self._config.max_duration_days,
                reserve_ratio=self._config.reserve_ratio,
                loan_amount=principals.get(loan_id),
            )
            if view is not None:
                auctions.append(view)
        return auctions

    async def verify(self, auctions: Sequence[AuctionView]) -> list[AuctionView]:
        """Stamp active auctions with whether the auction contract holds the domain.

        Closed auctions are left unchecked. A lookup that fails leaves
        ``ownership_verified`` as None.
        """
        if self._verifier is None or not self._auction_contract:
            return list(auctions)

        token_ids = list(dict.fromkeys(
            a.domain_token_id
            for a in auctions
            if a.status == AuctionStatus.ACTIVE and a.domain_token_id
        ))
        if not token_ids:
            return list(auctions)

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def check(token_id: str) -> bool | None:
            async with semaphore:
                try:
                    return await self._verifier.is_held_by(token_id, self._auction_contract)
                except Exception as e:
                    logger.warning("Ownership check failed for token %s: %s", token_id, e)
                    return None

        results = dict(zip(token_ids, await asyncio.gather(*(check(t) for t in token_ids))))
        logger.info(
            "Verified %d auction domains: %d held by auction contract",
            len(results), sum(1 for held in results.values() if held),
        )
        return [
            replace(a, ownership_verified=results[a.domain_token_id])
            if a.domain_token_id in results and a.status == AuctionStatus.ACTIVE
            else a
            for a in auctions
        ]

    async def list_auctions(self, query: AuctionQuery, now: int) -> AuctionPage:
        page, limit = validate_pagination(query.page, query.limit, self._pagination)

        auctions = await self.verify(await self.derive_all(now))
        live = []
        for auction in auctions:
            if auction.ownership_verified is False:
                logger.warning(
                    "Dropping auction %s: domain %s is not held by the auction contract",
                    auction.auction_id, auction.domain_token_id,
                )
                continue
            live.append(auction)

        if query.status is not None:
            live = [a for a in live if a.status == query.status]

        ordered = sort_auctions(live, query.sort_by, query.order)
        page_items, pagination = paginate(ordered, page, limit)
        return AuctionPage(
            auctions=tuple(await self._enricher.enrich_auctions(page_items)),
            pagination=pagination,
        )

    async def get_auction(self, auction_id: str, now: int) -> AuctionDetail | None:
        events = await self._source.fetch_auction_events(auction_ids=[auction_id])
        history = group_events(events).get(auction_id)
        if not history:
            logger.info("Auction %s not found", auction_id)
            return None

        views = await self.verify(await self._derive({auction_id: history}, now))
        if not views:
            return None

        enriched = await self._enricher.enrich_auctions(views)
        return AuctionDetail(auction=enriched[0], events=tuple(history))

    async def user_auctions(self, address: str, now: int) -> UserAuctions:
        """Auctions of collateral seized from ``address``, newest first."""
        address = validate_address(address)
        auctions = [a for a in await self.derive_all(now) if a.borrower_address == address]
        auctions.sort(key=lambda a: (a.started_at, a.auction_id), reverse=True)
        auctions = await self._enricher.enrich_auctions(auctions)
        return UserAuctions(
            auctions=tuple(auctions),
            total_auctions=len(auctions),
            active_auctions=sum(1 for a in auctions if a.status == AuctionStatus.ACTIVE),
        )
