"""Marketplace facade — wires config into clients and services, supplies "now"."""
from __future__ import annotations

import logging
import time
from typing import Callable

from ..config import AppConfig
from ..enrichment import DomaMetadataClient, OwnershipClient, ScoreCacheClient
from ..indexer import IndexerClient
from ..interfaces.event_source import EventSource
from ..interfaces.metadata import MetadataLookup
from ..interfaces.ownership import OwnershipVerifier
from ..interfaces.score_cache import ScoreCache
from ..models import (
    AuctionDetail,
    AuctionPage,
    LoanDetail,
    LoanPage,
    PoolDetail,
    PoolPage,
    UserAuctions,
    UserDashboard,
    UserPools,
)
from .auction_service import AuctionService
from .dashboard_service import DashboardService
from .enrichment import DomainEnricher
from .loan_service import LoanService
from .pool_service import PoolService
from .query import AuctionQuery, LoanQuery, PoolQuery

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class Marketplace:
    """Entry point for every read operation; one instance per config.

    Collaborators default to the HTTP clients named in the config and can be
    replaced (tests pass in-memory fakes).
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        source: EventSource | None = None,
        metadata: MetadataLookup | None = None,
        scores: ScoreCache | None = None,
        verifier: OwnershipVerifier | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._config = config
        self._clock = clock

        if source is None:
            source = IndexerClient(config.indexer)
        if metadata is None and config.metadata.enabled:
            metadata = DomaMetadataClient(config.metadata)
        if scores is None and config.scoring.enabled:
            scores = ScoreCacheClient(config.scoring)
        if verifier is None and config.chain.verify_auctions:
            verifier = OwnershipClient(config.chain)

        enricher = DomainEnricher(
            metadata=metadata,
            scores=scores,
            max_concurrency=config.enrichment.max_concurrency,
        )
        self.loans = LoanService(source, enricher, config.loans, config.pagination)
        self.pools = PoolService(source, self.loans, config.pagination)
        self.auctions = AuctionService(
            source,
            self.loans,
            enricher,
            config.auctions,
            config.pagination,
            verifier=verifier,
            auction_contract=config.chain.dutch_auction_address,
            max_concurrency=config.enrichment.max_concurrency,
        )
        self.dashboard = DashboardService(
            source, enricher, self.loans, self.pools, self.auctions
        )

    def now(self) -> int:
        return self._clock()

    async def list_loans(self, query: LoanQuery) -> LoanPage:
        return await self.loans.list_loans(query, self.now())

    async def get_loan(self, loan_id: str) -> LoanDetail | None:
        return await self.loans.get_loan(loan_id, self.now())

    async def list_pools(self, query: PoolQuery) -> PoolPage:
        return await self.pools.list_pools(query, self.now())

    async def get_pool(self, pool_id: str, include_loans: bool = False) -> PoolDetail | None:
        return await self.pools.get_pool(pool_id, self.now(), include_loans)

    async def user_pools(self, address: str) -> UserPools:
        return await self.pools.user_pools(address, self.now())

    async def list_auctions(self, query: AuctionQuery) -> AuctionPage:
        return await self.auctions.list_auctions(query, self.now())

    async def get_auction(self, auction_id: str) -> AuctionDetail | None:
        return await self.auctions.get_auction(auction_id, self.now())

    async def user_auctions(self, address: str) -> UserAuctions:
        return await self.auctions.user_auctions(address, self.now())

    async def user_dashboard(self, address: str) -> UserDashboard:
        return await self.dashboard.user_dashboard(address, self.now())
