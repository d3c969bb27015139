"""Pool listings, details and per-user liquidity positions."""
from __future__ import annotations

import logging
from typing import Mapping, Sequence

from ..config import PaginationConfig
from ..derivation.grouping import group_events
from ..derivation.pools import calc_user_contribution, derive_pool
from ..interfaces.event_source import EventSource
from ..models import (
    LoanView,
    PoolDetail,
    PoolEvent,
    PoolPage,
    PoolView,
    UserPoolPosition,
    UserPools,
)
from .loan_service import LoanService
from .query import PoolQuery, paginate, sort_pools
from .validation import validate_address, validate_pagination

logger = logging.getLogger(__name__)


class PoolService:
    """Derive pool views from pool history joined with the loans they funded."""

    def __init__(
        self,
        source: EventSource,
        loans: LoanService,
        pagination: PaginationConfig,
    ) -> None:
        self._source = source
        self._loans = loans
        self._pagination = pagination

    async def _derive(
        self, grouped: Mapping[str, Sequence[PoolEvent]], now: int
    ) -> tuple[list[PoolView], list[LoanView]]:
        if not grouped:
            return [], []
        loans = await self._loans.derive_all(now, pool_ids=list(grouped))
        pools = []
        for events in grouped.values():
            view = derive_pool(events, loans)
            if view is not None:
                pools.append(view)
        return pools, loans

    async def _fetch_grouped(
        self, pool_ids: Sequence[str] | None = None
    ) -> dict[str, list[PoolEvent]]:
        events = await self._source.fetch_pool_events(pool_ids=pool_ids)
        return group_events(events)

    async def list_pools(self, query: PoolQuery, now: int) -> PoolPage:
        page, limit = validate_pagination(query.page, query.limit, self._pagination)

        pools, _ = await self._derive(await self._fetch_grouped(), now)
        if query.min_ai_score is not None:
            pools = [p for p in pools if p.min_ai_score >= query.min_ai_score]
        if query.status is not None:
            pools = [p for p in pools if p.status == query.status]

        ordered = sort_pools(pools, query.sort_by, query.order)
        page_items, pagination = paginate(ordered, page, limit)
        return PoolPage(pools=tuple(page_items), pagination=pagination)

    async def get_pool(
        self, pool_id: str, now: int, include_loans: bool = False
    ) -> PoolDetail | None:
        grouped = await self._fetch_grouped([pool_id])
        if pool_id not in grouped:
            logger.info("Pool %s not found", pool_id)
            return None

        pools, loans = await self._derive({pool_id: grouped[pool_id]}, now)
        if not pools:
            return None

        pool_loans = None
        if include_loans:
            pool_loans = tuple(
                sorted(
                    (loan for loan in loans if loan.pool_id == pool_id),
                    key=lambda loan: loan.created_at,
                    reverse=True,
                )
            )
        return PoolDetail(pool=pools[0], loans=pool_loans)

    async def user_pools(self, address: str, now: int) -> UserPools:
        """Pools where ``address`` currently has liquidity, largest stake first."""
        address = validate_address(address)

        # The provider filter only discovers pools; positions need full histories.
        touched = await self._source.fetch_pool_events(provider=address)
        pool_ids = sorted({e.pool_id for e in touched if e.pool_id})
        if not pool_ids:
            return UserPools(positions=(), total_pools=0, total_contribution=0)

        grouped = await self._fetch_grouped(pool_ids)
        pools, _ = await self._derive(grouped, now)

        positions = []
        for pool in pools:
            contribution, first_at = calc_user_contribution(grouped[pool.pool_id], address)
            if contribution <= 0:
                continue
            positions.append(
                UserPoolPosition(
                    pool=pool,
                    user_contribution=contribution,
                    user_contributed_at=first_at,
                    user_is_creator=pool.creator_address == address,
                )
            )

        positions.sort(key=lambda p: (p.user_contribution, p.pool.pool_id), reverse=True)
        return UserPools(
            positions=tuple(positions),
            total_pools=len(positions),
            total_contribution=sum(p.user_contribution for p in positions),
        )
