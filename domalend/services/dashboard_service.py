"""Per-user dashboard: loans, liquidity, auction opportunities and recent activity."""
from __future__ import annotations

import logging

from ..derivation.auctions import format_time_remaining
from ..derivation.grouping import group_events
from ..derivation.loans import BPS_DENOMINATOR, CREATION_TYPES, REPAYMENT_TYPES
from ..interfaces.event_source import EventSource
from ..models import (
    AuctionOpportunity,
    AuctionStatus,
    AuctionView,
    DashboardStats,
    LiquidityPosition,
    LoanEvent,
    LoanEventType,
    PoolEvent,
    PoolEventType,
    RecentActivity,
    UserDashboard,
    UserPools,
)
from .auction_service import AuctionService
from .enrichment import DomainEnricher
from .loan_service import LoanService
from .pool_service import PoolService
from .validation import validate_address

logger = logging.getLogger(__name__)

MAX_LOANS = 10
MAX_POSITIONS = 5
MAX_OPPORTUNITIES = 5
MAX_ACTIVITY = 5


def format_apy(interest_rate_bps: int) -> str:
    """500 → "5.0%"."""
    return f"{interest_rate_bps / 100:.1f}%"


def build_liquidity_positions(user_pools: UserPools) -> list[LiquidityPosition]:
    positions = []
    for position in user_pools.positions[:MAX_POSITIONS]:
        rate = position.pool.interest_rate_bps
        positions.append(
            LiquidityPosition(
                pool_id=position.pool.pool_id,
                pool_name=f"Pool {position.pool.pool_id[:8]}...",
                apy=format_apy(rate),
                contribution=position.user_contribution,
                estimated_yearly_earnings=position.user_contribution * rate // BPS_DENOMINATOR,
            )
        )
    return positions


def calc_below_start_percent(auction: AuctionView) -> int:
    start = auction.starting_price
    if start <= 0:
        return 0
    return max(0, (start - auction.current_price) * 100 // start)


def select_opportunities(auctions: list[AuctionView]) -> list[AuctionView]:
    """Live auctions, deepest discount first."""
    live = [
        a for a in auctions
        if a.status == AuctionStatus.ACTIVE and a.ownership_verified is not False
    ]
    live.sort(key=lambda a: (calc_below_start_percent(a), a.auction_id), reverse=True)
    return live[:MAX_OPPORTUNITIES]


def build_auction_opportunities(
    auctions: list[AuctionView], now: int
) -> list[AuctionOpportunity]:
    opportunities = []
    for auction in auctions:
        opportunities.append(
            AuctionOpportunity(
                auction_id=auction.auction_id,
                domain_name=auction.domain.display_name,
                current_price=auction.current_price,
                starting_price=auction.starting_price,
                below_start_percent=calc_below_start_percent(auction),
                time_remaining=format_time_remaining(auction.ends_at, now),
            )
        )
    return opportunities


def build_recent_activity(
    loan_events: list[LoanEvent], pool_events: list[PoolEvent]
) -> list[RecentActivity]:
    """Newest-first feed of a user's own loan and liquidity events."""
    activity: list[RecentActivity] = []

    for history in group_events(loan_events).values():
        for event in history:
            name = event.domain_name or "domain"
            if event.event_type in CREATION_TYPES:
                kind, description = "new_loan", f"New loan for {name}"
            elif event.event_type in REPAYMENT_TYPES:
                kind, description = "loan_payment", f"Loan payment for {name}"
            elif event.event_type == LoanEventType.LIQUIDATED:
                kind, description = "liquidation", f"Loan liquidated for {name}"
            else:
                continue
            activity.append(RecentActivity(kind, description, int(event.timestamp), event.amount))

    for history in group_events(pool_events).values():
        for event in history:
            if event.event_type == PoolEventType.CREATED:
                kind, description = "pool_created", "Created liquidity pool"
            elif event.event_type == PoolEventType.LIQUIDITY_ADDED:
                kind, description = "liquidity_added", "Added liquidity to pool"
            elif event.event_type == PoolEventType.LIQUIDITY_REMOVED:
                kind, description = "liquidity_removed", "Removed liquidity from pool"
            else:
                continue
            activity.append(RecentActivity(kind, description, int(event.timestamp), event.amount))

    activity.sort(key=lambda a: a.timestamp, reverse=True)
    return activity[:MAX_ACTIVITY]


class DashboardService:
    """Compose one user's dashboard from the loan, pool and auction services."""

    def __init__(
        self,
        source: EventSource,
        enricher: DomainEnricher,
        loans: LoanService,
        pools: PoolService,
        auctions: AuctionService,
    ) -> None:
        self._source = source
        self._enricher = enricher
        self._loans = loans
        self._pools = pools
        self._auctions = auctions

    async def user_dashboard(self, address: str, now: int) -> UserDashboard:
        address = validate_address(address)
        logger.info("Building dashboard for %s", address)

        loans = await self._loans.derive_all(now, borrower=address)
        user_pools = await self._pools.user_pools(address, now)
        auctions = await self._auctions.verify(await self._auctions.derive_all(now))

        open_loans = [loan for loan in loans if not loan.status.is_terminal]
        active_value = sum(loan.principal_amount for loan in open_loans)
        stats = DashboardStats(
            active_loans_count=len(open_loans),
            active_loans_value=active_value,
            outstanding_debt=sum(loan.outstanding_balance for loan in open_loans),
            liquidity_provided=user_pools.total_contribution,
            liquidity_pools_count=user_pools.total_pools,
            total_portfolio=active_value + user_pools.total_contribution,
        )

        recent_loans = sorted(loans, key=lambda loan: (loan.created_at, loan.loan_id), reverse=True)
        recent_loans = await self._enricher.enrich_loans(recent_loans[:MAX_LOANS])
        opportunities = await self._enricher.enrich_auctions(select_opportunities(auctions))

        activity = build_recent_activity(
            await self._source.fetch_loan_events(borrower=address),
            await self._source.fetch_pool_events(provider=address),
        )

        return UserDashboard(
            address=address,
            stats=stats,
            loans=tuple(recent_loans),
            liquidity_positions=tuple(build_liquidity_positions(user_pools)),
            auction_opportunities=tuple(build_auction_opportunities(opportunities, now)),
            recent_activity=tuple(activity),
        )
