"""Pool liquidity replay and loan statistics — pure functions, no I/O."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..models import LoanStatus, LoanView, PoolEvent, PoolEventType, PoolStatus, PoolView

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityState:
    """Result of replaying a pool's liquidity events.

    ``total`` is the exact signed sum; ``balances`` maps each provider
    (lower-cased) to their own net contribution.
    """

    total: int
    balances: dict[str, int]

    @property
    def provider_count(self) -> int:
        return sum(1 for amount in self.balances.values() if amount > 0)


def find_pool_creation(events: Sequence[PoolEvent]) -> PoolEvent | None:
    for event in events:
        if event.event_type == PoolEventType.CREATED:
            return event
    return None


def replay_liquidity(events: Sequence[PoolEvent]) -> LiquidityState:
    """Running sum of seed liquidity plus additions minus removals.

    The creation event's amount is the creator's seed; each event is counted
    exactly once.
    """
    total = 0
    balances: dict[str, int] = {}

    for event in events:
        if event.event_type == PoolEventType.CREATED:
            delta = event.amount
            provider = event.provider_address or event.creator_address
        elif event.event_type == PoolEventType.LIQUIDITY_ADDED:
            delta = event.amount
            provider = event.provider_address
        elif event.event_type == PoolEventType.LIQUIDITY_REMOVED:
            delta = -event.amount
            provider = event.provider_address
        else:
            continue

        total += delta
        if provider:
            key = provider.lower()
            balances[key] = balances.get(key, 0) + delta

    return LiquidityState(total=total, balances=balances)


def resolve_pool_status(events: Sequence[PoolEvent]) -> PoolStatus:
    """Closed pools stay inactive; otherwise the latest pause/unpause wins."""
    status = PoolStatus.ACTIVE
    for event in events:
        if event.event_type == PoolEventType.CLOSED:
            return PoolStatus.INACTIVE
        if event.event_type == PoolEventType.PAUSED:
            status = PoolStatus.INACTIVE
        elif event.event_type == PoolEventType.UNPAUSED:
            status = PoolStatus.ACTIVE
    return status


def calc_default_rate(loans: Sequence[LoanView]) -> float:
    """Share of loans that ended in liquidation; 0 when there are none."""
    if not loans:
        return 0.0
    liquidated = sum(1 for loan in loans if loan.status == LoanStatus.LIQUIDATED)
    return liquidated / len(loans)


def calc_utilization(outstanding_principal: int, total_liquidity: int) -> float:
    if total_liquidity <= 0:
        return 0.0
    return min(1.0, max(0, outstanding_principal) / total_liquidity)


def derive_pool(events: Sequence[PoolEvent], loans: Sequence[LoanView] = ()) -> PoolView | None:
    """Replay one pool's ordered events and join the loans it funded.

    ``loans`` may contain loans of other pools; only those whose ``pool_id``
    matches are counted.
    """
    if not events:
        return None

    creation = find_pool_creation(events)
    if creation is None:
        logger.warning("No creation event found for pool %s", events[0].pool_id)
        return None

    pool_id = creation.pool_id
    min_ai_score = creation.min_ai_score or 0
    interest_rate = creation.interest_rate_bps or 0
    for event in events:
        if event.event_type == PoolEventType.UPDATED:
            if event.min_ai_score is not None:
                min_ai_score = event.min_ai_score
            if event.interest_rate_bps is not None:
                interest_rate = event.interest_rate_bps

    liquidity = replay_liquidity(events)
    if liquidity.total < 0:
        logger.warning(
            "Pool %s replays to negative liquidity %d, reporting 0",
            pool_id, liquidity.total,
        )
    total_liquidity = max(0, liquidity.total)

    pool_loans = [loan for loan in loans if loan.pool_id == pool_id]
    outstanding = sum(
        loan.principal_amount
        for loan in pool_loans
        if loan.status in (LoanStatus.ACTIVE, LoanStatus.OVERDUE)
    )

    return PoolView(
        pool_id=pool_id,
        creator_address=(creation.creator_address or creation.provider_address).lower(),
        min_ai_score=min_ai_score,
        interest_rate_bps=interest_rate,
        total_liquidity=total_liquidity,
        liquidity_provider_count=liquidity.provider_count,
        active_loans=sum(1 for loan in pool_loans if loan.status == LoanStatus.ACTIVE),
        total_loan_volume=sum(loan.principal_amount for loan in pool_loans),
        default_rate=calc_default_rate(pool_loans),
        status=resolve_pool_status(events),
        created_at=int(creation.timestamp),
        utilization=calc_utilization(outstanding, total_liquidity),
    )


def calc_user_contribution(
    events: Sequence[PoolEvent], address: str
) -> tuple[int, int | None]:
    """Net contribution of ``address`` to one pool and when it first contributed."""
    address = address.lower()
    balance = replay_liquidity(events).balances.get(address, 0)
    first_at = None
    for event in events:
        provider = (event.provider_address or event.creator_address).lower()
        if provider == address and event.event_type in (
            PoolEventType.CREATED,
            PoolEventType.LIQUIDITY_ADDED,
        ):
            first_at = int(event.timestamp)
            break
    return balance, first_at
