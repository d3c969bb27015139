"""Loan status resolution and financial derivation — pure functions, no I/O.

Every function takes the current time explicitly (epoch milliseconds) and
expects the loan's events already ordered by the grouper.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

from ..models import DomainRef, LoanEvent, LoanEventType, LoanStatus, LoanView
from .timestamps import MS_PER_DAY, days_between, normalize_timestamp

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
DAYS_PER_YEAR = 365

CREATION_TYPES = frozenset(
    {LoanEventType.CREATED_INSTANT, LoanEventType.CREATED_CROWDFUNDED}
)
REPAYMENT_TYPES = frozenset({LoanEventType.REPAID_PARTIAL, LoanEventType.REPAID_FULL})

# Terminal outcomes in precedence order; the first one present decides the status.
TERMINAL_PRECEDENCE: tuple[tuple[LoanEventType, LoanStatus], ...] = (
    (LoanEventType.REPAID_FULL, LoanStatus.REPAID),
    (LoanEventType.LIQUIDATED, LoanStatus.LIQUIDATED),
    (LoanEventType.COLLATERAL_RELEASED, LoanStatus.RELEASED),
)

# (days remaining strictly above, score) for active loans, most time first.
HEALTH_BANDS: tuple[tuple[int, int], ...] = (
    (30, 100),
    (14, 85),
    (7, 70),
    (3, 50),
    (0, 35),
)
HEALTH_FLOOR = 25
HEALTH_OVERDUE = 25
HEALTH_LIQUIDATED = 0
HEALTH_SETTLED = 100


@dataclass(frozen=True)
class LoanResolution:
    """Status of one loan plus the events it was anchored on."""

    status: LoanStatus
    creation: LoanEvent
    latest: LoanEvent
    terminal: LoanEvent | None
    repayment_deadline: int | None


def find_creation_event(events: Sequence[LoanEvent]) -> LoanEvent | None:
    for event in events:
        if event.event_type in CREATION_TYPES:
            return event
    return None


def find_terminal_event(events: Sequence[LoanEvent]) -> LoanEvent | None:
    """Earliest event of the highest-precedence terminal type present."""
    for event_type, _ in TERMINAL_PRECEDENCE:
        for event in events:
            if event.event_type == event_type:
                return event
    return None


def resolve_loan_status(
    events: Sequence[LoanEvent], repayment_deadline: int | None, now: int
) -> LoanStatus:
    """Resolve a loan's status; terminal outcomes outrank a passed deadline."""
    present = {event.event_type for event in events}
    for event_type, status in TERMINAL_PRECEDENCE:
        if event_type in present:
            return status

    if repayment_deadline is not None and now > repayment_deadline:
        return LoanStatus.OVERDUE
    return LoanStatus.ACTIVE


def resolve_loan(events: Sequence[LoanEvent], now: int) -> LoanResolution | None:
    """Anchor a loan's event group; None (and a warning) when it has no creation event."""
    if not events:
        return None

    creation = find_creation_event(events)
    if creation is None:
        logger.warning("No creation event found for loan %s", events[0].loan_id)
        return None

    deadline = normalize_timestamp(creation.repayment_deadline)
    return LoanResolution(
        status=resolve_loan_status(events, deadline, now),
        creation=creation,
        latest=events[-1],
        terminal=find_terminal_event(events),
        repayment_deadline=deadline,
    )


def calc_interest(principal: int, rate_bps: int, days_elapsed: int) -> int:
    """Simple interest: principal * rate * days / (10000 * 365), floored."""
    if principal <= 0 or rate_bps <= 0 or days_elapsed <= 0:
        return 0
    return principal * rate_bps * days_elapsed // (BPS_DENOMINATOR * DAYS_PER_YEAR)


def calc_interest_accrued(
    principal: int,
    rate_bps: int,
    created_at: int,
    status: LoanStatus,
    now: int,
    closed_at: int | None = None,
) -> int:
    """Interest accrued so far.

    Open loans accrue up to ``now``; terminal loans are frozen at the moment
    they closed, or zero when that moment is unknown.
    """
    if status.is_terminal:
        if closed_at is None:
            return 0
        accrual_end = closed_at
    else:
        accrual_end = now
    return calc_interest(principal, rate_bps, days_between(created_at, accrual_end))


def calc_current_amount_due(principal: int, interest_accrued: int) -> int:
    return principal + interest_accrued


def calc_days_until_deadline(repayment_deadline: int | None, now: int) -> int | None:
    if repayment_deadline is None:
        return None
    return (repayment_deadline - now) // MS_PER_DAY


def calc_health_score(status: LoanStatus, days_until_deadline: int | None) -> int:
    """Coarse 0–100 risk signal; never decreases as remaining time grows."""
    if status in (LoanStatus.REPAID, LoanStatus.RELEASED):
        return HEALTH_SETTLED
    if status == LoanStatus.LIQUIDATED:
        return HEALTH_LIQUIDATED
    if status == LoanStatus.OVERDUE:
        return HEALTH_OVERDUE

    if days_until_deadline is None:
        return HEALTH_SETTLED
    for threshold, score in HEALTH_BANDS:
        if days_until_deadline > threshold:
            return score
    return HEALTH_FLOOR


def calc_total_repaid(events: Sequence[LoanEvent]) -> int:
    return sum(e.amount for e in events if e.event_type in REPAYMENT_TYPES and e.amount > 0)


def derive_loan(
    events: Sequence[LoanEvent],
    now: int,
    default_interest_rate_bps: int = 500,
) -> LoanView | None:
    """Replay one loan's ordered events into its current view."""
    resolution = resolve_loan(events, now)
    if resolution is None:
        return None

    creation = resolution.creation
    loan_id = creation.loan_id
    principal = creation.amount
    if principal < 0:
        logger.warning("Loan %s has negative principal %d, skipping", loan_id, principal)
        return None

    created_at = int(creation.timestamp)
    rate_bps = creation.interest_rate_bps
    if rate_bps is None or rate_bps < 0:
        rate_bps = default_interest_rate_bps

    status = resolution.status
    closed_at = int(resolution.terminal.timestamp) if resolution.terminal else None

    interest = calc_interest_accrued(principal, rate_bps, created_at, status, now, closed_at)
    amount_due = calc_current_amount_due(principal, interest)
    days_left = calc_days_until_deadline(resolution.repayment_deadline, now)
    total_repaid = calc_total_repaid(events)
    outstanding = 0 if status.is_terminal else max(0, amount_due - total_repaid)

    logger.debug(
        "Loan %s: status=%s principal=%d interest=%d due=%d",
        loan_id, status.value, principal, interest, amount_due,
    )

    return LoanView(
        loan_id=loan_id,
        borrower_address=creation.borrower_address.lower(),
        principal_amount=principal,
        interest_rate_bps=rate_bps,
        status=status,
        created_at=created_at,
        repayment_deadline=resolution.repayment_deadline,
        interest_accrued=interest,
        current_amount_due=amount_due,
        health_score=calc_health_score(status, days_left),
        pool_id=creation.pool_id,
        domain=DomainRef(
            token_id=creation.domain_token_id,
            name=creation.domain_name,
            ai_score=creation.ai_score or 0,
        ),
        loan_type=(
            "instant"
            if creation.event_type == LoanEventType.CREATED_INSTANT
            else "crowdfunded"
        ),
        days_until_deadline=None if days_left is None else max(0, days_left),
        total_repaid=total_repaid,
        outstanding_balance=outstanding,
        closed_at=closed_at,
    )


def derive_loans(
    grouped: Mapping[str, Sequence[LoanEvent]],
    now: int,
    default_interest_rate_bps: int = 500,
) -> list[LoanView]:
    """Derive every loan in a grouped event set, skipping anomalous groups."""
    loans: list[LoanView] = []
    for events in grouped.values():
        view = derive_loan(events, now, default_interest_rate_bps)
        if view is not None:
            loans.append(view)
    return loans
