"""Dutch auction pricing and status — pure functions, no I/O.

Price decays continuously by a fixed factor per day:

    current_price = floor(starting_price * daily_decay ** elapsed_days)

Arithmetic runs in ``Decimal`` under a private context so results are
bit-identical across calls and never pass through binary floats.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, Context, Decimal, localcontext
from typing import Sequence

from ..models import AuctionEvent, AuctionEventType, AuctionStatus, AuctionView, DomainRef
from .timestamps import MS_PER_DAY, MS_PER_HOUR

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

DEFAULT_DAILY_DECAY = Decimal("0.99")
DEFAULT_MAX_DURATION_DAYS = 30
DEFAULT_RESERVE_RATIO = Decimal("0.5")

_CONTEXT = Context(prec=60)


@dataclass(frozen=True)
class AuctionPrice:
    current_price: int
    decay_per_second: int


def _floor(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def calc_current_price(
    starting_price: int,
    started_at: int,
    now: int,
    daily_decay: Decimal = DEFAULT_DAILY_DECAY,
) -> AuctionPrice:
    """Price at ``now`` and the per-second decay implied by that price.

    A start time in the future (clock skew) yields the starting price and
    no decay.
    """
    elapsed_ms = now - started_at
    if elapsed_ms < 0:
        logger.warning("Auction start time %d is in the future (now=%d)", started_at, now)
        return AuctionPrice(current_price=starting_price, decay_per_second=0)
    if starting_price <= 0:
        return AuctionPrice(current_price=0, decay_per_second=0)

    with localcontext(_CONTEXT):
        elapsed_days = Decimal(elapsed_ms) / Decimal(MS_PER_DAY)
        factor = daily_decay ** elapsed_days
        current = _floor(Decimal(starting_price) * factor)
        decay = calc_decay_per_second(current, daily_decay)

    return AuctionPrice(current_price=current, decay_per_second=decay)


def calc_decay_per_second(
    current_price: int, daily_decay: Decimal = DEFAULT_DAILY_DECAY
) -> int:
    """floor(current_price * (1 - daily_decay) / 86400); 0 for non-positive prices."""
    if current_price <= 0:
        return 0
    with localcontext(_CONTEXT):
        rate = Decimal(1) - daily_decay
        return max(0, _floor(Decimal(current_price) * rate / Decimal(SECONDS_PER_DAY)))


def calc_reserve_price(current_price: int, reserve_ratio: Decimal = DEFAULT_RESERVE_RATIO) -> int:
    """Indicative floor shown to bidders; not a contract-enforced reserve."""
    with localcontext(_CONTEXT):
        return max(0, _floor(Decimal(current_price) * reserve_ratio))


def is_auction_expired(
    started_at: int, now: int, max_duration_days: int = DEFAULT_MAX_DURATION_DAYS
) -> bool:
    return now - started_at >= max_duration_days * MS_PER_DAY


def is_settlement_address(address: str | None) -> bool:
    return bool(address) and address.lower() != ZERO_ADDRESS


def find_settlement_event(events: Sequence[AuctionEvent]) -> AuctionEvent | None:
    """First bid or end event carrying a real bidder address."""
    for event in events:
        if event.event_type in (AuctionEventType.BID_PLACED, AuctionEventType.ENDED):
            if is_settlement_address(event.bidder_address):
                return event
    return None


def resolve_auction_status(
    events: Sequence[AuctionEvent],
    started_at: int,
    now: int,
    max_duration_days: int = DEFAULT_MAX_DURATION_DAYS,
) -> AuctionStatus:
    """completed > cancelled > expired > active."""
    if find_settlement_event(events) is not None:
        return AuctionStatus.COMPLETED
    if any(e.event_type == AuctionEventType.CANCELLED for e in events):
        return AuctionStatus.CANCELLED
    if is_auction_expired(started_at, now, max_duration_days):
        return AuctionStatus.EXPIRED
    return AuctionStatus.ACTIVE


def calc_recovery_rate(final_price: int | None, loan_amount: int | None) -> float | None:
    if final_price is None or not loan_amount or loan_amount <= 0:
        return None
    return round(final_price * 10_000 // loan_amount / 10_000, 4)


def format_time_remaining(ends_at: int, now: int) -> str:
    remaining = ends_at - now
    if remaining <= 0:
        return "Ended"
    days = remaining // MS_PER_DAY
    if days > 0:
        return f"Ends in {days}d"
    return f"Ends in {remaining // MS_PER_HOUR}h"


def derive_auction(
    events: Sequence[AuctionEvent],
    now: int,
    daily_decay: Decimal = DEFAULT_DAILY_DECAY,
    max_duration_days: int = DEFAULT_MAX_DURATION_DAYS,
    reserve_ratio: Decimal = DEFAULT_RESERVE_RATIO,
    loan_amount: int | None = None,
) -> AuctionView | None:
    """Replay one auction's ordered events into its current view.

    Only active auctions keep decaying. Closed auctions report the price
    they closed at: the settlement price when completed, the decayed price
    at expiry or cancellation otherwise.
    Recovery is measured against the principal the indexer recorded on the
    auction, falling back to ``loan_amount`` when it recorded none.
    """
    if not events:
        return None

    start = next((e for e in events if e.event_type == AuctionEventType.STARTED), None)
    if start is None:
        logger.warning("No start event found for auction %s", events[0].auction_id)
        return None

    auction_id = start.auction_id
    started_at = int(start.timestamp)
    starting_price = start.starting_price or start.current_price
    if starting_price < 0:
        logger.warning("Auction %s has negative starting price, skipping", auction_id)
        return None

    ends_at = started_at + max_duration_days * MS_PER_DAY
    status = resolve_auction_status(events, started_at, now, max_duration_days)

    settlement = find_settlement_event(events)
    ended = next((e for e in events if e.event_type == AuctionEventType.ENDED), None)
    cancelled = next((e for e in events if e.event_type == AuctionEventType.CANCELLED), None)

    final_price: int | None = None
    ended_at: int | None = None
    if status == AuctionStatus.ACTIVE:
        price = calc_current_price(starting_price, started_at, now, daily_decay)
    elif status == AuctionStatus.COMPLETED:
        final_price = _settlement_price(settlement, ended)
        if final_price is None:
            final_price = calc_current_price(
                starting_price, started_at, int(settlement.timestamp), daily_decay
            ).current_price
        ended_at = int((ended or settlement).timestamp)
        price = AuctionPrice(current_price=final_price, decay_per_second=0)
    else:
        ended_at = int(cancelled.timestamp) if cancelled else ends_at
        closing = calc_current_price(starting_price, started_at, ended_at, daily_decay)
        price = AuctionPrice(current_price=closing.current_price, decay_per_second=0)

    principal = next((e.loan_amount for e in events if e.loan_amount > 0), None) or loan_amount

    return AuctionView(
        auction_id=auction_id,
        loan_id=start.loan_id,
        domain_token_id=start.domain_token_id,
        borrower_address=(start.borrower_address or ZERO_ADDRESS).lower(),
        starting_price=starting_price,
        current_price=price.current_price,
        decay_per_second=price.decay_per_second,
        status=status,
        started_at=started_at,
        ends_at=ends_at,
        reserve_price=calc_reserve_price(price.current_price, reserve_ratio),
        domain=DomainRef(token_id=start.domain_token_id, name=start.domain_name),
        bidder_address=settlement.bidder_address.lower() if settlement else None,
        final_price=final_price,
        recovery_rate=calc_recovery_rate(final_price, principal),
        ended_at=ended_at,
    )


def _settlement_price(
    settlement: AuctionEvent | None, ended: AuctionEvent | None
) -> int | None:
    if ended is not None and ended.final_price > 0:
        return ended.final_price
    if settlement is not None:
        for amount in (settlement.final_price, settlement.bid_amount, settlement.current_price):
            if amount > 0:
                return amount
    return None
