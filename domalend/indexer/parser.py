"""Pure parsing functions for indexer history rows — no I/O.

Rows are the ``items`` of the Ponder ``*Historys`` collections. Amounts are
decimal strings (uint256 does not fit a JSON number); timestamps are kept as
received and normalized later by the grouper.
"""
from __future__ import annotations

import logging
from typing import Any

from ..models import (
    AuctionEvent,
    AuctionEventType,
    LoanEvent,
    LoanEventType,
    PoolEvent,
    PoolEventType,
)

logger = logging.getLogger(__name__)


def parse_amount(value: Any) -> int:
    """Parse a uint amount.

    Examples:
        "500000000" → 500000000
        None        → 0
        "1e6"       → 0 (not an integer string)
    """
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning("Unparseable amount %r, using 0", value)
        return 0


def parse_optional_int(value: Any) -> int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def parse_loan_event(item: dict[str, Any]) -> LoanEvent | None:
    """Parse one ``loanHistorys`` row; unknown event types are skipped."""
    try:
        event_type = LoanEventType(item.get("eventType"))
    except ValueError:
        logger.debug("Skipping unknown loan event type %r", item.get("eventType"))
        return None

    return LoanEvent(
        loan_id=_text(item.get("loanId")),
        event_type=event_type,
        timestamp=item.get("eventTimestamp"),
        borrower_address=_text(item.get("borrowerAddress")),
        domain_token_id=_text(item.get("domainTokenId")),
        domain_name=_text(item.get("domainName")),
        amount=parse_amount(item.get("amount")),
        interest_rate_bps=parse_optional_int(item.get("interestRate")),
        ai_score=parse_optional_int(item.get("aiScore")),
        pool_id=_text(item.get("poolId")),
        repayment_deadline=item.get("repaymentDeadline"),
    )


def parse_pool_event(item: dict[str, Any]) -> PoolEvent | None:
    """Parse one ``poolHistorys`` row.

    On ``created`` rows the provider is the creator and ``liquidityAmount``
    is the seed liquidity.
    """
    try:
        event_type = PoolEventType(item.get("eventType"))
    except ValueError:
        logger.debug("Skipping unknown pool event type %r", item.get("eventType"))
        return None

    provider = _text(item.get("providerAddress"))
    pool = item.get("pool") or {}
    creator = _text(pool.get("creatorAddress"))
    if event_type == PoolEventType.CREATED and not creator:
        creator = provider

    return PoolEvent(
        pool_id=_text(item.get("poolId")),
        event_type=event_type,
        timestamp=item.get("eventTimestamp"),
        provider_address=provider,
        amount=parse_amount(item.get("liquidityAmount")),
        creator_address=creator,
        min_ai_score=parse_optional_int(item.get("minAiScore")),
        interest_rate_bps=parse_optional_int(item.get("interestRate")),
    )


def parse_auction_event(item: dict[str, Any]) -> AuctionEvent | None:
    """Parse one ``auctionHistorys`` row, joining fields of its parent auction."""
    try:
        event_type = AuctionEventType(item.get("eventType"))
    except ValueError:
        logger.debug("Skipping unknown auction event type %r", item.get("eventType"))
        return None

    auction = item.get("auction") or {}
    current_price = parse_amount(item.get("currentPrice"))
    starting_price = parse_amount(auction.get("startingPrice"))
    if event_type == AuctionEventType.STARTED and not starting_price:
        starting_price = current_price

    return AuctionEvent(
        auction_id=_text(item.get("auctionId")),
        event_type=event_type,
        timestamp=item.get("eventTimestamp"),
        loan_id=_text(auction.get("loanId")),
        domain_token_id=_text(auction.get("domainTokenId")),
        domain_name=_text(auction.get("domainName")),
        borrower_address=_text(auction.get("borrowerAddress")),
        bidder_address=_text(item.get("bidderAddress")),
        starting_price=starting_price,
        current_price=current_price,
        bid_amount=parse_amount(item.get("bidAmount")),
        final_price=parse_amount(item.get("finalPrice")),
        loan_amount=parse_amount(auction.get("loanAmount")),
    )


def parse_items(items: list[dict[str, Any]], parse) -> list:
    """Apply ``parse`` to every row, dropping rows it rejects."""
    events = []
    for item in items:
        event = parse(item)
        if event is not None:
            events.append(event)
    return events
