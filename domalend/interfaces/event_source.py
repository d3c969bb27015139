"""Event source protocol — indexer abstraction."""
from typing import Protocol, Sequence

from ..models import (
    AuctionEvent,
    AuctionEventType,
    LoanEvent,
    LoanEventType,
    PoolEvent,
    PoolEventType,
)


class EventSource(Protocol):
    """Abstract interface for reading raw marketplace events.

    Every filter is optional and combined with AND; ``None`` means "no
    filter". Events come back unordered.
    """

    async def fetch_loan_events(
        self,
        *,
        loan_ids: Sequence[str] | None = None,
        borrower: str | None = None,
        pool_ids: Sequence[str] | None = None,
        domain_token_id: str | None = None,
        event_types: Sequence[LoanEventType] | None = None,
    ) -> list[LoanEvent]: ...

    async def fetch_pool_events(
        self,
        *,
        pool_ids: Sequence[str] | None = None,
        provider: str | None = None,
        event_types: Sequence[PoolEventType] | None = None,
    ) -> list[PoolEvent]: ...

    async def fetch_auction_events(
        self,
        *,
        auction_ids: Sequence[str] | None = None,
        event_types: Sequence[AuctionEventType] | None = None,
    ) -> list[AuctionEvent]: ...
