"""Event builders, constants and in-memory collaborators shared by the tests."""
from __future__ import annotations

import asyncio
from typing import Sequence

from domalend.models import (
    AuctionEvent,
    AuctionEventType,
    DomainMetadata,
    DomainScore,
    LoanEvent,
    LoanEventType,
    PoolEvent,
    PoolEventType,
)

NOW = 1_700_000_000_000
DAY = 86_400_000
HOUR = 3_600_000

BORROWER = "0x1111111111111111111111111111111111111111"
LENDER = "0x2222222222222222222222222222222222222222"
OTHER = "0x3333333333333333333333333333333333333333"
BIDDER = "0x4444444444444444444444444444444444444444"
AUCTION_CONTRACT = "0xf4ec2e259036a841d7ebd8a34fdc97311be063d1"


# ---------------------------------------------------------------------------
# Event builders
# ---------------------------------------------------------------------------


def loan_created(
    loan_id: str = "1",
    timestamp: int = NOW - 10 * DAY,
    amount: int = 500_000_000,
    rate: int | None = 500,
    deadline: int | None = NOW + 20 * DAY,
    borrower: str = BORROWER,
    pool_id: str = "p1",
    token_id: str = "1001",
    domain_name: str = "crypto.com",
    ai_score: int | None = 80,
    event_type: LoanEventType = LoanEventType.CREATED_INSTANT,
) -> LoanEvent:
    return LoanEvent(
        loan_id=loan_id,
        event_type=event_type,
        timestamp=timestamp,
        borrower_address=borrower,
        domain_token_id=token_id,
        domain_name=domain_name,
        amount=amount,
        interest_rate_bps=rate,
        ai_score=ai_score,
        pool_id=pool_id,
        repayment_deadline=deadline,
    )


def loan_event(
    event_type: LoanEventType,
    loan_id: str = "1",
    timestamp: int = NOW - DAY,
    amount: int = 0,
    borrower: str = BORROWER,
    pool_id: str = "p1",
    token_id: str = "1001",
) -> LoanEvent:
    return LoanEvent(
        loan_id=loan_id,
        event_type=event_type,
        timestamp=timestamp,
        borrower_address=borrower,
        domain_token_id=token_id,
        amount=amount,
        pool_id=pool_id,
    )


def pool_event(
    event_type: PoolEventType,
    pool_id: str = "p1",
    timestamp: int = NOW - 30 * DAY,
    provider: str = LENDER,
    amount: int = 0,
    min_ai_score: int | None = None,
    rate: int | None = None,
) -> PoolEvent:
    return PoolEvent(
        pool_id=pool_id,
        event_type=event_type,
        timestamp=timestamp,
        provider_address=provider,
        amount=amount,
        creator_address=provider if event_type == PoolEventType.CREATED else "",
        min_ai_score=min_ai_score,
        interest_rate_bps=rate,
    )


def auction_event(
    event_type: AuctionEventType,
    auction_id: str = "a1",
    timestamp: int = NOW - DAY,
    starting_price: int = 2_000_000_000,
    bidder: str = "",
    bid_amount: int = 0,
    final_price: int = 0,
    loan_id: str = "1",
    token_id: str = "1001",
    borrower: str = BORROWER,
    domain_name: str = "crypto.com",
    loan_amount: int = 0,
) -> AuctionEvent:
    return AuctionEvent(
        auction_id=auction_id,
        event_type=event_type,
        timestamp=timestamp,
        loan_id=loan_id,
        domain_token_id=token_id,
        domain_name=domain_name,
        borrower_address=borrower,
        bidder_address=bidder,
        starting_price=starting_price,
        current_price=starting_price,
        bid_amount=bid_amount,
        final_price=final_price,
        loan_amount=loan_amount,
    )


# ---------------------------------------------------------------------------
# In-memory collaborators
# ---------------------------------------------------------------------------


class FakeEventSource:
    """EventSource over fixed event lists, applying the same filters as the indexer."""

    def __init__(
        self,
        loans: Sequence[LoanEvent] = (),
        pools: Sequence[PoolEvent] = (),
        auctions: Sequence[AuctionEvent] = (),
    ) -> None:
        self.loans = list(loans)
        self.pools = list(pools)
        self.auctions = list(auctions)
        self.calls: list[tuple[str, dict]] = []

    async def fetch_loan_events(
        self,
        *,
        loan_ids=None,
        borrower=None,
        pool_ids=None,
        domain_token_id=None,
        event_types=None,
    ) -> list[LoanEvent]:
        self.calls.append(("loans", {"loan_ids": loan_ids, "borrower": borrower,
                                     "pool_ids": pool_ids, "domain_token_id": domain_token_id}))
        return [
            e for e in self.loans
            if (loan_ids is None or e.loan_id in loan_ids)
            and (not borrower or e.borrower_address.lower() == borrower.lower())
            and (pool_ids is None or e.pool_id in pool_ids)
            and (not domain_token_id or e.domain_token_id == domain_token_id)
            and (event_types is None or e.event_type in event_types)
        ]

    async def fetch_pool_events(
        self, *, pool_ids=None, provider=None, event_types=None
    ) -> list[PoolEvent]:
        self.calls.append(("pools", {"pool_ids": pool_ids, "provider": provider}))
        return [
            e for e in self.pools
            if (pool_ids is None or e.pool_id in pool_ids)
            and (not provider or e.provider_address.lower() == provider.lower())
            and (event_types is None or e.event_type in event_types)
        ]

    async def fetch_auction_events(
        self, *, auction_ids=None, event_types=None
    ) -> list[AuctionEvent]:
        self.calls.append(("auctions", {"auction_ids": auction_ids}))
        return [
            e for e in self.auctions
            if (auction_ids is None or e.auction_id in auction_ids)
            and (event_types is None or e.event_type in event_types)
        ]


class FakeMetadata:
    def __init__(self, entries: dict[str, DomainMetadata] | None = None,
                 failing: set[str] | None = None) -> None:
        self.entries = entries or {}
        self.failing = failing or set()
        self.requested: list[str] = []

    async def get_metadata(self, token_id: str) -> DomainMetadata | None:
        self.requested.append(token_id)
        if token_id in self.failing:
            raise ConnectionError(f"metadata down for {token_id}")
        return self.entries.get(token_id)


class FakeScores:
    def __init__(self, scores: dict[str, int] | None = None) -> None:
        self.scores = scores or {}

    async def get_score(self, domain_name: str) -> DomainScore | None:
        if domain_name not in self.scores:
            return None
        return DomainScore(total_score=self.scores[domain_name], confidence=90,
                           is_from_cache=True, cache_age_minutes=5)


class FakeVerifier:
    def __init__(self, held: dict[str, bool | None]) -> None:
        self.held = held

    async def owner_of(self, token_id: str) -> str | None:
        held = self.held.get(token_id)
        if held is None:
            return None
        return AUCTION_CONTRACT if held else OTHER

    async def is_held_by(self, token_id: str, holder: str) -> bool | None:
        owner = await self.owner_of(token_id)
        return None if owner is None else owner == holder.lower()


class InFlightCounter:
    """Records the largest number of calls awaiting at the same time."""

    def __init__(self, delay: float = 0.01) -> None:
        self.delay = delay
        self.in_flight = 0
        self.peak = 0
        self.calls = 0

    async def wait(self) -> None:
        self.in_flight += 1
        self.calls += 1
        self.peak = max(self.peak, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1


class SlowMetadata(InFlightCounter):
    async def get_metadata(self, token_id: str) -> DomainMetadata | None:
        await self.wait()
        return DomainMetadata(token_id=token_id, name=f"domain{token_id}.com")


class SlowVerifier(InFlightCounter):
    async def owner_of(self, token_id: str) -> str | None:
        await self.wait()
        return AUCTION_CONTRACT

    async def is_held_by(self, token_id: str, holder: str) -> bool | None:
        return await self.owner_of(token_id) == holder.lower()
