"""Data models — all frozen (immutable).

Events are facts captured by the indexer; views are derived from them and
never stored. Monetary amounts are integers in token minor units.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

Timestamp = Union[int, float, str]


# ---------------------------------------------------------------------------
# Event type / status enums
# ---------------------------------------------------------------------------


class LoanEventType(str, Enum):
    CREATED_INSTANT = "created_instant"
    CREATED_CROWDFUNDED = "created_crowdfunded"
    COLLATERAL_LOCKED = "collateral_locked"
    REPAID_PARTIAL = "repaid_partial"
    REPAID_FULL = "repaid_full"
    LIQUIDATED = "liquidated"
    DEFAULTED = "defaulted"
    COLLATERAL_RELEASED = "collateral_released"


class PoolEventType(str, Enum):
    CREATED = "created"
    LIQUIDITY_ADDED = "liquidity_added"
    LIQUIDITY_REMOVED = "liquidity_removed"
    UPDATED = "updated"
    PAUSED = "paused"
    UNPAUSED = "unpaused"
    CLOSED = "closed"


class AuctionEventType(str, Enum):
    STARTED = "started"
    BID_PLACED = "bid_placed"
    ENDED = "ended"
    CANCELLED = "cancelled"


class LoanStatus(str, Enum):
    ACTIVE = "active"
    OVERDUE = "overdue"
    REPAID = "repaid"
    LIQUIDATED = "liquidated"
    RELEASED = "released"

    @property
    def is_terminal(self) -> bool:
        return self in (LoanStatus.REPAID, LoanStatus.LIQUIDATED, LoanStatus.RELEASED)


class PoolStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AuctionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoanEvent:
    """Single entry of a loan's on-chain history.

    ``timestamp`` and ``repayment_deadline`` arrive in whatever unit the
    indexer used; the grouper normalizes both to milliseconds.
    """

    loan_id: str
    event_type: LoanEventType
    timestamp: Timestamp
    borrower_address: str = ""
    domain_token_id: str = ""
    domain_name: str = ""
    amount: int = 0
    interest_rate_bps: int | None = None
    ai_score: int | None = None
    pool_id: str = ""
    repayment_deadline: Timestamp | None = None

    @property
    def entity_id(self) -> str:
        return self.loan_id


@dataclass(frozen=True)
class PoolEvent:
    """Single entry of a pool's history (creation, liquidity moves, lifecycle)."""

    pool_id: str
    event_type: PoolEventType
    timestamp: Timestamp
    provider_address: str = ""
    amount: int = 0
    creator_address: str = ""
    min_ai_score: int | None = None
    interest_rate_bps: int | None = None

    @property
    def entity_id(self) -> str:
        return self.pool_id


@dataclass(frozen=True)
class AuctionEvent:
    """Single entry of a Dutch auction's history."""

    auction_id: str
    event_type: AuctionEventType
    timestamp: Timestamp
    loan_id: str = ""
    domain_token_id: str = ""
    domain_name: str = ""
    borrower_address: str = ""
    bidder_address: str = ""
    starting_price: int = 0
    current_price: int = 0
    bid_amount: int = 0
    final_price: int = 0
    loan_amount: int = 0

    @property
    def entity_id(self) -> str:
        return self.auction_id


# ---------------------------------------------------------------------------
# Collaborator payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainMetadata:
    """NFT metadata for a tokenized domain."""

    token_id: str
    name: str = ""
    tld: str = ""
    character_length: int = 0
    owner: str = ""


@dataclass(frozen=True)
class DomainScore:
    """Cached AI score for a domain name."""

    total_score: int
    confidence: int = 0
    is_from_cache: bool = False
    cache_age_minutes: int = 0


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainRef:
    """Domain as referenced from a loan or auction, optionally enriched."""

    token_id: str
    name: str = ""
    ai_score: int = 0
    tld: str = ""
    character_length: int = 0
    owner: str = ""
    score_from_cache: bool | None = None

    @property
    def display_name(self) -> str:
        return self.name or f"Token #{self.token_id}"


@dataclass(frozen=True)
class LoanView:
    loan_id: str
    borrower_address: str
    principal_amount: int
    interest_rate_bps: int
    status: LoanStatus
    created_at: int
    repayment_deadline: int | None
    interest_accrued: int
    current_amount_due: int
    health_score: int
    pool_id: str
    domain: DomainRef
    loan_type: str = "instant"
    days_until_deadline: int | None = None
    total_repaid: int = 0
    outstanding_balance: int = 0
    closed_at: int | None = None


@dataclass(frozen=True)
class LoanDetail:
    loan: LoanView
    events: tuple[LoanEvent, ...] = ()


@dataclass(frozen=True)
class PoolView:
    pool_id: str
    creator_address: str
    min_ai_score: int
    interest_rate_bps: int
    total_liquidity: int
    liquidity_provider_count: int
    active_loans: int
    total_loan_volume: int
    default_rate: float
    status: PoolStatus
    created_at: int
    utilization: float = 0.0


@dataclass(frozen=True)
class PoolDetail:
    pool: PoolView
    loans: tuple[LoanView, ...] | None = None


@dataclass(frozen=True)
class UserPoolPosition:
    pool: PoolView
    user_contribution: int
    user_contributed_at: int | None
    user_is_creator: bool


@dataclass(frozen=True)
class AuctionView:
    auction_id: str
    loan_id: str
    domain_token_id: str
    borrower_address: str
    starting_price: int
    current_price: int
    decay_per_second: int
    status: AuctionStatus
    started_at: int
    ends_at: int
    reserve_price: int
    domain: DomainRef
    bidder_address: str | None = None
    final_price: int | None = None
    recovery_rate: float | None = None
    ended_at: int | None = None
    ownership_verified: bool | None = None


@dataclass(frozen=True)
class AuctionDetail:
    auction: AuctionView
    events: tuple[AuctionEvent, ...] = ()


# ---------------------------------------------------------------------------
# Collections and summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Pagination:
    total: int
    page: int
    limit: int
    total_pages: int


@dataclass(frozen=True)
class LoanSummary:
    total_loans: int
    active_loans: int
    total_volume: int
    average_ai_score: int
    user_total_borrowed: int | None = None
    user_current_debt: int | None = None
    pool_default_rate: float | None = None
    domain_loan_count: int | None = None
    domain_total_borrowed: int | None = None


@dataclass(frozen=True)
class LoanPage:
    loans: tuple[LoanView, ...]
    pagination: Pagination
    summary: LoanSummary


@dataclass(frozen=True)
class PoolPage:
    pools: tuple[PoolView, ...]
    pagination: Pagination


@dataclass(frozen=True)
class UserPools:
    positions: tuple[UserPoolPosition, ...]
    total_pools: int
    total_contribution: int


@dataclass(frozen=True)
class AuctionPage:
    auctions: tuple[AuctionView, ...]
    pagination: Pagination


@dataclass(frozen=True)
class UserAuctions:
    auctions: tuple[AuctionView, ...]
    total_auctions: int
    active_auctions: int


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardStats:
    active_loans_count: int
    active_loans_value: int
    outstanding_debt: int
    liquidity_provided: int
    liquidity_pools_count: int
    total_portfolio: int


@dataclass(frozen=True)
class LiquidityPosition:
    pool_id: str
    pool_name: str
    apy: str
    contribution: int
    estimated_yearly_earnings: int


@dataclass(frozen=True)
class AuctionOpportunity:
    auction_id: str
    domain_name: str
    current_price: int
    starting_price: int
    below_start_percent: int
    time_remaining: str


@dataclass(frozen=True)
class RecentActivity:
    kind: str
    description: str
    timestamp: int
    amount: int


@dataclass(frozen=True)
class UserDashboard:
    address: str
    stats: DashboardStats
    loans: tuple[LoanView, ...] = ()
    liquidity_positions: tuple[LiquidityPosition, ...] = ()
    auction_opportunities: tuple[AuctionOpportunity, ...] = ()
    recent_activity: tuple[RecentActivity, ...] = ()
