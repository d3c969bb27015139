"""List queries plus the sort and pagination helpers shared by the services."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

from ..models import (
    AuctionStatus,
    AuctionView,
    LoanStatus,
    LoanView,
    Pagination,
    PoolStatus,
    PoolView,
)
from .validation import InvalidInputError

T = TypeVar("T")

LOAN_SORT_KEYS = ("created_at", "amount", "deadline", "health")
POOL_SORT_KEYS = ("created_at", "liquidity", "interest_rate")
AUCTION_SORT_KEYS = ("started_at", "current_price")
ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class LoanQuery:
    status: LoanStatus | None = None
    borrower: str | None = None
    pool_id: str | None = None
    domain_token_id: str | None = None
    sort_by: str = "created_at"
    order: str = "desc"
    page: int | None = None
    limit: int | None = None


@dataclass(frozen=True)
class PoolQuery:
    min_ai_score: int | None = None
    status: PoolStatus | None = None
    sort_by: str = "created_at"
    order: str = "desc"
    page: int | None = None
    limit: int | None = None


@dataclass(frozen=True)
class AuctionQuery:
    status: AuctionStatus | None = None
    sort_by: str = "started_at"
    order: str = "desc"
    page: int | None = None
    limit: int | None = None


def _check_sort(sort_by: str, order: str, allowed: tuple[str, ...]) -> bool:
    if sort_by not in allowed:
        raise InvalidInputError(f"sort_by must be one of {', '.join(allowed)}, got {sort_by!r}")
    if order not in ORDERS:
        raise InvalidInputError(f"order must be 'asc' or 'desc', got {order!r}")
    return order == "desc"


def sort_loans(loans: Sequence[LoanView], sort_by: str, order: str) -> list[LoanView]:
    """Sort loans; loans without a deadline always sort last by deadline."""
    reverse = _check_sort(sort_by, order, LOAN_SORT_KEYS)
    if sort_by == "deadline":
        dated = [loan for loan in loans if loan.repayment_deadline is not None]
        undated = [loan for loan in loans if loan.repayment_deadline is None]
        dated.sort(key=lambda loan: (loan.repayment_deadline, loan.loan_id), reverse=reverse)
        return dated + sorted(undated, key=lambda loan: loan.loan_id)

    keys = {
        "created_at": lambda loan: (loan.created_at, loan.loan_id),
        "amount": lambda loan: (loan.principal_amount, loan.loan_id),
        "health": lambda loan: (loan.health_score, loan.loan_id),
    }
    return sorted(loans, key=keys[sort_by], reverse=reverse)


def sort_pools(pools: Sequence[PoolView], sort_by: str, order: str) -> list[PoolView]:
    reverse = _check_sort(sort_by, order, POOL_SORT_KEYS)
    keys = {
        "created_at": lambda pool: (pool.created_at, pool.pool_id),
        "liquidity": lambda pool: (pool.total_liquidity, pool.pool_id),
        "interest_rate": lambda pool: (pool.interest_rate_bps, pool.pool_id),
    }
    return sorted(pools, key=keys[sort_by], reverse=reverse)


def sort_auctions(
    auctions: Sequence[AuctionView], sort_by: str, order: str
) -> list[AuctionView]:
    reverse = _check_sort(sort_by, order, AUCTION_SORT_KEYS)
    keys = {
        "started_at": lambda a: (a.started_at, a.auction_id),
        "current_price": lambda a: (a.current_price, a.auction_id),
    }
    return sorted(auctions, key=keys[sort_by], reverse=reverse)


def paginate(items: Sequence[T], page: int, limit: int) -> tuple[list[T], Pagination]:
    """Slice one page out of an already filtered and sorted sequence."""
    total = len(items)
    start = (page - 1) * limit
    return list(items[start:start + limit]), Pagination(
        total=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if total else 0,
    )
