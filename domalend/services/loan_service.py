"""Loan listings, details and summaries derived from the loan event history."""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from ..config import LoanConfig, PaginationConfig
from ..derivation.grouping import group_events
from ..derivation.loans import derive_loan, derive_loans
from ..derivation.pools import calc_default_rate
from ..interfaces.event_source import EventSource
from ..models import LoanDetail, LoanPage, LoanStatus, LoanSummary, LoanView
from .enrichment import DomainEnricher
from .query import LoanQuery, paginate, sort_loans
from .validation import validate_address, validate_pagination

logger = logging.getLogger(__name__)


def build_loan_summary(
    loans: Sequence[LoanView],
    borrower: str | None = None,
    pool_id: str | None = None,
    domain_token_id: str | None = None,
) -> LoanSummary:
    """Totals over a filtered loan set, plus figures for the filter in play.

    Runs over the whole filtered set before enrichment, so
    ``average_ai_score`` averages the scores recorded on loan events, not
    live scores from the score service.
    """
    scores = [loan.domain.ai_score for loan in loans if loan.domain.ai_score > 0]
    open_loans = [loan for loan in loans if not loan.status.is_terminal]

    summary = LoanSummary(
        total_loans=len(loans),
        active_loans=sum(1 for loan in loans if loan.status == LoanStatus.ACTIVE),
        total_volume=sum(loan.principal_amount for loan in loans),
        average_ai_score=round(sum(scores) / len(scores)) if scores else 0,
    )
    extras = {}
    if borrower:
        extras["user_total_borrowed"] = summary.total_volume
        extras["user_current_debt"] = sum(loan.outstanding_balance for loan in open_loans)
    if pool_id:
        extras["pool_default_rate"] = calc_default_rate(loans)
    if domain_token_id:
        extras["domain_loan_count"] = summary.total_loans
        extras["domain_total_borrowed"] = summary.total_volume
    return replace(summary, **extras)


class LoanService:
    """Derive loan views from the indexer's loan history."""

    def __init__(
        self,
        source: EventSource,
        enricher: DomainEnricher,
        loans: LoanConfig,
        pagination: PaginationConfig,
    ) -> None:
        self._source = source
        self._enricher = enricher
        self._default_rate = loans.default_interest_rate_bps
        self._pagination = pagination

    async def derive_all(
        self,
        now: int,
        *,
        borrower: str | None = None,
        pool_ids: Sequence[str] | None = None,
        domain_token_id: str | None = None,
        loan_ids: Sequence[str] | None = None,
    ) -> list[LoanView]:
        """Fetch and derive every loan matching entity-level filters.

        Filters here are fields fixed at loan creation, so each matching
        loan's history comes back complete.
        """
        events = await self._source.fetch_loan_events(
            loan_ids=loan_ids,
            borrower=borrower,
            pool_ids=pool_ids,
            domain_token_id=domain_token_id,
        )
        grouped = group_events(events)
        loans = derive_loans(grouped, now, self._default_rate)
        logger.debug("Derived %d loans from %d events", len(loans), len(events))
        return loans

    async def list_loans(self, query: LoanQuery, now: int) -> LoanPage:
        page, limit = validate_pagination(query.page, query.limit, self._pagination)
        borrower = validate_address(query.borrower) if query.borrower else None

        loans = await self.derive_all(
            now,
            borrower=borrower,
            pool_ids=[query.pool_id] if query.pool_id else None,
            domain_token_id=query.domain_token_id,
        )
        if query.status is not None:
            loans = [loan for loan in loans if loan.status == query.status]

        summary = build_loan_summary(
            loans, borrower, query.pool_id, query.domain_token_id
        )
        ordered = sort_loans(loans, query.sort_by, query.order)
        page_items, pagination = paginate(ordered, page, limit)

        return LoanPage(
            loans=tuple(await self._enricher.enrich_loans(page_items)),
            pagination=pagination,
            summary=summary,
        )

    async def get_loan(self, loan_id: str, now: int) -> LoanDetail | None:
        events = await self._source.fetch_loan_events(loan_ids=[loan_id])
        grouped = group_events(events)
        history = grouped.get(loan_id)
        if not history:
            logger.info("Loan %s not found", loan_id)
            return None

        view = derive_loan(history, now, self._default_rate)
        if view is None:
            return None

        enriched = await self._enricher.enrich_loans([view])
        return LoanDetail(loan=enriched[0], events=tuple(history))
