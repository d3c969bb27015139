"""Unit tests for the event grouper."""
from __future__ import annotations

import logging

import pytest

from domalend.derivation.grouping import group_events
from domalend.models import LoanEventType, PoolEventType
from helpers import DAY, NOW, loan_created, loan_event, pool_event


class TestGroupEvents:
    def test_groups_by_entity_and_sorts(self) -> None:
        events = [
            loan_event(LoanEventType.REPAID_FULL, loan_id="1", timestamp=NOW),
            loan_created(loan_id="2", timestamp=NOW - 5_000),
            loan_created(loan_id="1", timestamp=NOW - 10_000),
        ]
        grouped = group_events(events)

        assert set(grouped) == {"1", "2"}
        assert [e.event_type for e in grouped["1"]] == [
            LoanEventType.CREATED_INSTANT,
            LoanEventType.REPAID_FULL,
        ]

    def test_normalizes_mixed_units(self) -> None:
        events = [
            loan_event(LoanEventType.REPAID_PARTIAL, timestamp=str(NOW // 1000 + 60)),
            loan_created(timestamp=NOW),
        ]
        grouped = group_events(events)

        assert [e.timestamp for e in grouped["1"]] == [NOW, NOW + 60_000]

    def test_normalizes_repayment_deadline(self) -> None:
        grouped = group_events([loan_created(deadline=(NOW + DAY) // 1000)])

        assert grouped["1"][0].repayment_deadline == NOW + DAY

    def test_leaves_missing_deadline_alone(self) -> None:
        grouped = group_events([loan_event(LoanEventType.REPAID_FULL)])

        assert grouped["1"][0].repayment_deadline is None

    def test_ties_keep_arrival_order(self) -> None:
        events = [
            pool_event(PoolEventType.CREATED, timestamp=NOW, amount=1),
            pool_event(PoolEventType.LIQUIDITY_ADDED, timestamp=NOW, amount=2),
            pool_event(PoolEventType.LIQUIDITY_REMOVED, timestamp=NOW, amount=3),
        ]
        grouped = group_events(events)

        assert [e.amount for e in grouped["p1"]] == [1, 2, 3]

    def test_drops_malformed_timestamp(self, caplog: pytest.LogCaptureFixture) -> None:
        events = [loan_created(), loan_event(LoanEventType.REPAID_FULL, timestamp="garbage")]

        with caplog.at_level(logging.WARNING):
            grouped = group_events(events)

        assert len(grouped["1"]) == 1
        assert "malformed timestamp" in caplog.text

    def test_drops_missing_entity_id(self) -> None:
        grouped = group_events([loan_created(loan_id="")])
        assert grouped == {}

    def test_input_order_does_not_matter(self) -> None:
        events = [
            loan_created(loan_id="1"),
            loan_event(LoanEventType.REPAID_PARTIAL, timestamp=NOW - 2_000),
            loan_event(LoanEventType.REPAID_FULL, timestamp=NOW - 1_000),
        ]
        assert group_events(events) == group_events(list(reversed(events)))
