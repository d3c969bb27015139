"""Unit tests for the indexer row parsers."""
from __future__ import annotations

import pytest

from domalend.indexer.parser import (
    parse_amount,
    parse_auction_event,
    parse_items,
    parse_loan_event,
    parse_optional_int,
    parse_pool_event,
)
from domalend.models import AuctionEventType, LoanEventType, PoolEventType


class TestParseAmount:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("500000000", 500_000_000),
            (" 42 ", 42),
            (7, 7),
            (None, 0),
            ("1e6", 0),
            ("", 0),
            (True, 0),
            ("123456789012345678901234567890", 123456789012345678901234567890),
        ],
    )
    def test_values(self, value, expected: int) -> None:
        assert parse_amount(value) == expected

    def test_optional_int(self) -> None:
        assert parse_optional_int("82") == 82
        assert parse_optional_int("") is None
        assert parse_optional_int(None) is None
        assert parse_optional_int("abc") is None


class TestParseLoanEvent:
    def test_full_row(self, sample_loan_row: dict) -> None:
        event = parse_loan_event(sample_loan_row)

        assert event.loan_id == "7"
        assert event.event_type == LoanEventType.CREATED_INSTANT
        assert event.amount == 500_000_000
        assert event.ai_score == 82
        assert event.interest_rate_bps == 500
        assert event.pool_id == "3"
        assert event.repayment_deadline == "1702592000"
        assert event.timestamp == "1700000000"

    def test_unknown_event_type(self, sample_loan_row: dict) -> None:
        assert parse_loan_event({**sample_loan_row, "eventType": "teleported"}) is None

    def test_missing_optional_fields(self) -> None:
        event = parse_loan_event({"loanId": "1", "eventType": "liquidated", "eventTimestamp": 5})

        assert event.amount == 0
        assert event.interest_rate_bps is None
        assert event.pool_id == ""


class TestParsePoolEvent:
    def test_created_row_uses_provider_as_creator(self) -> None:
        event = parse_pool_event({
            "poolId": "3",
            "eventType": "created",
            "providerAddress": "0xaaa",
            "liquidityAmount": "1000000",
            "minAiScore": 60,
            "interestRate": 800,
            "eventTimestamp": "1700000000",
        })

        assert event.event_type == PoolEventType.CREATED
        assert event.creator_address == "0xaaa"
        assert event.amount == 1_000_000
        assert event.min_ai_score == 60

    def test_creator_from_pool_relation(self) -> None:
        event = parse_pool_event({
            "poolId": "3",
            "eventType": "liquidity_added",
            "providerAddress": "0xbbb",
            "liquidityAmount": "5",
            "eventTimestamp": "1700000000",
            "pool": {"creatorAddress": "0xaaa"},
        })

        assert event.provider_address == "0xbbb"
        assert event.creator_address == "0xaaa"


class TestParseAuctionEvent:
    def test_joins_parent_auction(self, sample_auction_row: dict) -> None:
        event = parse_auction_event(sample_auction_row)

        assert event.auction_id == "9"
        assert event.event_type == AuctionEventType.STARTED
        assert event.loan_id == "7"
        assert event.domain_name == "crypto.com"
        assert event.starting_price == 2_000_000_000
        assert event.bidder_address == ""
        assert event.bid_amount == 0
        assert event.loan_amount == 1_000_000_000

    def test_started_without_relation_uses_current_price(self, sample_auction_row: dict) -> None:
        row = {**sample_auction_row, "auction": None}
        event = parse_auction_event(row)

        assert event.starting_price == 2_000_000_000
        assert event.loan_amount == 0

    def test_bid_row(self, sample_auction_row: dict) -> None:
        row = {
            **sample_auction_row,
            "eventType": "bid_placed",
            "bidderAddress": "0xbid",
            "bidAmount": "1500000000",
        }
        event = parse_auction_event(row)

        assert event.bidder_address == "0xbid"
        assert event.bid_amount == 1_500_000_000


class TestParseItems:
    def test_drops_rejected_rows(self, sample_loan_row: dict) -> None:
        rows = [sample_loan_row, {**sample_loan_row, "eventType": "bogus"}]
        assert len(parse_items(rows, parse_loan_event)) == 1
