"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path

import pytest

from domalend.config import (
    AppConfig,
    AuctionConfig,
    ChainConfig,
    EnrichmentConfig,
    IndexerConfig,
    LoanConfig,
    MetadataConfig,
    PaginationConfig,
    ScoringConfig,
)
from helpers import AUCTION_CONTRACT

# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        indexer=IndexerConfig(
            graphql_endpoints=("https://idx1.example.com/graphql",),
            timeout=5,
            page_size=2,
        ),
        scoring=ScoringConfig(base_url="https://scores.example.com", timeout=5),
        metadata=MetadataConfig(explorer_url="https://explorer.example.com", timeout=5),
        chain=ChainConfig(
            rpc_endpoints=("https://rpc1.example.com",),
            rpc_timeout=5,
            dutch_auction_address=AUCTION_CONTRACT,
        ),
        loans=LoanConfig(default_interest_rate_bps=500),
        auctions=AuctionConfig(
            daily_decay=Decimal("0.99"),
            max_duration_days=30,
            reserve_ratio=Decimal("0.5"),
        ),
        enrichment=EnrichmentConfig(max_concurrency=3),
        pagination=PaginationConfig(default_limit=20, max_limit=100),
    )


SAMPLE_YAML = textwrap.dedent("""\
    indexer:
      graphql_endpoints: ["https://idx.example.com/graphql"]
      timeout: 15
      page_size: 500
    scoring:
      enabled: true
      base_url: "https://scores.example.com/"
      timeout: 5
    metadata:
      enabled: false
      explorer_url: "https://explorer.example.com"
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      dutch_auction_address: "${TEST_AUCTION_ADDRESS}"
      verify_auctions: true
    loans:
      default_interest_rate_bps: 650
    auctions:
      daily_decay: "0.98"
      max_duration_days: 14
      reserve_ratio: "0.4"
    enrichment:
      max_concurrency: 4
    pagination:
      default_limit: 10
      max_limit: 50
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample indexer rows
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_loan_row() -> dict:
    return {
        "id": "0xabc-1",
        "loanId": "7",
        "eventType": "created_instant",
        "borrowerAddress": "0xAbC0000000000000000000000000000000000001",
        "domainTokenId": "1001",
        "domainName": "crypto.com",
        "amount": "500000000",
        "aiScore": 82,
        "interestRate": 500,
        "poolId": "3",
        "repaymentDeadline": "1702592000",
        "eventTimestamp": "1700000000",
    }


@pytest.fixture()
def sample_auction_row() -> dict:
    return {
        "id": "0xdef-4",
        "auctionId": "9",
        "eventType": "started",
        "bidderAddress": None,
        "bidAmount": None,
        "currentPrice": "2000000000",
        "finalPrice": None,
        "eventTimestamp": "1700000000",
        "auction": {
            "loanId": "7",
            "domainTokenId": "1001",
            "domainName": "crypto.com",
            "borrowerAddress": "0xabc0000000000000000000000000000000000001",
            "startingPrice": "2000000000",
            "loanAmount": "1000000000",
        },
    }
