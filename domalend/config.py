"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IndexerConfig:
    graphql_endpoints: tuple[str, ...] = ("http://localhost:42069/graphql",)
    timeout: int = 30
    page_size: int = 1000


@dataclass(frozen=True)
class ScoringConfig:
    enabled: bool = True
    base_url: str = "http://localhost:3001/indexer"
    timeout: int = 10


@dataclass(frozen=True)
class MetadataConfig:
    enabled: bool = True
    explorer_url: str = "https://explorer-testnet.doma.xyz"
    token_contract: str = "0x424bDf2E8a6F52Bd2c1C81D9437b0DC0309DF90f"
    timeout: int = 10


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ("https://rpc-testnet.doma.xyz",)
    rpc_timeout: int = 30
    ownership_token: str = "0x424bDf2E8a6F52Bd2c1C81D9437b0DC0309DF90f"
    dutch_auction_address: str = ""
    verify_auctions: bool = False


@dataclass(frozen=True)
class LoanConfig:
    default_interest_rate_bps: int = 500


@dataclass(frozen=True)
class AuctionConfig:
    daily_decay: Decimal = Decimal("0.99")
    max_duration_days: int = 30
    reserve_ratio: Decimal = Decimal("0.5")


@dataclass(frozen=True)
class EnrichmentConfig:
    max_concurrency: int = 10


@dataclass(frozen=True)
class PaginationConfig:
    default_limit: int = 20
    max_limit: int = 100


@dataclass(frozen=True)
class AppConfig:
    indexer: IndexerConfig = field(default_factory=IndexerConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    loans: LoanConfig = field(default_factory=LoanConfig)
    auctions: AuctionConfig = field(default_factory=AuctionConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


def _as_bool(value: Any, default: bool) -> bool:
    """YAML booleans pass through; interpolated strings like "false" are parsed."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _as_decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name} must be a number, got {value!r}") from e


def _as_endpoints(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    return tuple(v for v in value if v)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_indexer(raw: dict[str, Any]) -> IndexerConfig:
    return IndexerConfig(
        graphql_endpoints=_as_endpoints(
            raw.get("graphql_endpoints", IndexerConfig.graphql_endpoints)
        ),
        timeout=int(raw.get("timeout", 30)),
        page_size=int(raw.get("page_size", 1000)),
    )


def _build_scoring(raw: dict[str, Any]) -> ScoringConfig:
    return ScoringConfig(
        enabled=_as_bool(raw.get("enabled"), True),
        base_url=raw.get("base_url", ScoringConfig.base_url).rstrip("/"),
        timeout=int(raw.get("timeout", 10)),
    )


def _build_metadata(raw: dict[str, Any]) -> MetadataConfig:
    return MetadataConfig(
        enabled=_as_bool(raw.get("enabled"), True),
        explorer_url=raw.get("explorer_url", MetadataConfig.explorer_url).rstrip("/"),
        token_contract=raw.get("token_contract", MetadataConfig.token_contract),
        timeout=int(raw.get("timeout", 10)),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=_as_endpoints(raw.get("rpc_endpoints", ChainConfig.rpc_endpoints)),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        ownership_token=raw.get("ownership_token", ChainConfig.ownership_token),
        dutch_auction_address=raw.get("dutch_auction_address", ""),
        verify_auctions=_as_bool(raw.get("verify_auctions"), False),
    )


def _build_loans(raw: dict[str, Any]) -> LoanConfig:
    return LoanConfig(
        default_interest_rate_bps=int(raw.get("default_interest_rate_bps", 500)),
    )


def _build_auctions(raw: dict[str, Any]) -> AuctionConfig:
    return AuctionConfig(
        daily_decay=_as_decimal(raw.get("daily_decay", "0.99"), "auctions.daily_decay"),
        max_duration_days=int(raw.get("max_duration_days", 30)),
        reserve_ratio=_as_decimal(
            raw.get("reserve_ratio", "0.5"), "auctions.reserve_ratio"
        ),
    )


def _build_enrichment(raw: dict[str, Any]) -> EnrichmentConfig:
    return EnrichmentConfig(max_concurrency=int(raw.get("max_concurrency", 10)))


def _build_pagination(raw: dict[str, Any]) -> PaginationConfig:
    return PaginationConfig(
        default_limit=int(raw.get("default_limit", 20)),
        max_limit=int(raw.get("max_limit", 100)),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        indexer=_build_indexer(raw.get("indexer", {})),
        scoring=_build_scoring(raw.get("scoring", {})),
        metadata=_build_metadata(raw.get("metadata", {})),
        chain=_build_chain(raw.get("chain", {})),
        loans=_build_loans(raw.get("loans", {})),
        auctions=_build_auctions(raw.get("auctions", {})),
        enrichment=_build_enrichment(raw.get("enrichment", {})),
        pagination=_build_pagination(raw.get("pagination", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.indexer.graphql_endpoints:
        raise ValueError("At least one indexer GraphQL endpoint must be configured")
    if cfg.indexer.page_size <= 0:
        raise ValueError("indexer.page_size must be positive")

    if not Decimal(0) < cfg.auctions.daily_decay <= Decimal(1):
        raise ValueError("auctions.daily_decay must be in (0, 1]")
    if cfg.auctions.max_duration_days <= 0:
        raise ValueError("auctions.max_duration_days must be positive")
    if not Decimal(0) <= cfg.auctions.reserve_ratio <= Decimal(1):
        raise ValueError("auctions.reserve_ratio must be in [0, 1]")

    if cfg.loans.default_interest_rate_bps < 0:
        raise ValueError("loans.default_interest_rate_bps must not be negative")

    if cfg.enrichment.max_concurrency <= 0:
        raise ValueError("enrichment.max_concurrency must be positive")

    if cfg.pagination.default_limit <= 0 or cfg.pagination.max_limit <= 0:
        raise ValueError("pagination limits must be positive")
    if cfg.pagination.default_limit > cfg.pagination.max_limit:
        raise ValueError("pagination.default_limit exceeds pagination.max_limit")

    if cfg.chain.verify_auctions:
        if not cfg.chain.dutch_auction_address:
            raise ValueError(
                "chain.verify_auctions requires chain.dutch_auction_address"
            )
        if not cfg.chain.rpc_endpoints:
            raise ValueError("chain.verify_auctions requires chain.rpc_endpoints")
