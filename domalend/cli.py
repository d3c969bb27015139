"""Command-line interface for the DomaLend marketplace views."""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from enum import Enum
from typing import Any

from .config import load_config
from .derivation.timestamps import to_iso
from .logging_setup import configure_logging
from .models import AuctionStatus, LoanStatus, PoolStatus
from .services import AuctionQuery, InvalidInputError, LoanQuery, Marketplace, PoolQuery
from .services.query import AUCTION_SORT_KEYS, LOAN_SORT_KEYS, ORDERS, POOL_SORT_KEYS

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = frozenset(
    {
        "timestamp",
        "created_at",
        "closed_at",
        "repayment_deadline",
        "started_at",
        "ends_at",
        "ended_at",
        "user_contributed_at",
    }
)


def to_jsonable(value: Any) -> Any:
    """Convert views to JSON-ready data; epoch-ms fields gain an ``*_iso`` twin."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        out: dict[str, Any] = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            out[f.name] = to_jsonable(item)
            if f.name in _TIMESTAMP_FIELDS and isinstance(item, int):
                out[f"{f.name}_iso"] = to_iso(item)
        return out
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="domalend",
        description="DomaLend marketplace views derived from indexed events",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    loans = sub.add_parser("loans", help="List loans")
    loans.add_argument("--status", choices=[s.value for s in LoanStatus])
    loans.add_argument("--borrower", help="Borrower address")
    loans.add_argument("--pool", help="Pool id")
    loans.add_argument("--domain", help="Domain token id")
    loans.add_argument("--sort-by", default="created_at", choices=LOAN_SORT_KEYS)
    _add_paging(loans)

    loan = sub.add_parser("loan", help="Loan detail with event history")
    loan.add_argument("loan_id")

    pools = sub.add_parser("pools", help="List liquidity pools")
    pools.add_argument("--min-ai-score", type=int, help="Minimum required AI score")
    pools.add_argument("--status", choices=[s.value for s in PoolStatus])
    pools.add_argument("--sort-by", default="created_at", choices=POOL_SORT_KEYS)
    _add_paging(pools)

    pool = sub.add_parser("pool", help="Pool detail")
    pool.add_argument("pool_id")
    pool.add_argument(
        "--include-loans", action="store_true", help="Include the pool's loans"
    )

    auctions = sub.add_parser("auctions", help="List Dutch auctions")
    auctions.add_argument("--status", choices=[s.value for s in AuctionStatus])
    auctions.add_argument("--sort-by", default="started_at", choices=AUCTION_SORT_KEYS)
    _add_paging(auctions)

    auction = sub.add_parser("auction", help="Auction detail with event history")
    auction.add_argument("auction_id")

    for name, help_text in (
        ("dashboard", "User dashboard"),
        ("user-pools", "Pools a user provides liquidity to"),
        ("user-auctions", "Auctions of a user's seized collateral"),
    ):
        user = sub.add_parser(name, help=help_text)
        user.add_argument("address")

    return parser


def _add_paging(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--order", default="desc", choices=ORDERS)
    parser.add_argument("--page", type=int, default=None)
    parser.add_argument("--limit", type=int, default=None)


async def _dispatch(market: Marketplace, args: argparse.Namespace) -> Any:
    """Run the selected command; None means the requested entity was not found."""
    if args.command == "loans":
        return await market.list_loans(
            LoanQuery(
                status=LoanStatus(args.status) if args.status else None,
                borrower=args.borrower,
                pool_id=args.pool,
                domain_token_id=args.domain,
                sort_by=args.sort_by,
                order=args.order,
                page=args.page,
                limit=args.limit,
            )
        )
    if args.command == "loan":
        return await market.get_loan(args.loan_id)
    if args.command == "pools":
        return await market.list_pools(
            PoolQuery(
                min_ai_score=args.min_ai_score,
                status=PoolStatus(args.status) if args.status else None,
                sort_by=args.sort_by,
                order=args.order,
                page=args.page,
                limit=args.limit,
            )
        )
    if args.command == "pool":
        return await market.get_pool(args.pool_id, include_loans=args.include_loans)
    if args.command == "auctions":
        return await market.list_auctions(
            AuctionQuery(
                status=AuctionStatus(args.status) if args.status else None,
                sort_by=args.sort_by,
                order=args.order,
                page=args.page,
                limit=args.limit,
            )
        )
    if args.command == "auction":
        return await market.get_auction(args.auction_id)
    if args.command == "dashboard":
        return await market.user_dashboard(args.address)
    if args.command == "user-pools":
        return await market.user_pools(args.address)
    if args.command == "user-auctions":
        return await market.user_auctions(args.address)
    raise ValueError(f"Unknown command: {args.command}")


async def _run(args: argparse.Namespace) -> int:
    """Execute the selected command and print its JSON result."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    market = Marketplace(config)

    try:
        result = await _dispatch(market, args)
    except InvalidInputError as e:
        logger.error("Invalid input: %s", e)
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return 2

    if result is None:
        print(json.dumps({"error": "not found"}), file=sys.stderr)
        return 1

    print(json.dumps(to_jsonable(result), indent=2))
    return 0


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args)))
