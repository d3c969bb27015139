"""Ponder indexer GraphQL client with endpoint fallback and cursor pagination."""
from __future__ import annotations

import logging
import ssl
from typing import Any, Sequence

import aiohttp
import certifi

from ..config import IndexerConfig
from ..models import (
    AuctionEvent,
    AuctionEventType,
    LoanEvent,
    LoanEventType,
    PoolEvent,
    PoolEventType,
)
from . import parser, queries

logger = logging.getLogger(__name__)


class IndexerClient:
    """Read marketplace history rows from the indexer's GraphQL API."""

    def __init__(self, config: IndexerConfig) -> None:
        self.endpoints = list(config.graphql_endpoints)
        self.timeout = config.timeout
        self.page_size = config.page_size
        self.current_endpoint_index = 0

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Run a GraphQL query with fallback to alternative endpoints."""
        payload = {"query": query, "variables": variables}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            index = (self.current_endpoint_index + attempt) % len(self.endpoints)
            url = self.endpoints[index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        if response.status != 200:
                            raise RuntimeError(f"HTTP {response.status}")
                        result = await response.json()
                        if result.get("errors"):
                            raise RuntimeError(f"GraphQL Error: {result['errors']}")

                        if index != self.current_endpoint_index:
                            logger.info("Switched to indexer endpoint: %s", url)
                            self.current_endpoint_index = index

                        return result.get("data") or {}
            except Exception as e:
                last_error = e
                logger.warning("Indexer endpoint %s failed: %s", url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RuntimeError(f"All indexer endpoints failed. Last error: {last_error}")

    async def fetch_all(
        self, collection: str, query: str, where: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Follow ``pageInfo.endCursor`` until the collection is exhausted."""
        items: list[dict[str, Any]] = []
        cursor = None

        while True:
            data = await self.graphql(
                query,
                {"where": where or None, "limit": self.page_size, "after": cursor},
            )
            page = data.get(collection) or {}
            items.extend(page.get("items", []))

            page_info = page.get("pageInfo") or {}
            cursor = page_info.get("endCursor")
            if not page_info.get("hasNextPage") or not cursor:
                break

        logger.debug("Fetched %d rows from %s", len(items), collection)
        return items

    # ------------------------------------------------------------------
    # EventSource implementation
    # ------------------------------------------------------------------

    async def fetch_loan_events(
        self,
        *,
        loan_ids: Sequence[str] | None = None,
        borrower: str | None = None,
        pool_ids: Sequence[str] | None = None,
        domain_token_id: str | None = None,
        event_types: Sequence[LoanEventType] | None = None,
    ) -> list[LoanEvent]:
        where: dict[str, Any] = {}
        if loan_ids is not None:
            where["loanId_in"] = list(loan_ids)
        if borrower:
            where["borrowerAddress"] = borrower.lower()
        if pool_ids is not None:
            where["poolId_in"] = list(pool_ids)
        if domain_token_id:
            where["domainTokenId"] = domain_token_id
        if event_types is not None:
            where["eventType_in"] = [t.value for t in event_types]

        items = await self.fetch_all("loanHistorys", queries.LOAN_HISTORY, where)
        return parser.parse_items(items, parser.parse_loan_event)

    async def fetch_pool_events(
        self,
        *,
        pool_ids: Sequence[str] | None = None,
        provider: str | None = None,
        event_types: Sequence[PoolEventType] | None = None,
    ) -> list[PoolEvent]:
        where: dict[str, Any] = {}
        if pool_ids is not None:
            where["poolId_in"] = list(pool_ids)
        if provider:
            where["providerAddress"] = provider.lower()
        if event_types is not None:
            where["eventType_in"] = [t.value for t in event_types]

        items = await self.fetch_all("poolHistorys", queries.POOL_HISTORY, where)
        return parser.parse_items(items, parser.parse_pool_event)

    async def fetch_auction_events(
        self,
        *,
        auction_ids: Sequence[str] | None = None,
        event_types: Sequence[AuctionEventType] | None = None,
    ) -> list[AuctionEvent]:
        where: dict[str, Any] = {}
        if auction_ids is not None:
            where["auctionId_in"] = list(auction_ids)
        if event_types is not None:
            where["eventType_in"] = [t.value for t in event_types]

        items = await self.fetch_all("auctionHistorys", queries.AUCTION_HISTORY, where)
        return parser.parse_items(items, parser.parse_auction_event)
