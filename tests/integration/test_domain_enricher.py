"""Integration tests for the domain enricher's bounded fan-out."""
from __future__ import annotations

import pytest

from domalend.models import DomainRef
from domalend.services import DomainEnricher
from helpers import FakeMetadata, FakeScores, SlowMetadata


class TestEnrich:
    @pytest.mark.asyncio
    async def test_concurrency_bounded(self) -> None:
        metadata = SlowMetadata()
        enricher = DomainEnricher(metadata=metadata, max_concurrency=3)

        refs = await enricher.enrich(DomainRef(token_id=str(i)) for i in range(20))

        assert metadata.calls == 20
        assert metadata.peak == 3
        assert refs["7"].name == "domain7.com"

    @pytest.mark.asyncio
    async def test_single_slot(self) -> None:
        metadata = SlowMetadata(delay=0.001)
        enricher = DomainEnricher(metadata=metadata, max_concurrency=1)

        await enricher.enrich(DomainRef(token_id=str(i)) for i in range(5))

        assert metadata.peak == 1

    @pytest.mark.asyncio
    async def test_duplicate_tokens_looked_up_once(self) -> None:
        metadata = FakeMetadata()
        enricher = DomainEnricher(metadata=metadata, scores=FakeScores())

        await enricher.enrich([DomainRef(token_id="1"), DomainRef(token_id="1"),
                               DomainRef(token_id="2")])

        assert sorted(metadata.requested) == ["1", "2"]

    @pytest.mark.asyncio
    async def test_no_collaborators_returns_refs_unchanged(self) -> None:
        ref = DomainRef(token_id="1", name="a.com")
        assert await DomainEnricher().enrich([ref]) == {"1": ref}
