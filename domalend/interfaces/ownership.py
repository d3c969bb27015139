"""Ownership protocol — on-chain token owner lookup."""
from typing import Protocol


class OwnershipVerifier(Protocol):
    """Check that a domain token is held by an expected address."""

    async def owner_of(self, token_id: str) -> str | None: ...

    async def is_held_by(self, token_id: str, holder: str) -> bool | None: ...
