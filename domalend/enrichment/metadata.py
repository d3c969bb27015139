"""Domain NFT metadata client — Blockscout token instance lookups."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import MetadataConfig
from ..models import DomainMetadata

logger = logging.getLogger(__name__)


def parse_token_instance(data: dict[str, Any], token_id: str) -> DomainMetadata:
    """Parse a Blockscout ``/tokens/{contract}/instances/{id}`` payload.

    TLD and character length come from the metadata attributes; the name
    falls back to an empty string so callers can render ``Token #<id>``.
    """
    metadata = data.get("metadata") or {}
    name = metadata.get("name") or ""
    tld = ""
    character_length = 0

    for attr in metadata.get("attributes") or []:
        trait = attr.get("trait_type")
        if trait == "TLD":
            tld = str(attr.get("value", ""))
        elif trait == "Character Length":
            try:
                character_length = int(attr.get("value"))
            except (TypeError, ValueError):
                character_length = 0

    if not tld and "." in name:
        tld = "." + name.rsplit(".", 1)[1]
    if not character_length and name:
        character_length = len(name.split(".", 1)[0])

    owner = data.get("owner") or {}
    if isinstance(owner, dict):
        owner = owner.get("hash") or ""

    return DomainMetadata(
        token_id=str(data.get("id") or token_id),
        name=name,
        tld=tld,
        character_length=character_length,
        owner=str(owner).lower(),
    )


class DomaMetadataClient:
    """Fetch domain NFT metadata from the Doma explorer."""

    def __init__(self, config: MetadataConfig) -> None:
        self.explorer_url = config.explorer_url
        self.token_contract = config.token_contract
        self.timeout = config.timeout

    async def get_metadata(self, token_id: str) -> DomainMetadata | None:
        if not token_id:
            return None

        url = (
            f"{self.explorer_url}/api/v2/tokens/{self.token_contract}"
            f"/instances/{token_id}"
        )
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url,
                    headers={"accept": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        logger.warning(
                            "Metadata lookup for token %s failed: HTTP %s",
                            token_id, response.status,
                        )
                        return None
                    data = await response.json()
        except Exception as e:
            logger.warning("Metadata lookup for token %s failed: %s", token_id, e)
            return None

        return parse_token_instance(data, token_id)
