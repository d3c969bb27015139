"""On-chain ownership checks — ERC-721 ``ownerOf`` over JSON-RPC with fallback."""
from __future__ import annotations

import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import ChainConfig

logger = logging.getLogger(__name__)

OWNER_OF_SELECTOR = "0x6352211e"


def encode_owner_of(token_id: str) -> str:
    """ABI-encode ``ownerOf(uint256)`` calldata.

    Examples:
        "1"   → "0x6352211e" + "0" * 63 + "1"
        "0xff" → "0x6352211e" + "0" * 62 + "ff"
    """
    text = token_id.strip().lower()
    value = int(text, 16) if text.startswith("0x") else int(text)
    if value < 0:
        raise ValueError(f"Token id must not be negative: {token_id}")
    return f"{OWNER_OF_SELECTOR}{value:064x}"


def decode_address(result: str) -> str | None:
    """Take the trailing 20 bytes of an ABI-encoded address word."""
    if not result or not result.startswith("0x") or len(result) < 42:
        return None
    return "0x" + result[-40:].lower()


class OwnershipClient:
    """Read current token owners from an EVM JSON-RPC node."""

    def __init__(self, config: ChainConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.token_contract = config.ownership_token
        self.current_rpc_index = 0

    async def rpc_call(self, method: str, params: list[Any]) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
                        if "error" in result:
                            raise RuntimeError(f"RPC Error: {result['error']}")

                        if rpc_index != self.current_rpc_index:
                            logger.info("Switched to RPC endpoint: %s", rpc_url)
                            self.current_rpc_index = rpc_index

                        return result.get("result")
            except Exception as e:
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

        raise RuntimeError(f"All RPC endpoints failed. Last error: {last_error}")

    async def owner_of(self, token_id: str) -> str | None:
        """Current owner of ``token_id``; None when it cannot be determined."""
        try:
            data = encode_owner_of(token_id)
        except ValueError as e:
            logger.warning("Cannot encode token id %r: %s", token_id, e)
            return None

        try:
            result = await self.rpc_call(
                "eth_call", [{"to": self.token_contract, "data": data}, "latest"]
            )
        except Exception as e:
            logger.error("Error fetching owner of token %s: %s", token_id, e)
            return None

        return decode_address(result)

    async def is_held_by(self, token_id: str, holder: str) -> bool | None:
        owner = await self.owner_of(token_id)
        if owner is None:
            return None
        held = owner == holder.lower()
        logger.debug("Token %s owner %s, held by %s: %s", token_id, owner, holder, held)
        return held
