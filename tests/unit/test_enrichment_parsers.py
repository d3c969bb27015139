"""Unit tests for the score, metadata and ownership payload helpers."""
from __future__ import annotations

import pytest

from domalend.enrichment.metadata import parse_token_instance
from domalend.enrichment.ownership import OWNER_OF_SELECTOR, decode_address, encode_owner_of
from domalend.enrichment.score_cache import parse_score


class TestParseScore:
    def test_cached_score(self) -> None:
        score = parse_score(
            {"totalScore": 82, "confidence": 90, "isFromCache": True, "cacheAge": 12}
        )

        assert score.total_score == 82
        assert score.confidence == 90
        assert score.is_from_cache is True
        assert score.cache_age_minutes == 12

    def test_error_payload_is_not_a_score(self) -> None:
        assert parse_score({"totalScore": 50, "error": "AI scoring failed"}) is None

    def test_clamped(self) -> None:
        assert parse_score({"totalScore": 140}).total_score == 100
        assert parse_score({"totalScore": -3}).total_score == 0

    @pytest.mark.parametrize("payload", [{}, {"totalScore": None}, {"totalScore": "high"}])
    def test_unusable(self, payload: dict) -> None:
        assert parse_score(payload) is None


class TestParseTokenInstance:
    def test_attributes(self) -> None:
        meta = parse_token_instance(
            {
                "id": "1001",
                "owner": {"hash": "0xABCdef0000000000000000000000000000000001"},
                "metadata": {
                    "name": "crypto.com",
                    "attributes": [
                        {"trait_type": "TLD", "value": ".com"},
                        {"trait_type": "Character Length", "value": 6},
                    ],
                },
            },
            "1001",
        )

        assert meta.name == "crypto.com"
        assert meta.tld == ".com"
        assert meta.character_length == 6
        assert meta.owner == "0xabcdef0000000000000000000000000000000001"

    def test_falls_back_to_name(self) -> None:
        meta = parse_token_instance({"metadata": {"name": "hello.ai"}}, "7")

        assert meta.token_id == "7"
        assert meta.tld == ".ai"
        assert meta.character_length == 5
        assert meta.owner == ""

    def test_empty_payload(self) -> None:
        meta = parse_token_instance({}, "7")
        assert (meta.name, meta.tld, meta.character_length) == ("", "", 0)


class TestOwnerOfCodec:
    def test_encode_decimal(self) -> None:
        assert encode_owner_of("1") == OWNER_OF_SELECTOR + "0" * 63 + "1"

    def test_encode_hex(self) -> None:
        assert encode_owner_of("0xff") == OWNER_OF_SELECTOR + "0" * 62 + "ff"

    def test_encode_large_token_id(self) -> None:
        token_id = str(2**255 + 3)
        encoded = encode_owner_of(token_id)

        assert len(encoded) == len(OWNER_OF_SELECTOR) + 64
        assert int(encoded[len(OWNER_OF_SELECTOR):], 16) == 2**255 + 3

    def test_encode_rejects_negative(self) -> None:
        with pytest.raises(ValueError):
            encode_owner_of("-1")

    def test_decode_address(self) -> None:
        word = "0x" + "0" * 24 + "F4EC2E259036A841D7EBD8A34FDC97311BE063D1"
        assert decode_address(word) == "0xf4ec2e259036a841d7ebd8a34fdc97311be063d1"

    @pytest.mark.parametrize("result", [None, "", "0x", "0x1234"])
    def test_decode_invalid(self, result) -> None:
        assert decode_address(result) is None
