"""Tests for solgate.challenge: record construction and canonical text."""

import random
import re
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from solgate.challenge import (
    CHAIN_ID,
    STATEMENT,
    VERSION,
    ChallengeRecord,
    canonical_text,
    create_challenge,
    format_issued_at,
    generate_nonce,
)
from solgate.errors import EnvironmentUnavailableError

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"

EXPECTED_FIELDS = (
    "Version: 1\n"
    "Chain ID: mainnet\n"
    "Nonce: 0a0b0c0d\n"
    "Issued At: 2024-01-02T03:04:05Z"
)


def fixed_rng(n: int) -> bytes:
    return bytes([0x0A, 0x0B, 0x0C, 0x0D])[:n]


def make_record(**overrides) -> ChallengeRecord:
    fields = {
        "domain": "example.com",
        "address": ADDRESS,
        "statement": STATEMENT,
        "version": VERSION,
        "nonce": "0a0b0c0d",
        "chain_id": CHAIN_ID,
        "issued_at": "2024-01-02T03:04:05Z",
        "resources": ("example.com",),
    }
    fields.update(overrides)
    return ChallengeRecord(**fields)


class TestCanonicalText:
    def test_exact_layout_with_resources(self):
        expected = (
            "example.com wants you to sign in with your Solana account:\n"
            f"{ADDRESS}\n"
            "\n"
            f"{STATEMENT}\n"
            "\n"
            f"{EXPECTED_FIELDS}\n"
            "Resources:\n"
            "- example.com"
        )
        assert canonical_text(make_record()) == expected

    def test_empty_resources_omits_section(self):
        expected = (
            "example.com wants you to sign in with your Solana account:\n"
            f"{ADDRESS}\n"
            "\n"
            f"{STATEMENT}\n"
            "\n"
            f"{EXPECTED_FIELDS}"
        )
        text = canonical_text(make_record(resources=()))
        assert text == expected
        assert "Resources:" not in text

    def test_multiple_resources_keep_order(self):
        text = canonical_text(make_record(resources=("b.example", "a.example", "c.example")))
        assert text.endswith("Resources:\n- b.example\n- a.example\n- c.example")

    def test_no_trailing_newline(self):
        assert not canonical_text(make_record()).endswith("\n")

    def test_deterministic(self):
        record = make_record()
        assert canonical_text(record) == canonical_text(record)
        assert canonical_text(record) == canonical_text(make_record())

    def test_message_method_matches(self):
        record = make_record()
        assert record.message() == canonical_text(record)

    def test_non_ascii_fields_kept_literal(self):
        text = canonical_text(make_record(domain="café.example"))
        assert text.startswith("café.example wants you")


class TestGenerateNonce:
    def test_hex_of_raw_bytes_in_order(self):
        assert generate_nonce(fixed_rng) == "0a0b0c0d"

    def test_little_endian_bytes_not_decimal(self):
        # 0x01 0x00 0x00 0x00 is u32 1 little-endian; the nonce is its bytes.
        assert generate_nonce(lambda n: b"\x01\x00\x00\x00") == "01000000"

    def test_shape_default_source(self):
        for _ in range(200):
            assert re.fullmatch(r"[0-9a-f]{8}", generate_nonce())

    def test_seeded_source_is_reproducible(self):
        first = generate_nonce(random.Random(42).randbytes)
        second = generate_nonce(random.Random(42).randbytes)
        assert first == second
        assert re.fullmatch(r"[0-9a-f]{8}", first)

    def test_failing_source(self):
        def broken(n):
            raise OSError("no entropy")

        with pytest.raises(EnvironmentUnavailableError, match="no entropy"):
            generate_nonce(broken)

    def test_short_output(self):
        with pytest.raises(EnvironmentUnavailableError):
            generate_nonce(lambda n: b"\x00\x01")


class TestFormatIssuedAt:
    def test_utc_uses_z_suffix(self):
        assert format_issued_at(FIXED_NOW) == "2024-01-02T03:04:05Z"

    def test_other_offsets_converted_to_utc(self):
        moment = datetime(2024, 1, 2, 5, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert format_issued_at(moment) == "2024-01-02T03:04:05Z"

    def test_subseconds_kept(self):
        moment = FIXED_NOW.replace(microsecond=123000)
        assert format_issued_at(moment) == "2024-01-02T03:04:05.123000Z"

    def test_naive_rejected(self):
        with pytest.raises(EnvironmentUnavailableError, match="naive"):
            format_issued_at(datetime(2024, 1, 2, 3, 4, 5))


class TestCreateChallenge:
    def test_fields(self):
        record = create_challenge("example.com", ADDRESS, rng=fixed_rng, clock=lambda: FIXED_NOW)
        assert record == make_record()

    def test_constants(self):
        record = create_challenge("example.com", ADDRESS)
        assert record.statement == STATEMENT
        assert record.version == "1"
        assert record.chain_id == "mainnet"

    def test_resources_default_to_domain(self):
        record = create_challenge("app.example", ADDRESS)
        assert record.resources == ("app.example",)

    def test_inputs_not_validated(self):
        record = create_challenge("", "definitely not base58")
        assert record.address == "definitely not base58"
        assert record.domain == ""

    def test_default_clock_is_utc_now(self):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        record = create_challenge("example.com", ADDRESS)
        issued = datetime.fromisoformat(record.issued_at.replace("Z", "+00:00"))
        assert issued >= before
        assert record.issued_at.endswith("Z")

    def test_nonce_differs_between_challenges(self):
        nonces = {create_challenge("example.com", ADDRESS).nonce for _ in range(50)}
        assert len(nonces) > 1

    def test_failing_clock(self):
        def broken():
            raise OSError("clock gone")

        with pytest.raises(EnvironmentUnavailableError, match="clock gone"):
            create_challenge("example.com", ADDRESS, clock=broken)

    def test_clock_value_out_of_utc_range(self):
        moment = datetime.max.replace(tzinfo=timezone(timedelta(hours=-1)))
        with pytest.raises(EnvironmentUnavailableError, match="out of range"):
            create_challenge("example.com", ADDRESS, clock=lambda: moment)

    def test_clock_returning_non_datetime(self):
        with pytest.raises(EnvironmentUnavailableError):
            create_challenge("example.com", ADDRESS, clock=lambda: 0)


class TestChallengeRecord:
    def test_immutable(self):
        record = make_record()
        with pytest.raises(ValidationError):
            record.nonce = "ffffffff"

    def test_structural_equality(self):
        assert make_record() == make_record()
        assert make_record() != make_record(nonce="ffffffff")

    def test_hashable(self):
        assert len({make_record(), make_record()}) == 1

    def test_json_roundtrip(self):
        record = make_record(resources=("a.example", "b.example"))
        assert ChallengeRecord.from_json(record.to_json()) == record

    def test_json_uses_field_names(self):
        payload = make_record().to_json()
        assert '"chain_id":"mainnet"' in payload
        assert '"issued_at":"2024-01-02T03:04:05Z"' in payload
        assert '"resources":["example.com"]' in payload

    def test_json_rejects_unknown_keys(self):
        payload = make_record().to_json()[:-1] + ',"extra":"x"}'
        with pytest.raises(ValidationError):
            ChallengeRecord.from_json(payload)

    def test_json_rejects_missing_fields(self):
        with pytest.raises(ValidationError):
            ChallengeRecord.from_json('{"domain":"example.com"}')
