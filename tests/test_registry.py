"""
Unit tests for the token registry logic.

Tests cover:
- Constant-time token comparison results
- Expiry boundaries and sweeps
- Lookup and de-duplication
- TokenRecord serialization
"""

import pytest

from padlink.modules.auth.registry import (
    EXPIRY_WINDOW_MS,
    TokenRecord,
    dedupe,
    find,
    fingerprint,
    is_expired,
    sweep,
    tokens_match,
)

NOW = 1_767_225_600_000


# =============================================================================
# tokens_match
# =============================================================================


class TestTokensMatch:
    """Tests for constant-time comparison."""

    def test_equal_strings_match(self):
        token = "0f3c2a8e-6b1d-4c5e-9a7f-2d4b6c8e0a1f"
        assert tokens_match(token, token) is True

    def test_differs_in_last_character(self):
        assert tokens_match("abcdef", "abcdeg") is False

    def test_differs_in_first_character(self):
        assert tokens_match("abcdef", "bbcdef") is False

    def test_different_lengths(self):
        assert tokens_match("abc", "abcd") is False
        assert tokens_match("abcd", "abc") is False

    def test_empty_strings(self):
        assert tokens_match("", "") is True
        assert tokens_match("", "a") is False

    def test_non_ascii(self):
        assert tokens_match("jeton-é", "jeton-é") is True
        assert tokens_match("jeton-é", "jeton-e") is False

    @pytest.mark.parametrize("other", [None, 123, b"abc", ["abc"]])
    def test_non_string_input_never_matches(self, other):
        assert tokens_match("abc", other) is False
        assert tokens_match(other, "abc") is False

    def test_unencodable_input_never_matches(self):
        # Lone surrogate cannot be encoded to UTF-8
        assert tokens_match("ab\ud800", "ab\ud800") is False


# =============================================================================
# Expiry
# =============================================================================


class TestExpiry:
    """Tests for expiry decisions and sweeps."""

    def test_just_inside_window_is_live(self):
        record = TokenRecord("t", NOW - EXPIRY_WINDOW_MS, NOW - (EXPIRY_WINDOW_MS - 1))
        assert is_expired(record, NOW) is False

    def test_exactly_window_is_expired(self):
        record = TokenRecord("t", NOW - EXPIRY_WINDOW_MS, NOW - EXPIRY_WINDOW_MS)
        assert is_expired(record, NOW) is True

    def test_past_window_is_expired(self):
        record = TokenRecord("t", NOW - EXPIRY_WINDOW_MS, NOW - (EXPIRY_WINDOW_MS + 1))
        assert is_expired(record, NOW) is True

    def test_custom_window(self):
        record = TokenRecord("t", NOW - 500, NOW - 500)
        assert is_expired(record, NOW, window_ms=1000) is False
        assert is_expired(record, NOW, window_ms=500) is True

    def test_sweep_splits_records(self):
        fresh = TokenRecord("fresh", NOW, NOW)
        stale = TokenRecord("stale", NOW - EXPIRY_WINDOW_MS - 1, NOW - EXPIRY_WINDOW_MS - 1)
        edge = TokenRecord("edge", NOW - EXPIRY_WINDOW_MS, NOW - EXPIRY_WINDOW_MS + 1)

        kept, removed = sweep([fresh, stale, edge], NOW)

        assert kept == [fresh, edge]
        assert removed == [stale]

    def test_sweep_empty(self):
        assert sweep([], NOW) == ([], [])


# =============================================================================
# Lookup and de-duplication
# =============================================================================


class TestFind:
    """Tests for record lookup."""

    def test_finds_matching_record(self):
        records = [TokenRecord("a", 1, 1), TokenRecord("b", 2, 2)]
        assert find(records, "b") is records[1]

    def test_missing_token(self):
        assert find([TokenRecord("a", 1, 1)], "z") is None

    def test_malformed_token(self):
        assert find([TokenRecord("a", 1, 1)], None) is None

    def test_first_match_wins(self):
        records = [TokenRecord("a", 1, 1), TokenRecord("a", 2, 2)]
        assert find(records, "a") is records[0]


class TestDedupe:
    """Tests for collapsing duplicate tokens."""

    def test_keeps_latest_use_and_earliest_creation(self):
        records = [
            TokenRecord("a", 100, 200),
            TokenRecord("b", 150, 150),
            TokenRecord("a", 50, 300),
        ]

        result = dedupe(records)

        assert [r.token for r in result] == ["a", "b"]
        assert result[0].created_at == 50
        assert result[0].last_used_at == 300

    def test_does_not_mutate_input(self):
        original = TokenRecord("a", 100, 200)
        dedupe([original, TokenRecord("a", 10, 900)])
        assert original == TokenRecord("a", 100, 200)


# =============================================================================
# TokenRecord
# =============================================================================


class TestTokenRecord:
    """Tests for the TokenRecord dataclass."""

    def test_to_dict(self):
        record = TokenRecord("abc", 1000, 2000)
        assert record.to_dict() == {"token": "abc", "createdAt": 1000, "lastUsedAt": 2000}

    def test_from_dict(self):
        record = TokenRecord.from_dict({"token": "abc", "createdAt": 1000, "lastUsedAt": 2000})
        assert record == TokenRecord("abc", 1000, 2000)

    def test_from_dict_legacy_last_used(self):
        record = TokenRecord.from_dict({"token": "abc", "createdAt": 1000, "lastUsed": 3000})
        assert record.last_used_at == 3000

    def test_from_dict_float_timestamps(self):
        record = TokenRecord.from_dict({"token": "abc", "createdAt": 1000.0, "lastUsedAt": 2000.9})
        assert record.created_at == 1000
        assert record.last_used_at == 2000

    @pytest.mark.parametrize(
        "data",
        [
            {"createdAt": 1, "lastUsedAt": 1},
            {"token": "", "createdAt": 1, "lastUsedAt": 1},
            {"token": 42, "createdAt": 1, "lastUsedAt": 1},
            {"token": "abc", "lastUsedAt": 1},
            {"token": "abc", "createdAt": "yesterday", "lastUsedAt": 1},
            {"token": "abc", "createdAt": True, "lastUsedAt": 1},
            "abc",
            None,
        ],
    )
    def test_from_dict_rejects_malformed(self, data):
        with pytest.raises(ValueError):
            TokenRecord.from_dict(data)


def test_fingerprint_is_short_and_stable():
    assert fingerprint("abc") == fingerprint("abc")
    assert fingerprint("abc") != fingerprint("abd")
    assert len(fingerprint("abc")) == 8
    assert fingerprint(None) == "<invalid>"
