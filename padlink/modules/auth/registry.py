"""
Token registry logic.

Pure decision functions over token records: matching, expiry, sweeping and
lookup. Nothing in here performs I/O or reads the clock; callers pass `now`
in epoch milliseconds.
"""

import secrets
from dataclasses import dataclass
from hashlib import blake2b
from typing import Any, Dict, Iterable, List, Optional, Tuple

# 10 days
EXPIRY_WINDOW_MS = 10 * 24 * 60 * 60 * 1000


@dataclass
class TokenRecord:
    """One issued bearer token."""

    token: str
    created_at: int
    last_used_at: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the snapshot wire format."""
        return {
            "token": self.token,
            "createdAt": self.created_at,
            "lastUsedAt": self.last_used_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenRecord":
        """
        Create from a snapshot entry.

        Accepts the legacy `lastUsed` key written by older servers.

        Raises:
            ValueError: If the entry is not a well-formed record
        """
        if not isinstance(data, dict):
            raise ValueError(f"Token entry must be an object, got {type(data).__name__}")

        token = data.get("token")
        if not is_valid_token(token):
            raise ValueError("Token entry has no usable token value")

        created_at = data.get("createdAt")
        last_used_at = data.get("lastUsedAt", data.get("lastUsed"))
        for name, value in (("createdAt", created_at), ("lastUsedAt", last_used_at)):
            # bool is an int subclass but never a timestamp
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"Token entry field {name} must be a number")

        return cls(token=token, created_at=int(created_at), last_used_at=int(last_used_at))


def is_valid_token(token: Any) -> bool:
    """Check that a value can be a token at all (non-empty string)."""
    return isinstance(token, str) and len(token) > 0


def tokens_match(a: Any, b: Any) -> bool:
    """
    Compare two tokens in constant time.

    Length is not treated as secret, so unequal lengths return False straight
    away. Equal-length inputs are compared with `secrets.compare_digest`,
    whose running time does not depend on where the first difference is.
    Any failure is a non-match.
    """
    try:
        if not isinstance(a, str) or not isinstance(b, str):
            return False
        if len(a) != len(b):
            return False
        return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
    except (TypeError, ValueError):
        # UnicodeEncodeError (lone surrogates) is a ValueError
        return False


def is_expired(record: TokenRecord, now: int, window_ms: int = EXPIRY_WINDOW_MS) -> bool:
    """Check whether a record has gone unused for the whole expiry window."""
    return now - record.last_used_at >= window_ms


def sweep(
    records: Iterable[TokenRecord], now: int, window_ms: int = EXPIRY_WINDOW_MS
) -> Tuple[List[TokenRecord], List[TokenRecord]]:
    """
    Split records into survivors and expired ones.

    Returns:
        Tuple of (kept, removed), both in original order
    """
    kept: List[TokenRecord] = []
    removed: List[TokenRecord] = []
    for record in records:
        if is_expired(record, now, window_ms):
            removed.append(record)
        else:
            kept.append(record)
    return kept, removed


def find(records: Iterable[TokenRecord], token: Any) -> Optional[TokenRecord]:
    """
    Find the record holding `token`.

    Every record is compared, even after a match, so the time taken does not
    reveal where in the registry the token sits.
    """
    match: Optional[TokenRecord] = None
    for record in records:
        if tokens_match(record.token, token) and match is None:
            match = record
    return match


def dedupe(records: Iterable[TokenRecord]) -> List[TokenRecord]:
    """
    Collapse records sharing a token value.

    The most recently used copy wins; its `created_at` is the earliest seen.
    First-seen order is preserved.
    """
    by_token: Dict[str, TokenRecord] = {}
    for record in records:
        existing = by_token.get(record.token)
        if existing is None:
            by_token[record.token] = TokenRecord(
                token=record.token,
                created_at=record.created_at,
                last_used_at=record.last_used_at,
            )
            continue
        existing.created_at = min(existing.created_at, record.created_at)
        existing.last_used_at = max(existing.last_used_at, record.last_used_at)
    return list(by_token.values())


def fingerprint(token: Any) -> str:
    """Short non-reversible identifier for a token, safe to log."""
    if not isinstance(token, str):
        return "<invalid>"
    digest = blake2b(token.encode("utf-8", errors="replace"), digest_size=4)
    return digest.hexdigest()
