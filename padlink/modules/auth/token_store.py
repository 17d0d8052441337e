"""
Token store for padlink.

Issues, validates, refreshes and expires the bearer tokens that paired
clients present when they reconnect. The in-memory registry is
authoritative; the durable snapshot follows it on a best-effort basis.
"""

import logging
import threading
import time
import uuid
from typing import Callable, List, Optional, Tuple

from padlink.modules.storage import SnapshotStorage

from . import registry
from .persistence import load_registry, save_registry
from .registry import EXPIRY_WINDOW_MS, TokenRecord

logger = logging.getLogger("padlink.auth.token_store")


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenStore:
    """
    Registry of active bearer tokens.

    Every operation runs under one re-entrant lock, so concurrent callers
    never see a half-applied sweep or create duplicate records. `touch` only
    marks the registry dirty; dirty state reaches storage once the flush
    interval has passed, on the next write, on `flush()` or on `close()`.
    """

    # Default flush interval: 1 minute between touch-driven writes
    DEFAULT_FLUSH_INTERVAL_MS = 60 * 1000

    def __init__(
        self,
        storage: SnapshotStorage,
        expiry_window_ms: int = EXPIRY_WINDOW_MS,
        flush_interval_ms: int = DEFAULT_FLUSH_INTERVAL_MS,
        clock: Optional[Callable[[], int]] = None,
        background_flush: bool = False,
    ):
        """
        Initialize token store.

        Args:
            storage: Snapshot backend holding the durable registry
            expiry_window_ms: Records unused this long are removed
            flush_interval_ms: Maximum staleness of the snapshot after touch()
            clock: Returns the current time in epoch milliseconds
            background_flush: Start a thread that flushes dirty state on open()
        """
        if expiry_window_ms <= 0:
            raise ValueError("expiry_window_ms must be positive")
        if flush_interval_ms <= 0:
            raise ValueError("flush_interval_ms must be positive")

        self.storage = storage
        self.expiry_window_ms = expiry_window_ms
        self.flush_interval_ms = flush_interval_ms
        self.background_flush = background_flush
        self._clock = clock or _now_ms

        self._records: List[TokenRecord] = []
        self._lock = threading.RLock()
        self._opened = False
        self._dirty = False
        self._last_saved_at: Optional[int] = None

        self._flusher_thread: Optional[threading.Thread] = None
        self._stop_flusher = threading.Event()

    # Lifecycle

    def open(self) -> "TokenStore":
        """Load the persisted registry. Calling it again is a no-op."""
        with self._lock:
            if self._opened:
                return self
            if self._dirty:
                # A failed write on close left unsaved state; memory stays authoritative
                logger.warning("Reopening with unsaved tokens, keeping in-memory registry")
            else:
                self._records = load_registry(self.storage)
                self._last_saved_at = self._clock()
            self._opened = True

        if self.background_flush:
            self._start_flusher()
        return self

    def close(self) -> None:
        """Stop the flusher and write out any pending refreshes."""
        self._stop_flusher.set()
        if self._flusher_thread:
            self._flusher_thread.join(timeout=5)
            self._flusher_thread = None

        with self._lock:
            if self._opened and self._dirty:
                self._persist()
            self._opened = False

    def __enter__(self) -> "TokenStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _ensure_open(self) -> None:
        if not self._opened:
            self.open()

    def _start_flusher(self) -> None:
        if self._flusher_thread and self._flusher_thread.is_alive():
            return

        self._stop_flusher.clear()
        self._flusher_thread = threading.Thread(
            target=self._flush_loop, daemon=True, name="token-flusher"
        )
        self._flusher_thread.start()
        logger.debug("Token flusher started")

    def _flush_loop(self) -> None:
        interval = self.flush_interval_ms / 1000
        while not self._stop_flusher.wait(interval):
            try:
                self.flush_if_due()
            except Exception as e:
                logger.error(f"Error in token flusher: {e}")

    # Token operations

    @staticmethod
    def generate_token() -> str:
        """Generate a new random token (UUID4, 122 bits of entropy)."""
        return str(uuid.uuid4())

    def issue(self, token: str) -> None:
        """
        Store a token after a successful connection, or refresh it.

        Known tokens get a new `last_used_at`; unknown ones are added. The
        registry is written to storage before returning.
        """
        if not registry.is_valid_token(token):
            logger.warning("Ignoring issue() for malformed token")
            return

        with self._lock:
            self._ensure_open()
            now = self._clock()
            self._sweep(now, persist=False)

            existing = registry.find(self._records, token)
            if existing is not None:
                existing.last_used_at = now
                logger.debug(f"Refreshed token {registry.fingerprint(token)}")
            else:
                self._records.append(TokenRecord(token=token, created_at=now, last_used_at=now))
                logger.info(f"Stored new token {registry.fingerprint(token)}")

            self._persist(now)

    def is_known(self, token: str) -> bool:
        """Check whether a token belongs to a live record. Does not refresh it."""
        if not registry.is_valid_token(token):
            return False

        with self._lock:
            self._ensure_open()
            self._sweep(self._clock())
            return registry.find(self._records, token) is not None

    def refresh_if_known(self, token: str) -> bool:
        """
        Refresh a live token and report whether it was live.

        Sweep, lookup and refresh happen under one lock hold, so a token that
        expires or is revoked concurrently is never re-created. Unknown tokens
        are not inserted.
        """
        if not registry.is_valid_token(token):
            return False

        with self._lock:
            self._ensure_open()
            now = self._clock()
            self._sweep(now, persist=False)

            record = registry.find(self._records, token)
            if record is None:
                if self._dirty:
                    self._persist(now)
                return False

            record.last_used_at = now
            self._persist(now)
            return True

    def touch(self, token: str) -> None:
        """
        Refresh a token's `last_used_at` without sweeping.

        Meant for every inbound message, so the write is deferred to the
        flush interval. Unknown tokens are ignored.
        """
        if not registry.is_valid_token(token):
            return

        with self._lock:
            self._ensure_open()
            now = self._clock()
            record = registry.find(self._records, token)
            # An expired record is left for the next sweep rather than revived
            if record is None or registry.is_expired(record, now, self.expiry_window_ms):
                return
            record.last_used_at = now
            self._dirty = True
            self.flush_if_due(now)

    def has_any(self) -> bool:
        """Check whether any live token exists (first-run detection)."""
        with self._lock:
            self._ensure_open()
            self._sweep(self._clock())
            return len(self._records) > 0

    def revoke(self, token: str) -> bool:
        """
        Remove a token immediately.

        Returns:
            True if a record was removed
        """
        if not registry.is_valid_token(token):
            return False

        with self._lock:
            self._ensure_open()
            record = registry.find(self._records, token)
            if record is None:
                return False
            self._records = [r for r in self._records if r is not record]
            logger.info(f"Revoked token {registry.fingerprint(token)}")
            self._persist()
            return True

    def records(self) -> Tuple[TokenRecord, ...]:
        """Copies of the current records, without sweeping."""
        with self._lock:
            self._ensure_open()
            return tuple(
                TokenRecord(token=r.token, created_at=r.created_at, last_used_at=r.last_used_at)
                for r in self._records
            )

    # Persistence

    def flush(self) -> bool:
        """
        Write pending refreshes now.

        Returns:
            True if the snapshot is up to date afterwards
        """
        with self._lock:
            if not self._opened or not self._dirty:
                return True
            return self._persist()

    def flush_if_due(self, now: Optional[int] = None) -> bool:
        """
        Write pending refreshes if the flush interval has passed.

        Returns:
            True if a write happened and succeeded
        """
        with self._lock:
            if not self._opened or not self._dirty:
                return False
            now = self._clock() if now is None else now
            if self._last_saved_at is not None and now - self._last_saved_at < self.flush_interval_ms:
                return False
            return self._persist(now)

    @property
    def dirty(self) -> bool:
        """True when in-memory state is ahead of the snapshot."""
        return self._dirty

    def _sweep(self, now: int, persist: bool = True) -> List[TokenRecord]:
        kept, removed = registry.sweep(self._records, now, self.expiry_window_ms)
        if removed:
            self._records = kept
            logger.info(f"Expired {len(removed)} tokens")
            if persist:
                self._persist(now)
            else:
                self._dirty = True
        return removed

    def _persist(self, now: Optional[int] = None) -> bool:
        if save_registry(self.storage, self._records):
            self._dirty = False
            self._last_saved_at = self._clock() if now is None else now
            return True

        # Stay dirty so the next mutation retries the write
        self._dirty = True
        return False

    def describe(self) -> dict:
        """Summary for status output."""
        with self._lock:
            self._ensure_open()
            return {
                "storage": self.storage.describe(),
                "tokens": len(self._records),
                "expiry_window_ms": self.expiry_window_ms,
                "dirty": self._dirty,
            }
