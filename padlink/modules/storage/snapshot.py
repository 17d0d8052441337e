"""
Snapshot backends.

A snapshot is one text document that is always rewritten as a whole. The
backends only move that text; they know nothing about its contents.
"""

import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

DEFAULT_REDIS_KEY = "padlink:tokens"


class SnapshotStorage(Protocol):
    """Protocol for snapshot backends."""

    def read(self) -> Optional[str]:
        """Return the stored snapshot text, or None if nothing is stored."""
        ...

    def write(self, payload: str) -> None:
        """Replace the stored snapshot with `payload`."""
        ...

    def describe(self) -> str:
        """Human-readable location, for logs."""
        ...


class FileSnapshotStorage:
    """Snapshot kept in a file, replaced atomically on every write."""

    def __init__(self, path: str):
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write beside the target so the rename stays on one filesystem
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def describe(self) -> str:
        return f"file:{self.path}"


class RedisSnapshotStorage:
    """Snapshot kept under a single Redis key."""

    def __init__(self, redis_client, key: str = DEFAULT_REDIS_KEY):
        """
        Initialize Redis snapshot storage.

        Args:
            redis_client: Synchronous redis-py client
            key: Key holding the document
        """
        self.redis = redis_client
        self.key = key

    def read(self) -> Optional[str]:
        data = self.redis.get(self.key)
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return data

    def write(self, payload: str) -> None:
        self.redis.set(self.key, payload)

    def describe(self) -> str:
        return f"redis:{self.key}"
