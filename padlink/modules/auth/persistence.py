"""
Token registry persistence.

Encodes the registry as a JSON array and moves it through a snapshot
backend. Loading fails open to an empty registry; saving reports failure
instead of raising.
"""

import json
import logging
from typing import Iterable, List

from padlink.modules.storage import SnapshotStorage

from .registry import TokenRecord, dedupe

logger = logging.getLogger("padlink.auth.persistence")


def encode_snapshot(records: Iterable[TokenRecord]) -> str:
    """Serialize records to the snapshot JSON document."""
    return json.dumps([record.to_dict() for record in records], indent=2)


def decode_snapshot(payload: str) -> List[TokenRecord]:
    """
    Parse a snapshot document.

    Malformed entries are skipped and duplicate tokens collapsed.

    Raises:
        ValueError: If the document is not a JSON array
    """
    data = json.loads(payload)
    if not isinstance(data, list):
        raise ValueError(f"Snapshot must be a JSON array, got {type(data).__name__}")

    records: List[TokenRecord] = []
    skipped = 0
    for entry in data:
        try:
            records.append(TokenRecord.from_dict(entry))
        except ValueError:
            skipped += 1

    if skipped:
        logger.warning(f"Skipped {skipped} malformed token entries in snapshot")

    return dedupe(records)


def load_registry(storage: SnapshotStorage) -> List[TokenRecord]:
    """
    Load the persisted registry.

    Never raises: a missing, unreadable or corrupt snapshot yields an empty
    registry.
    """
    try:
        payload = storage.read()
    except Exception as e:
        logger.warning(f"Failed to read token snapshot from {storage.describe()}: {e}")
        return []

    if payload is None or not payload.strip():
        logger.info(f"No token snapshot at {storage.describe()}, starting empty")
        return []

    try:
        records = decode_snapshot(payload)
    except ValueError as e:
        # json.JSONDecodeError is a ValueError
        logger.warning(f"Corrupt token snapshot at {storage.describe()}, starting empty: {e}")
        return []

    logger.info(f"Loaded {len(records)} tokens from {storage.describe()}")
    return records


def save_registry(storage: SnapshotStorage, records: Iterable[TokenRecord]) -> bool:
    """
    Overwrite the persisted registry.

    Returns:
        True if written, False if the write failed (logged, not raised)
    """
    try:
        storage.write(encode_snapshot(records))
        return True
    except Exception as e:
        logger.error(f"Failed to persist tokens to {storage.describe()}: {e}")
        return False
