"""
Storage Module - Black Box Interface

Purpose: Keep durable snapshots
Interface: create_snapshot_storage(), read(), write()
Hidden: Atomic file replacement, Redis specifics

Can be replaced with any storage backend without affecting the token store.
"""

import redis

from padlink.config.provider import TokenStoreConfig

from .snapshot import DEFAULT_REDIS_KEY, FileSnapshotStorage, RedisSnapshotStorage, SnapshotStorage


def create_snapshot_storage(config: TokenStoreConfig) -> SnapshotStorage:
    """Build the snapshot backend named by the configuration."""
    if config.backend == "redis":
        client = redis.Redis.from_url(config.redis_url)
        return RedisSnapshotStorage(client, key=config.redis_key)
    return FileSnapshotStorage(config.path)


__all__ = [
    "DEFAULT_REDIS_KEY",
    "FileSnapshotStorage",
    "RedisSnapshotStorage",
    "SnapshotStorage",
    "create_snapshot_storage",
]
