from .coordinator import (
    LoadResult,
    LoadStatus,
    SnapshotSyncCoordinator,
    SyncState,
    SyncStatus,
)
from .snapshot import StateSnapshot, backfill, decode_snapshot, default_snapshot, encode_snapshot

__all__ = [
    "LoadResult",
    "LoadStatus",
    "SnapshotSyncCoordinator",
    "StateSnapshot",
    "SyncState",
    "SyncStatus",
    "backfill",
    "decode_snapshot",
    "default_snapshot",
    "encode_snapshot",
]
