from .memory import MemoryDedupService, MemoryLibrary
from .shopify import ShopifyProxy
from .sync import SnapshotSyncCoordinator

__all__ = ["MemoryDedupService", "MemoryLibrary", "ShopifyProxy", "SnapshotSyncCoordinator"]
