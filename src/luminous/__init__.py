__version__ = "0.1.0"

# Server
from .server.app_factory import create_app  # FastAPI app with services installed

# Persistence core
from .services.sync.coordinator import SnapshotSyncCoordinator
from .services.memory.dedup import MemoryDedupService, DedupRun
from .services.memory.library import MemoryLibrary

# Storage
from .storage.kv.inmem_kv import InMemoryKV
from .storage.kv.upstash_kv import UpstashKV

__all__ = [
    # Server
    "create_app",
    # Persistence core
    "SnapshotSyncCoordinator", "MemoryDedupService", "DedupRun", "MemoryLibrary",
    # Storage
    "InMemoryKV", "UpstashKV",
]
