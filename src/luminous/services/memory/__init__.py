from .dedup import DedupResult, DedupRun, MemoryDedupService, content_digest
from .library import MemoryLibrary, StoredMemory, sanitize_name

__all__ = [
    "DedupResult",
    "DedupRun",
    "MemoryDedupService",
    "MemoryLibrary",
    "StoredMemory",
    "content_digest",
    "sanitize_name",
]
