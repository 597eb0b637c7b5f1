from __future__ import annotations

from fnmatch import fnmatchcase
import threading
import time

from luminous.contracts.storage.async_kv import AsyncKV


class InMemoryKV(AsyncKV):
    """
    Simple in-memory KV.

    - Process-local, not shared across processes.
    - Thread-safe via RLock (sidecar + main thread can share safely).
    - TTL managed best-effort on access.
    - scan() pages over keys in insertion order; the cursor is the offset of the
      next page, "0" once exhausted.
    """

    def __init__(self):
        self._data: dict[str, str] = {}
        self._expires_at: dict[str, float | None] = {}
        self._lock = threading.RLock()

    def _alive(self, key: str, now: float) -> bool:
        if key not in self._data:
            return False
        exp = self._expires_at.get(key)
        if exp is not None and exp < now:
            # expired
            self._data.pop(key, None)
            self._expires_at.pop(key, None)
            return False
        return True

    async def get(self, key: str, default: str | None = None) -> str | None:
        with self._lock:
            if not self._alive(key, time.time()):
                return default
            return self._data[key]

    async def set(self, key: str, value: str, *, ttl_s: int | None = None) -> None:
        with self._lock:
            self._data[key] = value
            self._expires_at[key] = time.time() + ttl_s if ttl_s is not None else None

    async def delete(self, *keys: str) -> int:
        removed = 0
        with self._lock:
            for key in keys:
                if self._data.pop(key, None) is not None:
                    removed += 1
                self._expires_at.pop(key, None)
        return removed

    async def mget(self, keys: list[str]) -> list[str | None]:
        # reuse get() so TTL is respected
        return [await self.get(k) for k in keys]

    async def scan(
        self, cursor: str = "0", *, match: str | None = None, count: int | None = None
    ) -> tuple[str, list[str]]:
        try:
            offset = int(cursor)
        except ValueError:
            offset = 0
        page_size = count or 10
        now = time.time()
        with self._lock:
            keys = [k for k in list(self._data) if self._alive(k, now)]
        page = keys[offset : offset + page_size]
        next_offset = offset + page_size
        next_cursor = str(next_offset) if next_offset < len(keys) else "0"
        if match is not None:
            page = [k for k in page if fnmatchcase(k, match)]
        return next_cursor, page

    async def aclose(self) -> None:
        return None
