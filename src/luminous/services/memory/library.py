from __future__ import annotations

from dataclasses import dataclass
import logging
import re

from luminous.contracts.errors import KVNotConfigured, UnsupportedMediaType
from luminous.contracts.storage.async_kv import AsyncKV

from .dedup import MemoryDedupService
from .parsers import pick_extractor

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_name(name: str) -> str:
    """Reduce a client-supplied filename to [A-Za-z0-9._-]."""
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE.sub("_", base).lstrip("._")
    return cleaned or "untitled"


@dataclass
class StoredMemory:
    key: str
    name: str
    media_type: str | None
    size: int  # uploaded bytes
    chars: int  # stored text length


class MemoryLibrary:
    """
    Upload boundary for memory files.

    Uploads are stored as UTF-8 text under <prefix><sanitized name>: text types are
    decoded, PDFs have their text extracted. Re-uploading a name overwrites it;
    byte-identical files under different names are left to the dedup pass.
    """

    def __init__(
        self,
        kv: AsyncKV | None,
        *,
        dedup: MemoryDedupService,
        prefix: str = "luminous:memory:file:",
        max_bytes: int = 10 * 1024 * 1024,
        logger: logging.Logger | None = None,
    ):
        self._kv = kv
        self._dedup = dedup
        self.prefix = prefix
        self.max_bytes = max_bytes
        self._log = logger or logging.getLogger("luminous.memory.library")

    @property
    def configured(self) -> bool:
        return self._kv is not None

    def key_for(self, name: str) -> str:
        return f"{self.prefix}{sanitize_name(name)}"

    async def store(self, name: str, data: bytes, media_type: str | None) -> StoredMemory:
        if self._kv is None:
            raise KVNotConfigured("memory store is not configured")
        if not data:
            raise ValueError("uploaded file is empty")
        if len(data) > self.max_bytes:
            raise ValueError(f"uploaded file exceeds {self.max_bytes} bytes")

        extract = pick_extractor(name, media_type)
        if extract is None:
            raise UnsupportedMediaType(media_type, name)
        text, meta = extract(data)

        key = self.key_for(name)
        await self._kv.set(key, text)
        self._log.info("Stored memory file %s (%d bytes, %s)", key, len(data), meta or media_type)
        return StoredMemory(
            key=key, name=sanitize_name(name), media_type=media_type, size=len(data), chars=len(text)
        )

    async def list_keys(self) -> list[str]:
        # same paged enumeration the dedup pass decides on
        return await self._dedup.list_keys()
