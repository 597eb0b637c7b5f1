from __future__ import annotations

from typing import Protocol


class AsyncKV(Protocol):
    """
    Minimal async key-value contract consumed by the sync coordinator and the
    memory services. Values are text; callers own their encoding.

    scan() follows Redis SCAN semantics: start from cursor "0" and keep calling
    with the returned cursor until it comes back as "0". A page may be empty,
    and a key may be returned more than once across pages.
    """

    async def get(self, key: str, default: str | None = None) -> str | None: ...
    async def set(self, key: str, value: str, *, ttl_s: int | None = None) -> None: ...
    async def mget(self, keys: list[str]) -> list[str | None]: ...
    async def delete(self, *keys: str) -> int: ...
    async def scan(
        self, cursor: str = "0", *, match: str | None = None, count: int | None = None
    ) -> tuple[str, list[str]]: ...
    async def aclose(self) -> None: ...
