from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from luminous.contracts.errors import KVResponseError, KVTransportError
from luminous.contracts.storage.async_kv import AsyncKV

logger = logging.getLogger("luminous.storage.kv.upstash")


class UpstashKV(AsyncKV):
    """
    Redis-compatible REST client (Upstash protocol).

    Each command is POSTed to the base URL as a JSON array, e.g. ["SET", key, value],
    authenticated with a bearer token. The store answers {"result": ...} on success
    and {"error": "..."} on failure.

    Failures are mapped onto the persistence error taxonomy:
      - connection errors, timeouts, non-2xx and {"error"} replies -> KVTransportError
      - bodies that are not JSON objects with a "result"           -> KVResponseError
    """

    def __init__(
        self,
        url: str,
        token: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url.rstrip("/")
        self._token = token
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._bound_loop: asyncio.AbstractEventLoop | None = None

    # ------------ client management -----------------

    def _ensure_client(self) -> httpx.AsyncClient:
        """
        Ensure we have an httpx.AsyncClient bound to the *current* event loop.

        A client created on another loop (e.g. by a previous TestClient) is dropped,
        not closed: httpx/anyio expects it to be closed on the loop it was created on.
        """
        if not self._owns_client:
            return self._client  # type: ignore[return-value]

        loop = asyncio.get_running_loop()
        if self._client is None or self._bound_loop is not loop:
            self._client = httpx.AsyncClient(timeout=self.timeout)
            self._bound_loop = loop
        return self._client

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            try:
                await self._client.aclose()
            finally:
                self._client = None
                self._bound_loop = None

    # ------------ transport -----------------

    async def command(self, *args: Any) -> Any:
        """Run one command and return its "result" field."""
        client = self._ensure_client()
        name = str(args[0]).upper() if args else "?"
        try:
            resp = await client.post(
                self.url,
                json=[str(a) for a in args],
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as exc:
            raise KVTransportError(f"{name} failed: {exc!r}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            if resp.is_success:
                raise KVResponseError(f"{name}: response is not JSON") from exc
            body = None

        if not resp.is_success:
            detail = body.get("error") if isinstance(body, dict) else resp.text[:200]
            raise KVTransportError(
                f"{name} failed with HTTP {resp.status_code}: {detail}",
                status_code=resp.status_code,
            )
        if not isinstance(body, dict):
            raise KVResponseError(f"{name}: unexpected response shape {type(body).__name__}")
        if "error" in body:
            raise KVTransportError(f"{name} rejected: {body['error']}", status_code=resp.status_code)
        if "result" not in body:
            raise KVResponseError(f"{name}: response has no 'result' field")
        return body["result"]

    # ------------ AsyncKV -----------------

    async def get(self, key: str, default: str | None = None) -> str | None:
        result = await self.command("GET", key)
        if result is None:
            return default
        if not isinstance(result, str):
            raise KVResponseError(f"GET {key}: expected string, got {type(result).__name__}")
        return result

    async def set(self, key: str, value: str, *, ttl_s: int | None = None) -> None:
        if ttl_s is not None:
            await self.command("SET", key, value, "EX", int(ttl_s))
        else:
            await self.command("SET", key, value)

    async def mget(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        result = await self.command("MGET", *keys)
        if not isinstance(result, list) or len(result) != len(keys):
            raise KVResponseError(f"MGET: expected a list of {len(keys)} values")
        return result

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        result = await self.command("DEL", *keys)
        if not isinstance(result, int):
            raise KVResponseError("DEL: expected an integer count")
        return result

    async def scan(
        self, cursor: str = "0", *, match: str | None = None, count: int | None = None
    ) -> tuple[str, list[str]]:
        args: list[Any] = ["SCAN", cursor]
        if match is not None:
            args += ["MATCH", match]
        if count is not None:
            args += ["COUNT", count]
        result = await self.command(*args)
        if (
            not isinstance(result, list)
            or len(result) != 2
            or not isinstance(result[1], list)
        ):
            raise KVResponseError("SCAN: expected [cursor, keys]")
        next_cursor, keys = result
        return str(next_cursor), [str(k) for k in keys]
