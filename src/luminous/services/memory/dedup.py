from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
from datetime import datetime, timezone
import hashlib
import logging
from uuid import uuid4

from pydantic import BaseModel, ValidationError

from luminous.contracts.errors import KVNotConfigured
from luminous.contracts.storage.async_kv import AsyncKV
from luminous.services.logger.base import LogContext, with_context


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def content_digest(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class DedupRun(BaseModel):
    """Last completed autonomous pass, as polled by the dashboard."""

    timestamp: datetime
    message: str


@dataclass
class DedupResult:
    scanned: int
    removed: int
    deleted_keys: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            "Autonomous action: Organization complete. "
            f"Scanned {self.scanned} files and removed {self.removed} duplicate(s)."
        )


class MemoryDedupService:
    """
    Keeps the memory-file namespace free of byte-identical duplicates.

    One pass = list_keys -> run_pass -> publish_status:
      - keys are enumerated with cursor-paged SCAN until the cursor returns to "0";
      - contents are fetched with one MGET and fingerprinted with SHA-256;
      - within each digest group the first key in scan order is kept, the rest are
        removed with one DEL;
      - the summary overwrites the single DedupRun record.

    start()/stop() drive the pass on a fixed interval (plus once at startup). A
    failing tick is logged and skipped; the previous DedupRun stays in place.
    """

    def __init__(
        self,
        kv: AsyncKV | None,
        *,
        prefix: str = "luminous:memory:file:",
        status_key: str = "luminous:memory:autonomous_status",
        scan_count: int = 100,
        interval_s: float = 30 * 60,
        run_on_start: bool = True,
        logger: logging.Logger | None = None,
        context_logger: Callable[[logging.Logger, LogContext], logging.Logger] | None = None,
    ):
        self._kv = kv
        self.prefix = prefix
        self.status_key = status_key
        self.scan_count = scan_count
        self.interval_s = interval_s
        self.run_on_start = run_on_start
        self._log = logger or logging.getLogger("luminous.memory.dedup")
        self._with_context = context_logger or with_context
        # held for the whole list -> run_pass -> publish sequence
        self._pass_lock = asyncio.Lock()

        self._task: asyncio.Task | None = None
        self._stop: asyncio.Event | None = None

    @property
    def configured(self) -> bool:
        return self._kv is not None

    def _require_kv(self) -> AsyncKV:
        if self._kv is None:
            raise KVNotConfigured("memory store is not configured")
        return self._kv

    # -------- pass steps --------

    async def list_keys(self) -> list[str]:
        """All keys under the namespace, in scan order, each key once."""
        kv = self._require_kv()
        seen: dict[str, None] = {}
        cursor = "0"
        while True:
            cursor, page = await kv.scan(cursor, match=f"{self.prefix}*", count=self.scan_count)
            for key in page:
                seen.setdefault(key, None)
            if cursor == "0":
                break
        return list(seen)

    async def run_pass(self, keys: list[str]) -> DedupResult:
        kv = self._require_kv()
        if not keys:
            return DedupResult(scanned=0, removed=0)

        contents = await kv.mget(keys)

        keep_by_digest: dict[str, str] = {}
        to_delete: list[str] = []
        for key, value in zip(keys, contents):
            if value is None:
                # removed between SCAN and MGET
                continue
            digest = content_digest(value)
            if digest in keep_by_digest:
                to_delete.append(key)
            else:
                keep_by_digest[digest] = key

        if to_delete:
            await kv.delete(*to_delete)
            self._log.info("Removed %d duplicate memory file(s): %s", len(to_delete), to_delete)

        return DedupResult(scanned=len(keys), removed=len(to_delete), deleted_keys=to_delete)

    async def publish_status(self, message: str) -> DedupRun:
        kv = self._require_kv()
        record = DedupRun(timestamp=_utcnow(), message=message)
        await kv.set(self.status_key, record.model_dump_json())
        return record

    async def get_status(self) -> DedupRun | None:
        if self._kv is None:
            return None
        raw = await self._kv.get(self.status_key)
        if raw is None:
            return None
        try:
            return DedupRun.model_validate_json(raw)
        except ValidationError as exc:
            self._log.warning("Ignoring malformed dedup status at %s: %s", self.status_key, exc)
            return None

    # -------- whole pass --------

    async def _pass(self) -> tuple[DedupResult, DedupRun]:
        async with self._pass_lock:
            keys = await self.list_keys()
            result = await self.run_pass(keys)
            run = await self.publish_status(result.message)
            return result, run

    async def organize(self) -> DedupResult:
        """Run one pass now and publish its status. Raises on failure."""
        result, _ = await self._pass()
        return result

    async def run_once(self) -> DedupRun | None:
        if self._kv is None:
            self._log.info("Skipping memory organization: store not configured.")
            return None
        _, run = await self._pass()
        return run

    async def _tick(self) -> None:
        pass_id = uuid4().hex[:8]
        log = self._with_context(self._log, LogContext(component="dedup", pass_id=pass_id))
        try:
            run = await self.run_once()
        except Exception as exc:  # noqa: BLE001
            log.error("Autonomous memory organization failed: %s", exc)
            return
        if run is not None:
            log.info(run.message)

    # -------- autonomous driver --------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._loop(self._stop))

    async def stop(self) -> None:
        if self._task is None:
            return
        if self._stop is not None:
            self._stop.set()
        task, self._task = self._task, None
        with suppress(asyncio.CancelledError):
            await task

    async def _loop(self, stop: asyncio.Event) -> None:
        if self.run_on_start:
            await self._tick()
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_s)
            except asyncio.TimeoutError:
                await self._tick()
