from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
import logging

from luminous.contracts.errors import KVResponseError
from luminous.contracts.storage.async_kv import AsyncKV

from .snapshot import StateSnapshot, backfill, decode_snapshot, default_snapshot, encode_snapshot

SAVE_ERROR = "Connection error: Could not save state. Caching locally."
LOAD_ERROR = "Failed to connect to persistent memory. Using local fallback."
MALFORMED_ERROR = "Stored state is unreadable. Using local fallback."


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


class SyncState(str, Enum):
    idle = "idle"
    writing = "writing"


class LoadStatus(str, Enum):
    not_configured = "not_configured"
    loaded = "loaded"
    initialized = "initialized"  # record was absent; default written
    fallback = "fallback"  # fetch failed or payload unreadable; default used


@dataclass
class LoadResult:
    snapshot: StateSnapshot
    status: LoadStatus
    error: str | None = None


@dataclass
class SyncStatus:
    state: SyncState
    configured: bool
    pending: bool
    debouncing: bool
    error: str | None
    last_saved_at: datetime | None
    writes: int


class SnapshotSyncCoordinator:
    """
    Keeps the remote state record converging on the latest snapshot.

    - request_save() is the mutation entry point: it arms a trailing-edge debounce
      and returns immediately.
    - save() is the single-flight write path: at most one SET for the state key is
      in flight; snapshots arriving meanwhile overwrite one pending slot, which is
      drained as soon as the write completes (success or failure).
    - A failed write is not retried in a loop. The snapshot stays in the pending
      slot (unless a newer one already replaced it) and a soft error is exposed
      through status() until the next successful write.

    Runs on a single event loop; the in-flight flag needs no lock there.
    """

    def __init__(
        self,
        kv: AsyncKV | None,
        *,
        state_key: str = "luminous:state",
        debounce_s: float = 1.0,
        write_timeout_s: float = 15.0,
        default_factory: Callable[[], StateSnapshot] = default_snapshot,
        logger: logging.Logger | None = None,
    ):
        self._kv = kv
        self._state_key = state_key
        self._debounce_s = debounce_s
        self._write_timeout_s = write_timeout_s
        self._default_factory = default_factory
        self._log = logger or logging.getLogger("luminous.sync")

        self._state = SyncState.idle
        self._pending: StateSnapshot | None = None
        self._debounced: StateSnapshot | None = None
        self._timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()

        self._current: StateSnapshot | None = None
        self._last_load: LoadResult | None = None
        self._error: str | None = None
        self._last_saved_at: datetime | None = None
        self._writes = 0
        self._warned_unconfigured = False

    # -------- read side --------

    @property
    def configured(self) -> bool:
        return self._kv is not None

    @property
    def current(self) -> StateSnapshot:
        if self._current is None:
            self._current = self._default_factory()
        return self._current

    @property
    def last_load(self) -> LoadResult | None:
        return self._last_load

    def status(self) -> SyncStatus:
        return SyncStatus(
            state=self._state,
            configured=self.configured,
            pending=self._pending is not None,
            debouncing=self._timer is not None,
            error=self._error,
            last_saved_at=self._last_saved_at,
            writes=self._writes,
        )

    # -------- load --------

    async def load(self) -> LoadResult:
        """
        Fetch the remote record once at startup. Never raises.

        Absent record -> the default snapshot is returned and written right away.
        Unreachable store or unreadable payload -> the default snapshot with a soft error.
        """
        if self._kv is None:
            self._log.warning("Persistence not configured. Using default state.")
            result = LoadResult(self._default_factory(), LoadStatus.not_configured)
        else:
            result = await self._fetch()

        self._current = result.snapshot
        self._last_load = result
        if result.error:
            self._error = result.error
        return result

    async def _fetch(self) -> LoadResult:
        try:
            raw = await asyncio.wait_for(
                self._kv.get(self._state_key), timeout=self._write_timeout_s
            )
            if raw is None:
                self._log.info("No state found at %s. Initializing with default state.", self._state_key)
                snapshot = self._default_factory()
                self._spawn(snapshot)
                return LoadResult(snapshot, LoadStatus.initialized)
            return LoadResult(backfill(decode_snapshot(raw)), LoadStatus.loaded)
        except KVResponseError as exc:
            self._log.error("Stored state at %s is malformed: %s", self._state_key, exc)
            return LoadResult(self._default_factory(), LoadStatus.fallback, MALFORMED_ERROR)
        except Exception as exc:  # noqa: BLE001
            self._log.error("Could not load state from %s: %s", self._state_key, exc)
            return LoadResult(self._default_factory(), LoadStatus.fallback, LOAD_ERROR)

    # -------- write side --------

    def request_save(self, snapshot: StateSnapshot) -> None:
        """
        Record a new snapshot and (re)arm the debounce timer.

        Must be called from the event loop thread. Only the last snapshot seen when
        the window elapses without further calls is handed to save().
        """
        self._current = snapshot
        if self._kv is None:
            if not self._warned_unconfigured:
                self._log.warning("Persistence not configured. State will not be saved.")
                self._warned_unconfigured = True
            return

        self._debounced = snapshot
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce_s, self._fire_debounced)

    def _fire_debounced(self) -> None:
        self._timer = None
        snapshot, self._debounced = self._debounced, None
        if snapshot is not None:
            self._spawn(snapshot)

    def _spawn(self, snapshot: StateSnapshot) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self.save(snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def save(self, snapshot: StateSnapshot) -> None:
        """Single-flight write of `snapshot`, then drain the pending slot."""
        if self._kv is None:
            self._log.debug("Persistence not configured; skipping save.")
            return

        if self._state is SyncState.writing:
            # overwrite, never queue: the latest snapshot supersedes older ones
            self._pending = snapshot
            return

        self._state = SyncState.writing
        # an incoming snapshot also supersedes one left behind by a failed write
        self._pending = None
        current: StateSnapshot | None = snapshot
        try:
            while current is not None:
                ok = await self._write(current)
                nxt, self._pending = self._pending, None
                if not ok and nxt is None:
                    # keep the failed data for the next trigger
                    self._pending = current
                    break
                current = nxt
        except asyncio.CancelledError:
            if self._pending is None:
                self._pending = current
            raise
        finally:
            self._state = SyncState.idle

    async def _write(self, snapshot: StateSnapshot) -> bool:
        try:
            payload = encode_snapshot(snapshot)
            await asyncio.wait_for(
                self._kv.set(self._state_key, payload), timeout=self._write_timeout_s
            )
        except asyncio.TimeoutError:
            self._log.error(
                "Saving state to %s timed out after %.1fs", self._state_key, self._write_timeout_s
            )
            self._error = SAVE_ERROR
            return False
        except Exception as exc:  # noqa: BLE001
            self._log.error("Failed to save state to %s: %s", self._state_key, exc)
            self._error = SAVE_ERROR
            return False

        self._writes += 1
        self._last_saved_at = _utcnow()
        self._error = None
        self._log.debug("State saved to %s (%d bytes)", self._state_key, len(payload))
        return True

    # -------- lifecycle --------

    async def flush(self) -> None:
        """Write the debounced or pending snapshot now and wait until idle."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        snapshot, self._debounced = self._debounced, None
        if snapshot is None and self._state is SyncState.idle:
            snapshot = self._pending
        if snapshot is not None:
            await self.save(snapshot)
        await self.wait_idle()

    async def wait_idle(self) -> None:
        while self._tasks or self._state is SyncState.writing:
            if self._tasks:
                await asyncio.wait(list(self._tasks))
            else:
                await asyncio.sleep(0.01)

    async def aclose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
