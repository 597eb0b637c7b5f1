import asyncio
import time

import pytest

from luminous.contracts.errors import KVNotConfigured, KVTransportError
from luminous.services.memory.dedup import DedupRun, MemoryDedupService
from luminous.storage.kv.inmem_kv import InMemoryKV

PREFIX = "luminous:memory:file:"
STATUS_KEY = "luminous:memory:autonomous_status"


class PagedKV:
    """
    Store whose SCAN hands out fixed pages: cursor "0" -> page 0, "1" -> page 1, ...
    and returns "0" with the last page. Records every call.
    """

    def __init__(self, pages: list[list[str]], data: dict[str, str]):
        self.pages = pages
        self.data = dict(data)
        self.calls: list[tuple] = []

    async def scan(self, cursor="0", *, match=None, count=None):
        self.calls.append(("SCAN", cursor, match, count))
        idx = int(cursor)
        next_cursor = str(idx + 1) if idx + 1 < len(self.pages) else "0"
        return next_cursor, list(self.pages[idx])

    async def mget(self, keys):
        self.calls.append(("MGET", tuple(keys)))
        return [self.data.get(k) for k in keys]

    async def delete(self, *keys):
        self.calls.append(("DEL", keys))
        removed = 0
        for k in keys:
            if self.data.pop(k, None) is not None:
                removed += 1
        return removed

    async def get(self, key, default=None):
        return self.data.get(key, default)

    async def set(self, key, value, *, ttl_s=None):
        self.calls.append(("SET", key))
        self.data[key] = value

    async def aclose(self):
        pass


async def _seed(kv, items: list[tuple[str, str]]) -> None:
    for name, value in items:
        await kv.set(f"{PREFIX}{name}", value)


async def _until(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


# -------- pass steps --------


@pytest.mark.asyncio
async def test_run_pass_keeps_first_of_each_identical_group_in_scan_order():
    kv = InMemoryKV()
    await _seed(kv, [("A", "x"), ("B", "x"), ("C", "y")])
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    keys = await svc.list_keys()
    assert keys == [f"{PREFIX}A", f"{PREFIX}B", f"{PREFIX}C"]

    result = await svc.run_pass(keys)

    assert result.scanned == 3
    assert result.removed == 1
    assert result.deleted_keys == [f"{PREFIX}B"]
    assert await kv.get(f"{PREFIX}A") == "x"
    assert await kv.get(f"{PREFIX}B") is None
    assert await kv.get(f"{PREFIX}C") == "y"


@pytest.mark.asyncio
async def test_second_pass_on_same_keys_removes_nothing():
    kv = InMemoryKV()
    await _seed(kv, [("a.txt", "same"), ("b.txt", "same"), ("c.txt", "same"), ("d.txt", "other")])
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    keys = await svc.list_keys()
    first = await svc.run_pass(keys)
    second = await svc.run_pass(keys)

    assert first.removed == 2
    assert second.removed == 0
    assert second.deleted_keys == []
    assert await svc.list_keys() == [f"{PREFIX}a.txt", f"{PREFIX}d.txt"]


@pytest.mark.asyncio
async def test_list_keys_accumulates_every_page_before_the_pass_decides():
    pages = [
        [f"{PREFIX}p0-a", f"{PREFIX}p0-b"],
        [],  # empty pages are legal mid-iteration
        [f"{PREFIX}p2-a"],
    ]
    data = {
        f"{PREFIX}p0-a": "alpha",
        f"{PREFIX}p0-b": "beta",
        f"{PREFIX}p2-a": "alpha",  # duplicate of a key from the first page
    }
    kv = PagedKV(pages, data)
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY, scan_count=2)

    keys = await svc.list_keys()

    assert keys == [f"{PREFIX}p0-a", f"{PREFIX}p0-b", f"{PREFIX}p2-a"]
    assert [c[1] for c in kv.calls if c[0] == "SCAN"] == ["0", "1", "2"]
    assert all(c[2] == f"{PREFIX}*" and c[3] == 2 for c in kv.calls if c[0] == "SCAN")

    result = await svc.run_pass(keys)

    assert result.deleted_keys == [f"{PREFIX}p2-a"]
    # one batched read, one batched delete
    assert [c[0] for c in kv.calls[3:]] == ["MGET", "DEL"]


@pytest.mark.asyncio
async def test_key_repeated_across_pages_is_not_its_own_duplicate():
    key = f"{PREFIX}only"
    kv = PagedKV([[key], [key]], {key: "content"})
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    keys = await svc.list_keys()
    result = await svc.run_pass(keys)

    assert keys == [key]
    assert result.removed == 0
    assert kv.data[key] == "content"


@pytest.mark.asyncio
async def test_run_pass_skips_keys_deleted_between_scan_and_mget():
    kv = PagedKV([[f"{PREFIX}a", f"{PREFIX}gone", f"{PREFIX}b"]], {f"{PREFIX}a": "x", f"{PREFIX}b": "x"})
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    result = await svc.run_pass(await svc.list_keys())

    assert result.scanned == 3
    assert result.deleted_keys == [f"{PREFIX}b"]


@pytest.mark.asyncio
async def test_run_pass_without_duplicates_issues_no_delete():
    kv = PagedKV([[f"{PREFIX}a", f"{PREFIX}b"]], {f"{PREFIX}a": "x", f"{PREFIX}b": "y"})
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    result = await svc.run_pass(await svc.list_keys())

    assert result.removed == 0
    assert not any(c[0] == "DEL" for c in kv.calls)


# -------- status --------


@pytest.mark.asyncio
async def test_publish_status_overwrites_single_record_and_get_status_reads_it():
    kv = InMemoryKV()
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    assert await svc.get_status() is None

    await svc.publish_status("first")
    second = await svc.publish_status("second")

    status = await svc.get_status()
    assert isinstance(status, DedupRun)
    assert status.message == "second"
    assert status.timestamp == second.timestamp


@pytest.mark.asyncio
async def test_malformed_status_record_reads_as_none():
    kv = InMemoryKV()
    await kv.set(STATUS_KEY, "{not json")
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    assert await svc.get_status() is None


@pytest.mark.asyncio
async def test_run_once_publishes_summary_message():
    kv = InMemoryKV()
    await _seed(kv, [("a", "1"), ("b", "1")])
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    run = await svc.run_once()

    assert run.message == (
        "Autonomous action: Organization complete. Scanned 2 files and removed 1 duplicate(s)."
    )
    assert (await svc.get_status()).message == run.message


@pytest.mark.asyncio
async def test_failed_pass_leaves_previous_status_untouched():
    kv = InMemoryKV()
    await _seed(kv, [("a", "1"), ("b", "1")])
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)
    previous = await svc.publish_status("previous pass")

    async def broken_delete(*keys):
        raise KVTransportError("DEL failed")

    kv.delete = broken_delete

    with pytest.raises(KVTransportError):
        await svc.run_once()

    status = await svc.get_status()
    assert status.message == "previous pass"
    assert status.timestamp == previous.timestamp


@pytest.mark.asyncio
async def test_unconfigured_service_skips_passes_and_reports_no_status():
    svc = MemoryDedupService(None, prefix=PREFIX, status_key=STATUS_KEY)

    assert await svc.run_once() is None
    assert await svc.get_status() is None
    with pytest.raises(KVNotConfigured):
        await svc.organize()


# -------- autonomous driver --------


class FlakyScanKV(InMemoryKV):
    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.scans = 0

    async def scan(self, cursor="0", *, match=None, count=None):
        self.scans += 1
        if self.failures:
            self.failures -= 1
            raise KVTransportError("network down")
        return await super().scan(cursor, match=match, count=count)


@pytest.mark.asyncio
async def test_loop_runs_eagerly_survives_failed_tick_and_stops_cleanly():
    kv = FlakyScanKV(failures=1)
    await _seed(kv, [("a", "dup"), ("b", "dup")])
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY, interval_s=0.05)

    svc.start()
    assert svc.running

    # eager tick fails, the next scheduled tick succeeds
    await _until(lambda: kv.scans >= 2)
    await _until(lambda: STATUS_KEY in kv._data)
    await svc.stop()

    assert not svc.running
    status = await svc.get_status()
    assert "removed 1 duplicate(s)" in status.message
    assert await kv.get(f"{PREFIX}b") is None


@pytest.mark.asyncio
async def test_loop_can_be_restarted_and_start_is_idempotent():
    kv = InMemoryKV()
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY, interval_s=60)

    svc.start()
    svc.start()
    await _until(lambda: STATUS_KEY in kv._data)
    await svc.stop()
    assert not svc.running

    await kv.delete(STATUS_KEY)
    svc.start()
    await _until(lambda: STATUS_KEY in kv._data)
    await svc.stop()
    assert not svc.running


@pytest.mark.asyncio
async def test_loop_without_eager_run_waits_for_the_interval():
    kv = InMemoryKV()
    svc = MemoryDedupService(
        kv, prefix=PREFIX, status_key=STATUS_KEY, interval_s=60, run_on_start=False
    )

    svc.start()
    await asyncio.sleep(0.05)
    await svc.stop()

    assert await svc.get_status() is None


@pytest.mark.asyncio
async def test_loop_without_configuration_keeps_running_and_skips():
    svc = MemoryDedupService(None, prefix=PREFIX, status_key=STATUS_KEY, interval_s=0.01)

    svc.start()
    await asyncio.sleep(0.05)
    assert svc.running
    await svc.stop()


def test_sanitize_name_keeps_safe_characters_only():
    from luminous.services.memory.library import sanitize_name

    assert sanitize_name("report v2 (final).md") == "report_v2__final_.md"
    assert sanitize_name("../../etc/passwd") == "passwd"
    assert sanitize_name("C:\\docs\\plan.txt") == "plan.txt"
    assert sanitize_name(".hidden") == "hidden"
    assert sanitize_name("...") == "untitled"


class ShufflingKV(PagedKV):
    """
    Single-page store whose SCAN order flips on every call and whose MGET yields,
    so two unserialized passes would pick different survivors. Counts passes in
    flight between the first SCAN and the status SET.
    """

    def __init__(self, data: dict[str, str]):
        super().__init__([sorted(data)], data)
        self.active = 0
        self.max_active = 0

    async def scan(self, cursor="0", *, match=None, count=None):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        next_cursor, page = await super().scan(cursor, match=match, count=count)
        if len([c for c in self.calls if c[0] == "SCAN"]) % 2 == 0:
            page.reverse()
        await asyncio.sleep(0)
        return next_cursor, page

    async def mget(self, keys):
        await asyncio.sleep(0.01)
        return await super().mget(keys)

    async def set(self, key, value, *, ttl_s=None):
        await super().set(key, value, ttl_s=ttl_s)
        if key == STATUS_KEY:
            self.active -= 1


@pytest.mark.asyncio
async def test_manual_and_scheduled_passes_never_overlap():
    kv = ShufflingKV({f"{PREFIX}a": "same", f"{PREFIX}b": "same"})
    svc = MemoryDedupService(kv, prefix=PREFIX, status_key=STATUS_KEY)

    result, run = await asyncio.gather(svc.organize(), svc.run_once())

    assert kv.max_active == 1
    assert result.removed == 1
    assert run.message.endswith("removed 0 duplicate(s).")
    survivors = [k for k in kv.data if k.startswith(PREFIX)]
    assert len(survivors) == 1


@pytest.mark.asyncio
async def test_tick_logs_through_the_injected_context_logger():
    seen = []

    def context_logger(logger, ctx):
        seen.append(ctx)
        return logger

    kv = InMemoryKV()
    svc = MemoryDedupService(
        kv, prefix=PREFIX, status_key=STATUS_KEY, interval_s=60, context_logger=context_logger
    )

    svc.start()
    await _until(lambda: STATUS_KEY in kv._data)
    await svc.stop()

    assert len(seen) == 1
    assert seen[0].component == "dedup"
    assert len(seen[0].pass_id) == 8
