import pytest

from luminous.storage.kv import inmem_kv
from luminous.storage.kv.inmem_kv import InMemoryKV


@pytest.mark.asyncio
async def test_scan_pages_until_cursor_returns_to_zero():
    kv = InMemoryKV()
    for i in range(5):
        await kv.set(f"k:{i}", str(i))

    cursor, page1 = await kv.scan("0", count=2)
    assert (cursor, page1) == ("2", ["k:0", "k:1"])
    cursor, page2 = await kv.scan(cursor, count=2)
    assert (cursor, page2) == ("4", ["k:2", "k:3"])
    cursor, page3 = await kv.scan(cursor, count=2)
    assert (cursor, page3) == ("0", ["k:4"])


@pytest.mark.asyncio
async def test_scan_match_filters_each_page_and_may_return_empty_pages():
    kv = InMemoryKV()
    await kv.set("other:1", "x")
    await kv.set("other:2", "x")
    await kv.set("mem:a", "x")

    cursor, page = await kv.scan("0", match="mem:*", count=2)
    assert cursor == "2"
    assert page == []

    cursor, page = await kv.scan(cursor, match="mem:*", count=2)
    assert cursor == "0"
    assert page == ["mem:a"]


@pytest.mark.asyncio
async def test_delete_reports_how_many_keys_existed():
    kv = InMemoryKV()
    await kv.set("a", "1")
    await kv.set("b", "2")

    assert await kv.delete("a", "b", "missing") == 2
    assert await kv.delete() == 0
    assert await kv.mget(["a", "b"]) == [None, None]


@pytest.mark.asyncio
async def test_get_default_and_ttl_expiry(monkeypatch):
    kv = InMemoryKV()
    now = [1000.0]
    monkeypatch.setattr(inmem_kv.time, "time", lambda: now[0])

    await kv.set("short", "v", ttl_s=10)
    await kv.set("forever", "w")

    assert await kv.get("short") == "v"
    assert await kv.get("nope", "fallback") == "fallback"

    now[0] += 11
    assert await kv.get("short") is None
    assert await kv.mget(["short", "forever"]) == [None, "w"]
    assert (await kv.scan("0", count=10))[1] == ["forever"]
