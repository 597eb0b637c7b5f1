import asyncio

from luminous import InMemoryKV, MemoryDedupService, SnapshotSyncCoordinator

# an in-process store; swap for UpstashKV(url, token) to talk to a real database
kv = InMemoryKV()


async def main():
    # state sync: many rapid edits collapse into one debounced write
    sync = SnapshotSyncCoordinator(kv, debounce_s=0.2)
    loaded = await sync.load()
    print(f"Loaded state: {loaded.status.value}")

    state = dict(loaded.snapshot)
    for i in range(10):
        state = {**state, "draft": f"edit {i}"}
        sync.request_save(state)
    await sync.flush()
    print(f"Writes after 10 edits: {sync.status().writes}")

    # memory library: byte-identical files under different names are collapsed
    prefix = "luminous:memory:file:"
    await kv.set(f"{prefix}plan.md", "ship the launch")
    await kv.set(f"{prefix}plan-copy.md", "ship the launch")
    await kv.set(f"{prefix}notes.txt", "call the supplier")

    dedup = MemoryDedupService(kv, prefix=prefix)
    run = await dedup.run_once()
    print(run.message)
    print(f"Remaining: {await dedup.list_keys()}")


if __name__ == "__main__":
    asyncio.run(main())
