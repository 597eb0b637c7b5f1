from __future__ import annotations

from dataclasses import dataclass

from luminous.config.config import AppSettings
from luminous.contracts.storage.async_kv import AsyncKV
from luminous.services.logger.std import LoggingConfig, StdLoggerService
from luminous.services.memory.dedup import MemoryDedupService
from luminous.services.memory.library import MemoryLibrary
from luminous.services.shopify.proxy import ShopifyProxy
from luminous.services.sync.coordinator import SnapshotSyncCoordinator
from luminous.storage.factory import build_kv


@dataclass
class DefaultContainer:
    settings: AppSettings
    logger: StdLoggerService
    kv: AsyncKV | None
    sync: SnapshotSyncCoordinator
    dedup: MemoryDedupService
    library: MemoryLibrary
    shopify: ShopifyProxy

    async def aclose(self) -> None:
        await self.sync.aclose()
        if self.kv is not None:
            await self.kv.aclose()
        self.logger.shutdown()


def build_default_container(
    *, cfg: AppSettings, kv: AsyncKV | None = None, log_dir: str | None = None
) -> DefaultContainer:
    """
    Wire every service from settings.

    `kv` overrides the configured backend (tests inject an in-memory store).
    """
    logger = StdLoggerService.build(LoggingConfig.from_cfg(cfg, log_dir=log_dir))
    store = kv if kv is not None else build_kv(cfg)

    sync = SnapshotSyncCoordinator(
        store,
        state_key=cfg.kv.state_key,
        debounce_s=cfg.sync.debounce_s,
        write_timeout_s=cfg.sync.write_timeout_s,
        logger=logger.for_sync(),
    )
    dedup = MemoryDedupService(
        store,
        prefix=cfg.kv.memory_prefix,
        status_key=cfg.kv.status_key,
        scan_count=cfg.dedup.scan_count,
        interval_s=cfg.dedup.interval_s,
        run_on_start=cfg.dedup.run_on_start,
        logger=logger.for_dedup(),
        context_logger=logger.with_context,
    )
    library = MemoryLibrary(
        store,
        dedup=dedup,
        prefix=cfg.kv.memory_prefix,
        max_bytes=cfg.memory.max_upload_bytes,
        logger=logger.for_namespace("memory.library"),
    )
    shopify_cfg = cfg.shopify
    shopify = ShopifyProxy(
        shopify_cfg.store_url,
        shopify_cfg.admin_api_token.get_secret_value() if shopify_cfg.admin_api_token else None,
        api_version=shopify_cfg.api_version,
        timeout=shopify_cfg.timeout_s,
    )
    return DefaultContainer(
        settings=cfg,
        logger=logger,
        kv=store,
        sync=sync,
        dedup=dedup,
        library=library,
        shopify=shopify,
    )
