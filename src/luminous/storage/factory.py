import logging

from luminous.config.config import AppSettings
from luminous.contracts.storage.async_kv import AsyncKV
from luminous.storage.kv.inmem_kv import InMemoryKV
from luminous.storage.kv.upstash_kv import UpstashKV

log = logging.getLogger("luminous.storage.factory")


def build_kv(cfg: AppSettings) -> AsyncKV | None:
    """
    Decide which KV backend to use based on AppSettings.kv.

    Returns None when persistence is not configured; callers treat that as a valid
    state (defaults and logged no-ops), not as an error.
    """
    kv_cfg = cfg.kv

    if kv_cfg.backend == "none":
        return None

    if kv_cfg.backend == "inmem":
        return InMemoryKV()

    if kv_cfg.backend == "upstash":
        if not kv_cfg.configured:
            log.warning(
                "Upstash credentials not configured; state will not be persisted "
                "(set LUMINOUS_KV__URL / LUMINOUS_KV__TOKEN or UPSTASH_REDIS_REST_URL / UPSTASH_REDIS_REST_TOKEN)."
            )
            return None
        return UpstashKV(
            kv_cfg.url,
            kv_cfg.token.get_secret_value(),
            timeout=kv_cfg.timeout_s,
        )

    raise ValueError(f"Unknown kv backend: {kv_cfg.backend!r}")
