# luminous/config/loader.py
import logging
import os
from collections.abc import Iterable
from pathlib import Path

from pydantic import SecretStr

from .config import AppSettings

# Unprefixed variables used by existing deployments of the dashboard.
_FALLBACK_ENV = {
    ("kv", "url"): "UPSTASH_REDIS_REST_URL",
    ("kv", "token"): "UPSTASH_REDIS_REST_TOKEN",
    ("shopify", "store_url"): "SHOPIFY_STORE_URL",
    ("shopify", "admin_api_token"): "SHOPIFY_ADMIN_API_TOKEN",
}
_SECRET_FIELDS = {("kv", "token"), ("shopify", "admin_api_token")}


def _existing(paths: Iterable[Path]) -> list[Path]:
    return [p for p in paths if p.exists()]


def _apply_fallback_env(cfg: AppSettings) -> AppSettings:
    for (section, field), env_name in _FALLBACK_ENV.items():
        value = os.environ.get(env_name)
        if not value:
            continue
        sub = getattr(cfg, section)
        if getattr(sub, field) is not None:
            continue  # prefixed variable wins
        setattr(sub, field, SecretStr(value) if (section, field) in _SECRET_FIELDS else value)
    return cfg


def load_settings() -> AppSettings:
    # allow an explicit path via env var
    explicit = Path(os.environ["LUMINOUS_ENV_FILE"]) if "LUMINOUS_ENV_FILE" in os.environ else None

    candidates = _existing(
        [
            explicit or Path("NON_EXISTENT"),  # placeholder if not set
            Path.cwd() / ".env",
            Path.cwd() / ".env.local",
        ]
    )

    if not candidates and explicit:
        raise FileNotFoundError(f"Explicitly specified env file not found: {explicit}")

    if not candidates:
        log = logging.getLogger("luminous.config.loader")
        log.debug("No env files found; using defaults and env vars only.")
        return _apply_fallback_env(AppSettings())

    # Later files override earlier ones
    return _apply_fallback_env(AppSettings(_env_file=[str(p) for p in candidates]))
