from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .services import DedupSettings, MemorySettings, ShopifySettings, SyncSettings
from .storage import KVSettings


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    json_logs: bool = False
    log_dir: str | None = None  # None => console only


class AppSettings(BaseSettings):
    """
    Root settings object.

    Every field can be overridden from the environment with the LUMINOUS_ prefix and
    "__" as the nesting delimiter, e.g. LUMINOUS_KV__URL or LUMINOUS_DEDUP__INTERVAL_S.
    """

    model_config = SettingsConfigDict(
        env_prefix="LUMINOUS_",
        env_nested_delimiter="__",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    kv: KVSettings = KVSettings()
    sync: SyncSettings = SyncSettings()
    dedup: DedupSettings = DedupSettings()
    memory: MemorySettings = MemorySettings()
    shopify: ShopifySettings = ShopifySettings()
    logging: LoggingSettings = LoggingSettings()

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:5173"])
