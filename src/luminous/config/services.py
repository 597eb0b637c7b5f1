from pydantic import BaseModel, Field, SecretStr


class SyncSettings(BaseModel):
    # trailing-edge debounce applied to state saves
    debounce_s: float = 1.0
    # upper bound for one remote write; keeps a stuck request from blocking the drain
    write_timeout_s: float = 15.0


class DedupSettings(BaseModel):
    enabled: bool = True
    interval_s: float = 30 * 60
    run_on_start: bool = True
    scan_count: int = Field(default=100, ge=1)


class MemorySettings(BaseModel):
    max_upload_bytes: int = 10 * 1024 * 1024


class ShopifySettings(BaseModel):
    store_url: str | None = None  # e.g. my-shop.myshopify.com
    admin_api_token: SecretStr | None = None
    api_version: str = "2024-07"
    timeout_s: float = 30.0

    @property
    def configured(self) -> bool:
        return bool(
            self.store_url and self.admin_api_token and self.admin_api_token.get_secret_value()
        )
