# Schemas for request and response bodies used in the API.

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


# --------- State ---------
class SyncStatusOut(BaseModel):
    state: Literal["idle", "writing"]
    configured: bool
    pending: bool
    debouncing: bool
    error: str | None = None
    last_saved_at: datetime | None = None
    writes: int = 0


class LoadInfo(BaseModel):
    status: Literal["not_configured", "loaded", "initialized", "fallback"] | None = None
    error: str | None = None


class StateResponse(BaseModel):
    state: dict[str, Any]
    sync: SyncStatusOut
    load: LoadInfo


class StateUpdateRequest(BaseModel):
    state: dict[str, Any]


# --------- Memory ---------
class MemoryUploadResponse(BaseModel):
    key: str
    name: str
    media_type: str | None = None
    size: int
    chars: int


class MemoryListResponse(BaseModel):
    keys: list[str] = Field(default_factory=list)


class DedupRunOut(BaseModel):
    timestamp: datetime
    message: str


class MemoryStatusResponse(BaseModel):
    status: DedupRunOut | None = None


class MemoryOrganizeResponse(BaseModel):
    scanned: int
    removed: int
    deleted_keys: list[str] = Field(default_factory=list)
    message: str


# --------- Shopify ---------
class ShopifyProxyRequest(BaseModel):
    # validated in the route so a bad value answers 400, not 422
    endpoint: Any = None


# --------- Misc ---------
class HealthResponse(BaseModel):
    ok: bool = True
    kv_configured: bool
    dedup_running: bool
