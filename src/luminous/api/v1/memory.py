# /memory: upload boundary, library listing and dedup status

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from luminous.contracts.errors import KVError, KVNotConfigured, UnsupportedMediaType
from luminous.services.memory.dedup import MemoryDedupService
from luminous.services.memory.library import MemoryLibrary

from .deps import get_api_logger, get_dedup, get_library
from .schemas import (
    DedupRunOut,
    MemoryListResponse,
    MemoryOrganizeResponse,
    MemoryStatusResponse,
    MemoryUploadResponse,
)

router = APIRouter(tags=["memory"])


def _store_error(exc: KVError, log: logging.Logger) -> HTTPException:
    if isinstance(exc, KVNotConfigured):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Persistent memory is not configured on the server.",
        )
    log.error("Memory store request failed: %s", exc)
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))


@router.post(
    "/memory/upload", response_model=MemoryUploadResponse, status_code=status.HTTP_201_CREATED
)
async def upload_memory(
    library: Annotated[MemoryLibrary, Depends(get_library)],
    log: Annotated[logging.Logger, Depends(get_api_logger)],
    memoryFile: Annotated[UploadFile, File()],  # noqa: N803 - form field name used by the dashboard
) -> MemoryUploadResponse:
    data = await memoryFile.read()
    try:
        stored = await library.store(memoryFile.filename or "", data, memoryFile.content_type)
    except UnsupportedMediaType as exc:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except KVError as exc:
        raise _store_error(exc, log) from exc
    return MemoryUploadResponse(
        key=stored.key,
        name=stored.name,
        media_type=stored.media_type,
        size=stored.size,
        chars=stored.chars,
    )


@router.get("/memory/list", response_model=MemoryListResponse)
async def list_memories(
    library: Annotated[MemoryLibrary, Depends(get_library)],
    log: Annotated[logging.Logger, Depends(get_api_logger)],
) -> MemoryListResponse:
    try:
        keys = await library.list_keys()
    except KVError as exc:
        raise _store_error(exc, log) from exc
    return MemoryListResponse(keys=keys)


@router.get("/memory/status", response_model=MemoryStatusResponse)
async def memory_status(
    dedup: Annotated[MemoryDedupService, Depends(get_dedup)],
    log: Annotated[logging.Logger, Depends(get_api_logger)],
) -> MemoryStatusResponse:
    """Last autonomous organization pass, or null if none has completed yet."""
    try:
        run = await dedup.get_status()
    except KVError as exc:
        raise _store_error(exc, log) from exc
    if run is None:
        return MemoryStatusResponse(status=None)
    return MemoryStatusResponse(status=DedupRunOut(timestamp=run.timestamp, message=run.message))


@router.post("/memory/organize", response_model=MemoryOrganizeResponse)
async def organize_memories(
    dedup: Annotated[MemoryDedupService, Depends(get_dedup)],
    log: Annotated[logging.Logger, Depends(get_api_logger)],
) -> MemoryOrganizeResponse:
    """Run a dedup pass now instead of waiting for the next scheduled one."""
    try:
        result = await dedup.organize()
    except KVError as exc:
        raise _store_error(exc, log) from exc
    return MemoryOrganizeResponse(
        scanned=result.scanned,
        removed=result.removed,
        deleted_keys=result.deleted_keys,
        message=result.message,
    )
