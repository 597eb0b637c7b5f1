# /state: hand-off point between the dashboard and the sync coordinator

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, status

from luminous.services.sync.coordinator import SnapshotSyncCoordinator

from .deps import get_sync
from .schemas import LoadInfo, StateResponse, StateUpdateRequest, SyncStatusOut

router = APIRouter(tags=["state"])


def _status_out(sync: SnapshotSyncCoordinator) -> SyncStatusOut:
    st = sync.status()
    return SyncStatusOut(**{**asdict(st), "state": st.state.value})


@router.get("/state", response_model=StateResponse)
async def get_state(
    sync: Annotated[SnapshotSyncCoordinator, Depends(get_sync)],
) -> StateResponse:
    """
    Current in-memory snapshot plus sync status.

    `sync.error` drives the dashboard's connection banner; it is cleared by the
    next successful write.
    """
    last = sync.last_load
    load = LoadInfo(status=last.status.value, error=last.error) if last else LoadInfo()
    return StateResponse(state=sync.current, sync=_status_out(sync), load=load)


@router.put("/state", response_model=SyncStatusOut, status_code=status.HTTP_202_ACCEPTED)
async def put_state(
    req: StateUpdateRequest,
    sync: Annotated[SnapshotSyncCoordinator, Depends(get_sync)],
) -> SyncStatusOut:
    """Accept a new snapshot. The write happens after the debounce window."""
    sync.request_save(req.state)
    return _status_out(sync)


@router.post("/state/flush", response_model=SyncStatusOut)
async def flush_state(
    sync: Annotated[SnapshotSyncCoordinator, Depends(get_sync)],
) -> SyncStatusOut:
    """Write any debounced or pending snapshot now and wait for the store."""
    await sync.flush()
    return _status_out(sync)
