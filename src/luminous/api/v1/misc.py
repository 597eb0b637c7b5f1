from typing import Annotated

from fastapi import APIRouter, Depends

from luminous.services.container.default_container import DefaultContainer

from .deps import get_container
from .schemas import HealthResponse

router = APIRouter(tags=["misc"])


@router.get("/health", response_model=HealthResponse)
async def health(container: Annotated[DefaultContainer, Depends(get_container)]) -> HealthResponse:
    return HealthResponse(
        ok=True,
        kv_configured=container.kv is not None,
        dedup_running=container.dedup.running,
    )
