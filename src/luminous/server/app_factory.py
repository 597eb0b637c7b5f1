from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from luminous.api.v1.memory import router as memory_router
from luminous.api.v1.misc import router as misc_router
from luminous.api.v1.shopify import router as shopify_router
from luminous.api.v1.state import router as state_router
from luminous.config.config import AppSettings
from luminous.contracts.storage.async_kv import AsyncKV
from luminous.services.container.default_container import build_default_container


def create_app(
    *,
    cfg: Optional["AppSettings"] = None,
    kv: Optional[AsyncKV] = None,
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> FastAPI:
    """
    Builds the FastAPI app, registers routers, and installs all services
    into app.state.container.

    Startup loads the state snapshot and starts the autonomous dedup loop;
    shutdown stops the loop and flushes any unsaved snapshot.
    """

    # Resolve settings and container up front so lifespan can capture them
    settings = cfg or AppSettings()
    if log_level:
        settings.logging.level = log_level.upper()

    container = build_default_container(cfg=settings, kv=kv, log_dir=log_dir)
    log = container.logger.for_namespace("server")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # --- Startup: attach settings/container, load state, start background jobs ---
        app.state.settings = settings
        app.state.container = container

        result = await container.sync.load()
        log.info("State load: %s", result.status.value)

        if settings.dedup.enabled:
            container.dedup.start()

        try:
            # Hand control back to FastAPI / TestClient
            yield
        finally:
            # --- Shutdown: stop the timer loop, then push out the last snapshot ---
            await container.dedup.stop()
            await container.sync.flush()
            await container.aclose()

    # Create app with lifespan
    app = FastAPI(
        title="Luminous Persistence Sidecar",
        version="0.1",
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(router=state_router, prefix="/api/v1")
    app.include_router(router=memory_router, prefix="/api/v1")
    app.include_router(router=shopify_router, prefix="/api/v1")
    app.include_router(router=misc_router, prefix="/api/v1")

    # Optional: keep these for immediate access before lifespan runs
    app.state.settings = settings
    app.state.container = container

    return app
