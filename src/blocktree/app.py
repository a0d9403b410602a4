"""FastAPI application for the block tree host.

App creation plus lifespan management: the shared ``BlockStore`` is built
(or injected), optionally loaded from a snapshot on startup and saved back
on shutdown.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import APIRouter, FastAPI, Request
from pydantic import BaseModel

from . import __version__
from .blocks import BlockStore, create_default_registry
from .blocks.models import now_iso
from .blocks.persistence import load_snapshot, save_snapshot
from .errors import BlockTreeError
from .http_rpc import router as rpc_router
from .settings import settings

logger = logging.getLogger(__name__)

health_router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    blocks: int


@health_router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    """Liveness probe with the current block count."""
    store: BlockStore = request.app.state.store
    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=now_iso(),
        blocks=store.count(),
    )


def create_app(store: BlockStore | None = None, snapshot_path: Path | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        store: Store to serve. A fresh store with the built-in schemas is
            created when omitted.
        snapshot_path: Snapshot to load on startup and save on shutdown.
            Defaults to ``settings.snapshot_path``; None keeps the store
            purely in memory.
    """
    if store is None:
        store = BlockStore(create_default_registry())
    if snapshot_path is None:
        snapshot_path = settings.snapshot_path

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if snapshot_path is not None:
            if load_snapshot(store, snapshot_path):
                logger.info("Loaded %d block(s) from %s", store.count(), snapshot_path)
            else:
                logger.info("No snapshot at %s, starting empty", snapshot_path)

        yield

        if snapshot_path is not None and settings.save_on_shutdown:
            try:
                save_snapshot(store, snapshot_path)
            except BlockTreeError as exc:
                logger.error("Failed to save snapshot on shutdown: %s", exc)

    app = FastAPI(
        title="Block Tree",
        version=__version__,
        description="Typed block tree engine over JSON-RPC",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.snapshot_path = snapshot_path

    app.include_router(rpc_router, tags=["rpc"])
    app.include_router(health_router, tags=["health"])
    return app


# Default app instance (uvicorn entry point)
app = create_app()
