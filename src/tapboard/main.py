"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (Redis pool, graph client,
first dataset load). Middleware, routers, the WebSocket route and the
static mount are all registered here.

create_app() accepts a prebuilt AppState; when one is given the
lifespan leaves it alone. Tests use that to run the app against
in-memory stores.
"""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from tapboard import __version__
from tapboard.api import api_router
from tapboard.config import Settings, settings as default_settings
from tapboard.logging_config import configure_logging
from tapboard.state import AppState

logger = structlog.get_logger()


async def _startup(app: FastAPI, settings: Settings) -> None:
    from tapboard.store.graph import GraphClient
    from tapboard.store.kv import KeyValueStore, init_redis

    redis = await init_redis(settings.redis_url)
    logger.info("tapboard.redis_connected", url=settings.redis_url)

    graph = None
    if settings.dataset_source == "graph":
        graph = GraphClient(
            settings.graph_url,
            settings.graph_database,
            user=settings.graph_user,
            password=settings.graph_password,
            timeout=settings.graph_timeout_seconds,
        )

    state = AppState.build(settings, KeyValueStore(redis), graph)
    app.state.tapboard = state

    # No dataset, no dashboard: a failure here aborts startup
    dataset = await state.datasets.get_dataset()
    logger.info("tapboard.dataset_loaded", beers=len(dataset.beers))


async def _shutdown(app: FastAPI) -> None:
    from tapboard.store.kv import close_redis

    state: AppState = app.state.tapboard
    if state.graph is not None:
        await state.graph.aclose()
    await close_redis()


def create_app(
    settings: Optional[Settings] = None,
    state: Optional[AppState] = None,
) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or (state.settings if state else default_settings)
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Anything before `yield` runs at startup, after `yield` at shutdown."""
        logger.info(
            "tapboard.starting",
            version=__version__,
            environment=settings.environment,
            source=settings.dataset_source,
        )
        owns_state = state is None
        if owns_state:
            await _startup(app, settings)

        yield

        logger.info("tapboard.shutdown")
        if owns_state:
            await _shutdown(app)

    app = FastAPI(
        title="Tapboard",
        description="Live beer list and ratings for a tasting festival",
        version=__version__,
        lifespan=lifespan,
    )
    if state is not None:
        app.state.tapboard = state

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from tapboard.middleware.rate_limit import RateLimitMiddleware
    from tapboard.middleware.request_id import RequestIdMiddleware
    from tapboard.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware, rpm=settings.rate_limit_rpm)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    from tapboard.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    # Static assets last so API paths always win
    if settings.static_dir and Path(settings.static_dir).is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir), name="static")

    return app


# Default app instance (used by uvicorn: tapboard.main:app)
app = create_app()
