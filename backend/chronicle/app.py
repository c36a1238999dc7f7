"""
Chronicle - FastAPI Backend
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chronicle.config import settings
from chronicle.database.db import init_db
from chronicle.logging import setup_logging, get_logger
from chronicle.routers import nodes, timelines
from chronicle.services.cascade import CascadeService
from chronicle.services.exchange import CsvExchangeService
from chronicle.services.node_store import NodeStore
from chronicle.services.nodes import NodeService
from chronicle.services.timeline import TimelineService

logger = get_logger('main')


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, debug=settings.DEBUG)
    logger.info("Starting Chronicle API")

    await init_db(settings.DATABASE_PATH)
    logger.info("Database initialized")

    # Initialize services
    store = NodeStore(db_path=settings.DATABASE_PATH)
    app.state.cascade_service = CascadeService(store=store)
    app.state.timeline_service = TimelineService(
        db_path=settings.DATABASE_PATH,
        store=store,
        cascade=app.state.cascade_service,
    )
    app.state.node_service = NodeService(
        store=store,
        timelines=app.state.timeline_service,
    )
    app.state.exchange_service = CsvExchangeService(
        store=store,
        timelines=app.state.timeline_service,
        max_rows=settings.CSV_IMPORT_MAX_ROWS,
    )
    logger.info("Services initialized")

    yield

    logger.info("Shutting down application")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Chronicle API",
        description="Hierarchical timelines with mixed real, fictional, and relative ordering",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(timelines.router, prefix="/api/timelines", tags=["Timelines"])
    app.include_router(nodes.router, prefix="/api/nodes", tags=["Nodes"])

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": "chronicle",
        }

    @app.get("/")
    async def root():
        return {
            "name": "Chronicle API",
            "version": "1.0.0",
            "docs": "/docs",
            "health": "/health"
        }

    return app
