"""FastAPI application for the cardnet analysis view."""

import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cardnet.api.routes import router
from cardnet.config import settings
from cardnet.storage.neo4j_client import Neo4jCardStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan - startup and shutdown."""
    logger.info("Starting cardnet API...")

    store = Neo4jCardStore()
    await store.connect()
    await store.setup_schema()
    logger.info("Connected to Neo4j")

    # Store in app state for routes
    app.state.store = store
    app.state.engines = OrderedDict()
    app.state.max_loaded_boards = settings.api_max_loaded_boards

    yield

    # Shutdown
    logger.info("Shutting down cardnet API...")
    for engine in app.state.engines.values():
        await engine.close()
    await store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="cardnet",
        description="Network layout, clustering and relationship suggestions for card boards",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "cardnet.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
