"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

# Unify uvicorn loggers with app format
for uvicorn_logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
    uvicorn_logger = logging.getLogger(uvicorn_logger_name)
    uvicorn_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    uvicorn_logger.addHandler(handler)

from docsearch import __version__  # noqa: E402
from docsearch.api.routers import search  # noqa: E402
from docsearch.config import Settings, load_settings  # noqa: E402
from docsearch.embeddings.client import EmbeddingClient  # noqa: E402
from docsearch.search.ranking import QueryEmbedder, RankingEngine  # noqa: E402
from docsearch.store.index_store import IndexStore  # noqa: E402

logger = logging.getLogger(__name__)


def _log_startup_state(settings: Settings) -> None:
    """Warn about missing files and credentials; the service still starts."""
    if not settings.index_path.exists():
        logger.warning(f"No index at {settings.index_path}; searches fail until it is built")
    if not settings.ranking_config_path.exists():
        logger.warning(f"No ranking config at {settings.ranking_config_path}")
    if not (
        settings.api_key
        and settings.api_base
        and settings.api_version
        and settings.embedding_deployment
    ):
        logger.warning("Embedding credentials incomplete; queries cannot be embedded")


def create_app(
    settings: Settings | None = None,
    store: IndexStore | None = None,
    embedder: QueryEmbedder | None = None,
) -> FastAPI:
    """Build the query service.

    Args:
        settings: Application settings. Defaults to ``load_settings()``.
        store: Index/config store. Defaults to one rooted at the project root.
        embedder: Query embedder. Defaults to an ``EmbeddingClient`` from settings.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or load_settings()
    store = store or IndexStore(settings.index_path, settings.ranking_config_path)
    embedder = embedder or EmbeddingClient.from_settings(settings)
    engine = RankingEngine(
        store,
        embedder,
        snippet_max_length=settings.search.snippet_max_length,
        title_weight=settings.search.title_weight,
        max_k=settings.search.max_k,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Lifespan handler for startup and shutdown events."""
        _log_startup_state(settings)
        logger.info(f"Search API ready (project root: {settings.project_root})")
        yield

    app = FastAPI(
        title="docsearch",
        description="Hybrid lexical and semantic search for the documentation portal",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.engine = engine

    # Browsers on the local Hugo dev server may read results
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origin_list,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/healthz")
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    app.include_router(search.router)

    return app


app = create_app()
