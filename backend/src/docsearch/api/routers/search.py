"""Search endpoints."""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from docsearch.api.deps import get_engine, get_settings
from docsearch.config import Settings
from docsearch.errors import SearchError
from docsearch.search.ranking import RankingEngine, clamp_k

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"])

ALLOWED_METHODS = "GET, OPTIONS"


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def parse_k(raw: str | None, default: int, max_k: int) -> int:
    """Parse the ``k`` query parameter.

    Missing, non-integer or values below 1 give ``default``; larger values
    are clamped to ``max_k``.
    """
    if raw is None:
        return default
    try:
        k = int(raw.strip())
    except ValueError:
        return default
    if k < 1:
        return default
    return clamp_k(k, max_k)


@router.get("")
async def search(
    q: str | None = Query(None, description="Search query"),
    k: str | None = Query(None, description="Number of results (1-50)"),
    engine: RankingEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    """Hybrid lexical + semantic search over the documentation index."""
    query = (q or "").strip()
    if not query:
        return _error(400, "Missing q")

    top_k = parse_k(k, settings.search.default_k, settings.search.max_k)

    try:
        response = await engine.rank(query, top_k)
    except SearchError as e:
        logger.error(f"Search failed for {query!r}: {e}")
        return _error(500, str(e))
    except Exception:
        logger.exception(f"Unexpected error while searching for {query!r}")
        return _error(500, "Internal server error")

    return response.model_dump(by_alias=True)


@router.api_route("", methods=["HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"], include_in_schema=False)
async def method_not_allowed():
    """Reject everything but GET (CORS preflights are answered by the middleware)."""
    return _error(405, "Method not allowed", headers={"Allow": ALLOWED_METHODS})
