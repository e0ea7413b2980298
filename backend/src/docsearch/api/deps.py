"""FastAPI dependency injection functions.

Long-lived objects are built once by ``create_app`` and kept on
``app.state``; these dependencies hand them to route handlers.
"""

from fastapi import Request

from docsearch.config import Settings
from docsearch.search.ranking import RankingEngine


def get_settings(request: Request) -> Settings:
    """Get the settings the application was created with."""
    return request.app.state.settings


def get_engine(request: Request) -> RankingEngine:
    """Get the application's ranking engine."""
    return request.app.state.engine
