# backend/src/docsearch/embeddings/__init__.py
"""Embedding provider client."""

from docsearch.embeddings.client import (
    EmbeddingClient,
    EmbeddingConfigError,
    EmbeddingError,
    EmbeddingProviderError,
    EmbeddingShapeError,
)
from docsearch.embeddings.retry import RetryPolicy

__all__ = [
    "EmbeddingClient",
    "EmbeddingConfigError",
    "EmbeddingError",
    "EmbeddingProviderError",
    "EmbeddingShapeError",
    "RetryPolicy",
]
