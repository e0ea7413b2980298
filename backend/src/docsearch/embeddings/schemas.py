"""Validated shape of an embeddings response.

Providers answer ``{"data": [{"embedding": [float, ...]}, ...]}`` with one
item per input, in input order. Anything else is rejected here instead of
failing later on a missing key.
"""

from pydantic import BaseModel, ConfigDict, Field


class EmbeddingItem(BaseModel):
    """One embedding vector in a provider response."""

    model_config = ConfigDict(extra="ignore")

    embedding: list[float] = Field(..., min_length=1)
    index: int | None = None


class EmbeddingResponseBody(BaseModel):
    """Provider response body for an embeddings request."""

    model_config = ConfigDict(extra="ignore")

    data: list[EmbeddingItem]
    model: str | None = None
