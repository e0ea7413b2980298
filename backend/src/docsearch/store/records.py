"""On-disk index records and their embedding codec.

``index.jsonl`` holds one ``ChunkRecord`` per line. Embeddings are stored as
base64 of the raw little-endian float32 buffer, together with their length
and their L2 norm computed at write time.
"""

from __future__ import annotations

import base64
import binascii
from typing import Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

FLOAT32_LE = np.dtype("<f4")


class ChunkRecord(BaseModel):
    """A single chunk of indexed content."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    url: str
    file_path: str = Field(alias="filePath")
    title: str = ""
    text: str
    embedding_b64: str = Field(alias="embeddingB64")
    embedding_dim: int = Field(alias="embeddingDim", ge=0)
    embedding_norm: float = Field(alias="embeddingNorm", ge=0.0)

    def to_json_line(self) -> str:
        """Serialize as one line of index.jsonl (camelCase keys, no newline)."""
        return self.model_dump_json(by_alias=True)


class ChunkingInfo(BaseModel):
    """Chunking policy used for an index generation."""

    model_config = ConfigDict(populate_by_name=True)

    min_words: int = Field(alias="minWords")
    max_words: int = Field(alias="maxWords")


class IndexMetadata(BaseModel):
    """Provenance for one index generation (meta.json)."""

    model_config = ConfigDict(populate_by_name=True)

    created_at: str = Field(alias="createdAt")
    source: str
    content_root_path: str = Field(alias="contentRootPath")
    commit: str | None = None
    embedding_deployment: str | None = Field(default=None, alias="embeddingDeployment")
    api_base: str | None = Field(default=None, alias="apiBase")
    api_version: str | None = Field(default=None, alias="apiVersion")
    chunking: ChunkingInfo | None = None
    batch_size: int | None = Field(default=None, alias="batchSize")


def encode_embedding(values: Sequence[float] | np.ndarray) -> tuple[str, int, float]:
    """Encode a vector for storage.

    Args:
        values: Embedding values.

    Returns:
        Tuple of (base64 float32 buffer, dimension, L2 norm of the stored float32 values).
    """
    vector = np.asarray(values, dtype=FLOAT32_LE).ravel()
    norm = float(np.linalg.norm(vector.astype(np.float64)))
    encoded = base64.b64encode(vector.tobytes()).decode("ascii")
    return encoded, int(vector.shape[0]), norm


def decode_embedding(encoded: str) -> np.ndarray:
    """Decode a stored embedding into a float32 array.

    Raises:
        ValueError: If the payload is not valid base64 or not a whole number of floats.
    """
    try:
        raw = base64.b64decode(encoded, validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64 embedding: {e}") from e
    if len(raw) % FLOAT32_LE.itemsize:
        raise ValueError(f"embedding buffer of {len(raw)} bytes is not a float32 array")
    return np.frombuffer(raw, dtype=FLOAT32_LE).astype(np.float32)
