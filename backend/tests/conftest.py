"""Shared pytest fixtures for all tests.

Embeddings are never requested from a real provider here: ``StubEmbedder``
derives a fixed vector from each input string so that builds and rankings
are reproducible.
"""

import hashlib
import json
from pathlib import Path
from typing import Sequence

import numpy as np
import pytest

from docsearch.config import load_settings
from docsearch.store.records import ChunkRecord, encode_embedding

STUB_DIM = 8


class StubEmbedder:
    """Deterministic stand-in for EmbeddingClient.

    Texts listed in ``vectors`` get that vector; anything else gets a vector
    derived from the SHA-256 of the text.
    """

    def __init__(self, dim: int = STUB_DIM, vectors: dict[str, Sequence[float]] | None = None):
        self.dim = dim
        self.vectors = dict(vectors or {})
        self.calls: list[list[str]] = []

    def vector_for(self, text: str) -> np.ndarray:
        if text in self.vectors:
            return np.asarray(self.vectors[text], dtype=np.float32)
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        raw = np.frombuffer(digest[: self.dim], dtype=np.uint8).astype(np.float32)
        return (raw - 127.5) / 127.5

    def ensure_configured(self) -> None:
        pass

    async def embed(self, texts: Sequence[str]) -> list[np.ndarray]:
        self.calls.append(list(texts))
        return [self.vector_for(text) for text in texts]

    async def embed_one(self, text: str) -> np.ndarray:
        self.calls.append([text])
        return self.vector_for(text)


def make_record(
    id: str,
    vector: Sequence[float],
    text: str = "",
    title: str = "",
    url: str | None = None,
) -> ChunkRecord:
    """Build a ChunkRecord with an encoded embedding."""
    encoded, dim, norm = encode_embedding(vector)
    file_path = id.split("#", 1)[0]
    return ChunkRecord(
        id=id,
        url=url or "/" + file_path.rsplit(".", 1)[0],
        file_path=file_path,
        title=title,
        text=text,
        embedding_b64=encoded,
        embedding_dim=dim,
        embedding_norm=norm,
    )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache around each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


@pytest.fixture
def stub_embedder() -> StubEmbedder:
    """Deterministic embedder with 8-dimensional vectors."""
    return StubEmbedder()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Project tree with an empty search/index directory and a default ranking config."""
    (tmp_path / "search" / "index").mkdir(parents=True)
    (tmp_path / "search" / "search.config.json").write_text("{}\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def index_path(project_root: Path) -> Path:
    return project_root / "search" / "index" / "index.jsonl"


@pytest.fixture
def config_path(project_root: Path) -> Path:
    return project_root / "search" / "search.config.json"


@pytest.fixture
def write_index(index_path: Path):
    """Return a function writing ChunkRecords to the project's index.jsonl."""

    def _write(records: Sequence[ChunkRecord], path: Path = index_path) -> Path:
        path.write_text(
            "".join(record.to_json_line() + "\n" for record in records), encoding="utf-8"
        )
        return path

    return _write


@pytest.fixture
def write_ranking_config(config_path: Path):
    """Return a function writing a ranking config dict as JSON."""

    def _write(config: dict) -> Path:
        config_path.write_text(json.dumps(config), encoding="utf-8")
        return config_path

    return _write


@pytest.fixture
def record_factory():
    """Return ``make_record``."""
    return make_record


@pytest.fixture
def embedder_factory():
    """Return the StubEmbedder class for tests that need custom vectors."""
    return StubEmbedder
