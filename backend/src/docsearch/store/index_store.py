"""Cached access to the chunk index and the ranking configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import numpy as np
from pydantic import ValidationError

from docsearch.errors import NotFoundError, SearchError
from docsearch.store.cache import MtimeCache
from docsearch.store.ranking_config import (
    RankingConfig,
    RankingConfigNotFoundError,
    load_ranking_config,
)
from docsearch.store.records import ChunkRecord, decode_embedding

logger = logging.getLogger(__name__)


class IndexNotFoundError(NotFoundError):
    """Raised when index.jsonl does not exist."""

    pass


class IndexFormatError(SearchError):
    """Raised when index.jsonl holds a line that is not a valid chunk record."""

    def __init__(self, message: str, line_number: int | None = None):
        self.message = message
        self.line_number = line_number
        super().__init__(message)


@dataclass(frozen=True)
class LoadedIndex:
    """Parsed index held in memory between reloads.

    ``matrix`` row ``i`` is the embedding of ``records[i]`` and ``norms[i]``
    its stored L2 norm.
    """

    records: tuple[ChunkRecord, ...]
    matrix: np.ndarray
    norms: np.ndarray
    dim: int

    def __len__(self) -> int:
        return len(self.records)


def load_index_file(path: Path) -> LoadedIndex:
    """Parse index.jsonl into a LoadedIndex.

    Blank lines are skipped. The matrix width is the dimension of the first
    record; every other record must match it.

    Raises:
        IndexFormatError: For an unparseable line, a bad embedding payload, an
            embedding whose length differs from its declared dimension, or
            mixed embedding dimensions.
    """
    records: list[ChunkRecord] = []
    vectors: list[np.ndarray] = []
    dim: int | None = None

    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                record = ChunkRecord.model_validate_json(line)
                vector = decode_embedding(record.embedding_b64)
            except (ValidationError, ValueError) as e:
                raise IndexFormatError(
                    f"Invalid index record at {path.name}:{line_number}", line_number
                ) from e

            if vector.shape[0] != record.embedding_dim:
                raise IndexFormatError(
                    f"Embedding at {path.name}:{line_number} has {vector.shape[0]} values, "
                    f"declared {record.embedding_dim}",
                    line_number,
                )
            if dim is None:
                dim = vector.shape[0]
            elif vector.shape[0] != dim:
                raise IndexFormatError(
                    f"Embedding dimension {vector.shape[0]} at {path.name}:{line_number} "
                    f"does not match {dim}",
                    line_number,
                )
            records.append(record)
            vectors.append(vector)

    if not records:
        return LoadedIndex(
            records=(),
            matrix=np.zeros((0, 0), dtype=np.float32),
            norms=np.zeros(0, dtype=np.float64),
            dim=0,
        )

    matrix = np.vstack(vectors).astype(np.float32, copy=False)
    norms = np.array([record.embedding_norm for record in records], dtype=np.float64)
    return LoadedIndex(records=tuple(records), matrix=matrix, norms=norms, dim=dim or 0)


def _missing_index(path: Path) -> Exception:
    return IndexNotFoundError(
        f"Search index not found at {path}. Run `docsearch index` first.", str(path)
    )


def _missing_config(path: Path) -> Exception:
    return RankingConfigNotFoundError(f"Ranking config not found at {path}", str(path))


class IndexStore:
    """Serves the current index and ranking config, reloading on file change."""

    def __init__(
        self,
        index_path: Path,
        config_path: Path,
        index_loader: Callable[[Path], LoadedIndex] = load_index_file,
        config_loader: Callable[[Path], RankingConfig] = load_ranking_config,
    ):
        """Initialize the store.

        Args:
            index_path: Path to index.jsonl.
            config_path: Path to search.config.json.
            index_loader: Parser for the index file.
            config_loader: Parser for the ranking config file.
        """
        self._index = MtimeCache(index_path, index_loader, missing_error=_missing_index)
        self._config = MtimeCache(config_path, config_loader, missing_error=_missing_config)

    @property
    def index_path(self) -> Path:
        return self._index.path

    @property
    def config_path(self) -> Path:
        return self._config.path

    async def load_index(self) -> LoadedIndex:
        """Return the current index.

        Raises:
            IndexNotFoundError: index.jsonl does not exist.
            IndexFormatError: index.jsonl cannot be parsed.
        """
        return await self._index.get()

    async def load_config(self) -> RankingConfig:
        """Return the current ranking config.

        Raises:
            RankingConfigNotFoundError: search.config.json does not exist.
            RankingConfigError: search.config.json cannot be parsed.
        """
        return await self._config.get()

    def invalidate(self) -> None:
        """Force both files to be re-read on next access."""
        self._index.invalidate()
        self._config.invalidate()
