"""Offline index builder.

Walks a content tree, chunks every document, embeds the chunks in fixed-size
batches and appends one record per chunk to ``index.jsonl``. Each batch is
flushed to disk as soon as its embeddings arrive, so an interrupted run keeps
every complete batch written before the failure.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterable, Protocol, Sequence

import numpy as np

from docsearch.constants.indexer import (
    DEFAULT_IGNORE_DIRS,
    DEFAULT_SOURCE_LABEL,
    EMBED_BATCH_SIZE,
    MAX_CHUNK_WORDS,
    MIN_CHUNK_WORDS,
)
from docsearch.embeddings.client import EmbeddingShapeError
from docsearch.indexing.chunking import chunk_markdown
from docsearch.indexing.discovery import discover_files
from docsearch.indexing.markup import clean_document
from docsearch.indexing.provenance import git_head_commit
from docsearch.indexing.urls import UrlStyle, derive_url
from docsearch.store.records import ChunkingInfo, ChunkRecord, IndexMetadata, encode_embedding

logger = logging.getLogger(__name__)

INDEX_FILE = "index.jsonl"
META_FILE = "meta.json"


class BatchEmbedder(Protocol):
    """Anything that can embed a batch of strings (EmbeddingClient or a stub)."""

    async def embed(self, texts: Sequence[str]) -> list[np.ndarray]: ...


@dataclass(frozen=True)
class PendingChunk:
    """A chunk waiting for its embedding."""

    id: str
    url: str
    file_path: str
    title: str
    text: str


@dataclass(frozen=True)
class BuildSummary:
    """Result of a completed build."""

    files: int
    chunks: int
    index_path: Path
    meta_path: Path


class IndexBuilder:
    """Builds ``index.jsonl`` and ``meta.json`` from a markdown content tree."""

    def __init__(
        self,
        content_root: Path,
        out_dir: Path,
        embedder: BatchEmbedder,
        project_root: Path | None = None,
        min_words: int = MIN_CHUNK_WORDS,
        max_words: int = MAX_CHUNK_WORDS,
        batch_size: int = EMBED_BATCH_SIZE,
        ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
        url_style: UrlStyle = "language",
        source_label: str = DEFAULT_SOURCE_LABEL,
        max_files: int = 0,
        provider_info: dict[str, str | None] | None = None,
    ) -> None:
        """Initialize the builder.

        Args:
            content_root: Directory containing markdown/MDX sources.
            out_dir: Directory receiving index.jsonl and meta.json.
            embedder: Batch embedding client.
            project_root: Root that ``filePath``/``id`` are made relative to.
                Defaults to the content root.
            min_words: Lower chunk bound passed to the chunker.
            max_words: Upper chunk bound passed to the chunker.
            batch_size: Chunks per embedding request.
            ignore_dirs: Directory names excluded from discovery.
            url_style: URL policy, see ``derive_url``.
            source_label: Free-form source identity recorded in meta.json.
            max_files: Index only the first N discovered files (0 = all).
            provider_info: Deployment/api_base/api_version for meta.json.
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._content_root = Path(content_root).resolve()
        self._out_dir = Path(out_dir)
        self._embedder = embedder
        self._project_root = Path(project_root).resolve() if project_root else self._content_root
        self._min_words = min_words
        self._max_words = max_words
        self._batch_size = batch_size
        self._ignore_dirs = tuple(ignore_dirs)
        self._url_style: UrlStyle = url_style
        self._source_label = source_label
        self._max_files = max_files
        self._provider_info = provider_info or {}

    @property
    def index_path(self) -> Path:
        return self._out_dir / INDEX_FILE

    @property
    def meta_path(self) -> Path:
        return self._out_dir / META_FILE

    def _relative_file_path(self, path: Path) -> str:
        """Path used for ``filePath`` and record ids (posix separators)."""
        try:
            return path.relative_to(self._project_root).as_posix()
        except ValueError:
            return path.relative_to(self._content_root).as_posix()

    def _build_metadata(self) -> IndexMetadata:
        return IndexMetadata(
            created_at=datetime.now(timezone.utc).isoformat(),
            source=self._source_label,
            content_root_path=str(self._content_root),
            commit=git_head_commit(self._content_root),
            embedding_deployment=self._provider_info.get("deployment"),
            api_base=self._provider_info.get("api_base"),
            api_version=self._provider_info.get("api_version"),
            chunking=ChunkingInfo(min_words=self._min_words, max_words=self._max_words),
            batch_size=self._batch_size,
        )

    def chunks_for_file(self, path: Path) -> list[PendingChunk]:
        """Clean and chunk one content file.

        Args:
            path: Absolute path to a file under the content root.

        Returns:
            Pending chunks in document order.
        """
        raw = path.read_text(encoding="utf-8", errors="replace")
        document = clean_document(raw)
        file_path = self._relative_file_path(path)
        url = derive_url(path.relative_to(self._content_root).as_posix(), self._url_style)

        pending: list[PendingChunk] = []
        for index, text in enumerate(chunk_markdown(document.body, self._min_words, self._max_words)):
            pending.append(
                PendingChunk(
                    id=f"{file_path}#{index}",
                    url=url,
                    file_path=file_path,
                    title=document.title,
                    text=text,
                )
            )
        return pending

    async def _flush(self, out: IO[str], batch: list[PendingChunk]) -> None:
        """Embed one batch and append its records to the index file."""
        vectors = await self._embedder.embed([chunk.text for chunk in batch])
        if len(vectors) != len(batch):
            raise EmbeddingShapeError(
                f"embedder returned {len(vectors)} vectors for {len(batch)} chunks"
            )

        lines = []
        for chunk, vector in zip(batch, vectors):
            encoded, dim, norm = encode_embedding(vector)
            record = ChunkRecord(
                id=chunk.id,
                url=chunk.url,
                file_path=chunk.file_path,
                title=chunk.title,
                text=chunk.text,
                embedding_b64=encoded,
                embedding_dim=dim,
                embedding_norm=norm,
            )
            lines.append(record.to_json_line() + "\n")

        out.write("".join(lines))
        out.flush()
        os.fsync(out.fileno())

    async def build(self) -> BuildSummary:
        """Rebuild the index from scratch.

        Returns:
            BuildSummary with file and chunk counts.

        Raises:
            FileNotFoundError: If the content root does not exist.
            EmbeddingError: If a batch cannot be embedded; records from earlier
                batches remain in the index file.
        """
        files = discover_files(self._content_root, self._ignore_dirs)
        if self._max_files > 0:
            files = files[: self._max_files]

        self._out_dir.mkdir(parents=True, exist_ok=True)
        self.meta_path.write_text(
            self._build_metadata().model_dump_json(by_alias=True, indent=2) + "\n",
            encoding="utf-8",
        )

        total_chunks = 0
        pending: list[PendingChunk] = []

        with open(self.index_path, "w", encoding="utf-8") as out:
            for path in files:
                for chunk in self.chunks_for_file(path):
                    pending.append(chunk)
                    total_chunks += 1
                    if len(pending) >= self._batch_size:
                        await self._flush(out, pending)
                        pending = []

            if pending:
                await self._flush(out, pending)

        logger.info(f"Indexed {len(files)} files into {total_chunks} chunks")
        logger.info(f"Output: {self.index_path}")

        return BuildSummary(
            files=len(files),
            chunks=total_chunks,
            index_path=self.index_path,
            meta_path=self.meta_path,
        )
