"""Offline indexing: content discovery, chunking and index building."""

from docsearch.indexing.builder import BuildSummary, IndexBuilder
from docsearch.indexing.chunking import chunk_markdown

__all__ = ["BuildSummary", "IndexBuilder", "chunk_markdown"]
