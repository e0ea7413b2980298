"""Heading-anchored chunking of markdown documents.

A document is scanned line by line. Headings (``#`` to ``######``) always
start a new chunk and are prefixed to every chunk cut from their section.
Inside a section, lines accumulate until the running word count reaches
``max_words``, at which point the buffer is flushed immediately.
"""

from __future__ import annotations

import re

from docsearch.constants.indexer import MAX_CHUNK_WORDS, MIN_CHUNK_WORDS

HEADING_PATTERN = re.compile(r"^(#{1,6})\s+(.+)\s*$")
LINE_BREAK = re.compile(r"\r?\n")


def is_heading(line: str) -> bool:
    """Return True if the line is an ATX markdown heading."""
    return HEADING_PATTERN.match(line) is not None


def count_words(line: str) -> int:
    """Number of whitespace-separated tokens in a line."""
    return len(line.split())


def chunk_markdown(
    text: str,
    min_words: int = MIN_CHUNK_WORDS,
    max_words: int = MAX_CHUNK_WORDS,
) -> list[str]:
    """Split a cleaned markdown document into embeddable chunks.

    Heading flushes ignore ``min_words``: a section boundary always ends the
    current chunk, even a very short one. Buffers that are blank once joined
    are dropped, so a heading immediately followed by another heading emits
    nothing for the first one.

    Args:
        text: Markdown body with directives, shortcodes and front matter removed.
        min_words: Lower word bound (accepted for policy symmetry, see above).
        max_words: Word count at which the current buffer is flushed.

    Returns:
        Chunk strings in document order. Chunk ``i`` becomes ``<file>#i``.

    Raises:
        ValueError: If the bounds are inconsistent.
    """
    if max_words < 1:
        raise ValueError(f"max_words must be >= 1, got {max_words}")
    if min_words < 0 or min_words > max_words:
        raise ValueError(f"min_words must be in [0, {max_words}], got {min_words}")

    chunks: list[str] = []
    heading = ""
    buffer: list[str] = []
    words = 0

    def flush() -> None:
        nonlocal buffer, words
        body = "\n".join(buffer).strip()
        buffer = []
        words = 0
        if not body:
            return
        prefix = f"{heading}\n" if heading else ""
        chunks.append((prefix + body).strip())

    for line in LINE_BREAK.split(text):
        if is_heading(line):
            flush()
            heading = line.strip()
            continue

        buffer.append(line)
        words += count_words(line)
        if words >= max_words:
            flush()

    flush()
    return chunks
