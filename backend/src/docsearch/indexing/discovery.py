"""Discovery of indexable content files."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from docsearch.constants.indexer import (
    ALWAYS_IGNORED_DIRS,
    CONTENT_EXTENSIONS,
    DEFAULT_IGNORE_DIRS,
)


def is_content_file(name: str) -> bool:
    """Return True for markdown/MDX files that are not underscore-prefixed."""
    if name.startswith("_"):
        return False
    return Path(name).suffix.lower() in CONTENT_EXTENSIONS


def discover_files(
    content_root: Path,
    ignore_dirs: Iterable[str] = DEFAULT_IGNORE_DIRS,
) -> list[Path]:
    """Recursively list content files under ``content_root``.

    Directories named in ``ignore_dirs`` (plus .git, node_modules, dist and
    build) and anything starting with an underscore are pruned.

    Args:
        content_root: Root directory of the content tree.
        ignore_dirs: Extra directory names to skip at any depth.

    Returns:
        Absolute file paths sorted by their path relative to the root.

    Raises:
        FileNotFoundError: If the content root does not exist.
    """
    root = Path(content_root)
    if not root.is_dir():
        raise FileNotFoundError(f"Content root not found: {root}")

    skipped = set(ALWAYS_IGNORED_DIRS) | set(ignore_dirs)
    found: list[tuple[str, Path]] = []

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in skipped and not d.startswith("_")]
        for name in filenames:
            if is_content_file(name):
                path = Path(dirpath) / name
                found.append((path.relative_to(root).as_posix(), path))

    return [path for _, path in sorted(found)]
