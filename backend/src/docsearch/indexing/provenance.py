"""Provenance helpers for index metadata."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


def git_head_commit(path: Path) -> str | None:
    """Return the HEAD commit hash of the git repository containing ``path``.

    Returns:
        The full commit hash, or None if ``path`` is not inside a git
        repository or git is not installed.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            cwd=path,
            capture_output=True,
            text=True,
        )
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.debug(f"git unavailable for {path}: {e}")
        return None

    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
