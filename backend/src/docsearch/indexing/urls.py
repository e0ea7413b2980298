"""Mapping of content file paths to canonical site URLs.

Hugo multilingual files look like:
    content/foo/_index.en.md    -> /en/foo
    content/foo/bar/index.nb.md -> /nb/foo/bar
    content/foo/bar.en.md       -> /en/foo/bar
    content/_index.md           -> /

The "portal" style produces Hugo pretty URLs for a single-language site
instead (``/foo/bar/``).
"""

import re
from typing import Literal

from docsearch.constants.indexer import LANGUAGE_CODES

UrlStyle = Literal["language", "portal"]

_CONTENT_FILE = re.compile(
    r"^(.*?)(?:\.(" + "|".join(LANGUAGE_CODES) + r"))?\.(md|mdx)$",
    re.IGNORECASE,
)
_INDEX_BASENAME = re.compile(r"(?:^|/)_?index$", re.IGNORECASE)
_REPEATED_SLASHES = re.compile(r"/+")


def _split_content_path(rel_path: str) -> tuple[str, str | None] | None:
    """Return (clean base path, language) or None if not a content file."""
    match = _CONTENT_FILE.match(rel_path)
    if match is None:
        return None
    base = _INDEX_BASENAME.sub("", match.group(1))
    clean = _REPEATED_SLASHES.sub("/", base.lstrip("/")).rstrip("/")
    lang = match.group(2).lower() if match.group(2) else None
    return clean, lang


def derive_url(rel_path: str, style: UrlStyle = "language") -> str:
    """Derive the canonical URL for a content file.

    Args:
        rel_path: Path relative to the content root (a leading ``content/``
            segment is also accepted and stripped).
        style: "language" keeps an en/nb filename suffix as a URL prefix and
            never ends in a slash (except the root); "portal" drops the
            language and ends every URL in a slash.

    Returns:
        Site path starting with "/".
    """
    rel = rel_path.replace("\\", "/")
    if rel.startswith("content/"):
        rel = rel[len("content/") :]

    parts = _split_content_path(rel)
    if parts is None:
        return "/" + rel.lstrip("/")
    clean, lang = parts

    if style == "portal":
        return f"/{clean}/" if clean else "/"

    if lang:
        return f"/{lang}/{clean}".rstrip("/")
    return f"/{clean}".rstrip("/") or "/"
