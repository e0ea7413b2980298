"""Result highlighting and grouping as the portal's search modal renders them.

The query service returns plain snippets. Clients mark query tokens and
group results by site section; ``docsearch query`` uses these helpers to show
results the same way in a terminal.
"""

import html
import re
from typing import Iterable, Sequence, TypeVar

from docsearch.constants.search import HIGHLIGHT_MIN_TOKEN_LENGTH

DEFAULT_GROUP_LABEL = "Dokumentasjon"
MARK_OPEN = '<mark class="site-search__hl">'
MARK_CLOSE = "</mark>"

_TOKEN_SEPARATOR = re.compile(r"[\W_]+")

R = TypeVar("R")


def tokenize_for_highlight(query: str, min_length: int = HIGHLIGHT_MIN_TOKEN_LENGTH) -> list[str]:
    """Lower-cased query tokens worth highlighting."""
    return [t for t in _TOKEN_SEPARATOR.split((query or "").lower()) if len(t) >= min_length]


def highlight(
    text: str,
    tokens: Sequence[str],
    open_tag: str = MARK_OPEN,
    close_tag: str = MARK_CLOSE,
    escape: bool = True,
) -> str:
    """Wrap every case-insensitive token occurrence in ``open_tag``/``close_tag``.

    Longer tokens are tried first so "autorisasjon" wins over "auto". With
    ``escape`` the text between and inside marks is HTML-escaped.
    """
    if not text:
        return ""
    quote = html.escape if escape else (lambda s: s)
    unique = sorted(set(t for t in tokens if t), key=len, reverse=True)
    if not unique:
        return quote(text)

    pattern = re.compile("|".join(re.escape(t) for t in unique), re.IGNORECASE)
    parts = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(quote(text[last : match.start()]))
        parts.append(open_tag + quote(match.group(0)) + close_tag)
        last = match.end()
    parts.append(quote(text[last:]))
    return "".join(parts)


def group_label(url: str) -> str:
    """Section label for a result URL: first path segment after en/nb, capitalised."""
    parts = [p for p in (url or "").split("/") if p]
    start = 1 if parts and parts[0] in ("nb", "en") else 0
    group = parts[start] if len(parts) > start else DEFAULT_GROUP_LABEL
    return group[:1].upper() + group[1:]


def group_results(results: Iterable[R], url_of=lambda r: r.url) -> dict[str, list[R]]:
    """Group results by section label, keeping first-seen group and result order."""
    groups: dict[str, list[R]] = {}
    for result in results:
        groups.setdefault(group_label(url_of(result)), []).append(result)
    return groups
