"""Removal of non-prose markup before chunking.

Content files are Hugo markdown or MDX. Before chunking we drop:
- MDX ``import``/``export`` lines
- Hugo shortcodes (``{{< ... >}}`` and ``{{% ... %}}``, possibly multi-line)
- YAML front matter, keeping its ``title`` field
"""

import re
from dataclasses import dataclass, field
from typing import Any

import yaml

MDX_DIRECTIVE = re.compile(r"^\s*(?:import|export)\s+")
SHORTCODE = re.compile(r"\{\{[<%].*?[>%]\}\}", re.DOTALL)
EXCESS_BLANK_LINES = re.compile(r"\n{3,}")
FRONT_MATTER = re.compile(r"\A---[ \t]*\n(?:(.*?)\n)?---[ \t]*(?:\n|\Z)", re.DOTALL)


@dataclass
class CleanDocument:
    """A content file reduced to its title and prose body."""

    title: str
    body: str
    front_matter: dict[str, Any] = field(default_factory=dict)


def strip_mdx_directives(text: str) -> str:
    """Drop MDX import/export lines."""
    lines = re.split(r"\r?\n", text)
    return "\n".join(line for line in lines if not MDX_DIRECTIVE.match(line))


def strip_shortcodes(text: str) -> str:
    """Remove Hugo shortcodes and collapse the blank runs they leave behind."""
    return EXCESS_BLANK_LINES.sub("\n\n", SHORTCODE.sub("", text))


def parse_front_matter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Parse YAML front matter from the start of a document.

    Args:
        content: Document text that may start with a ``---`` fenced block.

    Returns:
        Tuple of (metadata_dict, remaining_content). If no valid front matter
        is found, returns (None, original_content).
    """
    match = FRONT_MATTER.match(content)
    if match is None:
        return None, content

    try:
        metadata = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError:
        return None, content

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        return None, content

    return metadata, content[match.end() :]


def clean_document(raw: str) -> CleanDocument:
    """Strip directives and shortcodes, then split off front matter.

    Args:
        raw: File contents as read from disk.

    Returns:
        CleanDocument with the front matter title ("" when absent or not a string).
    """
    normalized = strip_shortcodes(strip_mdx_directives(raw))
    metadata, body = parse_front_matter(normalized)
    metadata = metadata or {}
    title = metadata.get("title")
    return CleanDocument(
        title=title if isinstance(title, str) else "",
        body=body,
        front_matter=metadata,
    )
