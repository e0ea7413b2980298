"""Tests for markup cleanup before chunking."""

from docsearch.indexing.markup import (
    clean_document,
    parse_front_matter,
    strip_mdx_directives,
    strip_shortcodes,
)


def test_strip_mdx_directives_drops_import_and_export_lines():
    text = "import Tabs from '@theme/Tabs'\n# Title\n  export const meta = {}\nBody text"

    assert strip_mdx_directives(text) == "# Title\nBody text"


def test_strip_mdx_directives_keeps_prose_mentioning_import():
    """Only lines that start with the keyword are directives."""
    text = "We import data nightly.\nexporting is manual"

    assert strip_mdx_directives(text) == text


def test_strip_shortcodes_removes_both_delimiters():
    text = 'Before {{< figure src="a.png" >}} middle {{% notice %}} after'

    assert strip_shortcodes(text) == "Before  middle  after"


def test_strip_shortcodes_spans_lines_and_collapses_blank_runs():
    text = "Intro\n\n{{< tabs\n  name=\"x\" >}}\n\n\nOutro"

    assert strip_shortcodes(text) == "Intro\n\nOutro"


def test_strip_shortcodes_is_non_greedy():
    """Text between two shortcodes survives."""
    assert strip_shortcodes("{{< a >}}keep{{< /a >}}") == "keep"


def test_parse_front_matter_returns_metadata_and_body():
    metadata, body = parse_front_matter("---\ntitle: Hello\nweight: 3\n---\nBody\n")

    assert metadata == {"title": "Hello", "weight": 3}
    assert body == "Body\n"


def test_parse_front_matter_without_fence_returns_original():
    metadata, body = parse_front_matter("# Just markdown")

    assert metadata is None
    assert body == "# Just markdown"


def test_parse_front_matter_invalid_yaml_means_no_front_matter():
    content = "---\ntitle: [unclosed\n---\nBody"

    metadata, body = parse_front_matter(content)

    assert metadata is None
    assert body == content


def test_parse_front_matter_empty_block():
    metadata, body = parse_front_matter("---\n---\nBody")

    assert metadata == {}
    assert body == "Body"


def test_clean_document_extracts_title_and_body():
    raw = (
        "---\n"
        "title: Autorisasjon\n"
        "---\n"
        "import X from 'y'\n"
        "# Oversikt\n"
        "{{< hint >}}\n"
        "Tekst om tilgang.\n"
    )

    document = clean_document(raw)

    assert document.title == "Autorisasjon"
    assert "import" not in document.body
    assert "{{<" not in document.body
    assert document.body.strip() == "# Oversikt\n\nTekst om tilgang."


def test_clean_document_non_string_title_is_empty():
    document = clean_document("---\ntitle: 42\n---\nBody")

    assert document.title == ""
    assert document.front_matter == {"title": 42}
