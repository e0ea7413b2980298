"""Command-line interface: build the index, serve the API, run ad-hoc queries."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer

from docsearch.config import ConfigError, Settings, load_settings
from docsearch.embeddings.client import EmbeddingClient, EmbeddingError
from docsearch.errors import SearchError
from docsearch.indexing.builder import IndexBuilder
from docsearch.search.highlight import group_results, highlight, tokenize_for_highlight
from docsearch.search.ranking import RankingEngine
from docsearch.search.schemas import SearchResponse
from docsearch.store.index_store import IndexStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Hybrid search for the documentation portal.",
)

HIGHLIGHT_ON = "\x1b[1;33m"
HIGHLIGHT_OFF = "\x1b[0m"


def _fail(message: str) -> typer.Exit:
    typer.secho(message, fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def _settings() -> Settings:
    try:
        return load_settings()
    except ConfigError as e:
        raise _fail(f"Configuration error: {e}")


@app.callback()
def root_callback(
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Log at DEBUG level")] = False,
) -> None:
    """Hybrid lexical + semantic search over markdown documentation."""
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=logging.DEBUG if verbose else logging.INFO,
    )


@app.command("index")
def index_command(
    content_root: Annotated[
        Optional[Path], typer.Option("--content-root", help="Markdown content tree to index")
    ] = None,
    out_dir: Annotated[
        Optional[Path], typer.Option("--out-dir", help="Directory for index.jsonl and meta.json")
    ] = None,
    max_files: Annotated[
        Optional[int], typer.Option("--max-files", min=0, help="Index only the first N files")
    ] = None,
    url_style: Annotated[
        str, typer.Option("--url-style", help="URL policy: language or portal")
    ] = "language",
    source: Annotated[str, typer.Option("--source", help="Source label for meta.json")] = "portal",
) -> None:
    """Rebuild the search index from the content tree."""
    settings = _settings()
    if url_style not in ("language", "portal"):
        raise _fail(f"Unknown --url-style {url_style!r} (expected language or portal)")

    embedder = EmbeddingClient.from_settings(settings, log_requests=True)
    try:
        embedder.ensure_configured()
    except EmbeddingError as e:
        raise _fail(str(e))

    builder = IndexBuilder(
        content_root=content_root or settings.content_root,
        out_dir=out_dir or settings.index_dir,
        embedder=embedder,
        project_root=settings.project_root,
        min_words=settings.indexer.min_words,
        max_words=settings.indexer.max_words,
        batch_size=settings.indexer.batch_size,
        url_style=url_style,  # type: ignore[arg-type]
        source_label=source,
        max_files=settings.indexer.max_files if max_files is None else max_files,
        provider_info={
            "deployment": settings.embedding_deployment,
            "api_base": settings.api_base,
            "api_version": settings.api_version,
        },
    )

    try:
        summary = asyncio.run(builder.build())
    except (SearchError, FileNotFoundError) as e:
        raise _fail(f"Indexing failed: {e}")

    typer.echo(f"Indexed {summary.files} files into {summary.chunks} chunks")
    typer.echo(f"Output: {summary.index_path}")


@app.command("serve")
def serve_command(
    host: Annotated[str, typer.Option("--host", help="Interface to bind")] = "127.0.0.1",
    port: Annotated[Optional[int], typer.Option("--port", help="Port to listen on")] = None,
) -> None:
    """Run the search API with uvicorn."""
    import uvicorn

    settings = _settings()
    uvicorn.run("docsearch.main:app", host=host, port=port or settings.server.port)


def render_results(response: SearchResponse, min_token_length: int, color: bool) -> str:
    """Format results grouped by site section with query tokens highlighted."""
    if not response.results:
        return "Ingen treff."

    tokens = tokenize_for_highlight(response.q, min_token_length)
    on, off = (HIGHLIGHT_ON, HIGHLIGHT_OFF) if color else ("", "")

    lines = []
    for label, items in group_results(response.results).items():
        lines.append(f"{label} ({len(items)})")
        for item in items:
            title = highlight(item.title or item.url, tokens, on, off, escape=False)
            lines.append(f"  {title}  [{item.score:.3f}]")
            lines.append(f"    {item.url}")
            if item.snippet:
                snippet = " ".join(item.snippet.split())
                lines.append(f"    {highlight(snippet, tokens, on, off, escape=False)}")
    return "\n".join(lines)


@app.command("query")
def query_command(
    query: Annotated[str, typer.Argument(help="Search query")],
    k: Annotated[int, typer.Option("--k", min=1, help="Number of results")] = 10,
    as_json: Annotated[bool, typer.Option("--json", help="Print the raw JSON response")] = False,
    color: Annotated[
        Optional[bool], typer.Option("--color/--no-color", help="Highlight matches with ANSI colors")
    ] = None,
) -> None:
    """Search the index from the terminal."""
    settings = _settings()
    query = query.strip()
    if not query:
        raise _fail("Missing query")

    store = IndexStore(settings.index_path, settings.ranking_config_path)
    engine = RankingEngine(
        store,
        EmbeddingClient.from_settings(settings),
        snippet_max_length=settings.search.snippet_max_length,
        title_weight=settings.search.title_weight,
        max_k=settings.search.max_k,
    )

    async def run() -> tuple[SearchResponse, int]:
        response = await engine.rank(query, k)
        config = await store.load_config()
        return response, config.highlight.min_token_length

    try:
        response, min_token_length = asyncio.run(run())
    except SearchError as e:
        raise _fail(f"Search failed: {e}")

    if as_json:
        typer.echo(response.model_dump_json(by_alias=True, indent=2))
        return

    use_color = sys.stdout.isatty() if color is None else color
    typer.echo(render_results(response, min_token_length, use_color))


if __name__ == "__main__":
    app()
