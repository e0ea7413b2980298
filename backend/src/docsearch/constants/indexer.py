"""Offline indexer configuration.

These settings control how the content tree is walked, how documents are
cut into chunks and how chunks are grouped into embedding requests.
"""

# =============================================================================
# Chunk Sizes
# =============================================================================
# Chunks are bounded by whitespace-separated word counts. A running buffer is
# flushed as soon as it reaches MAX_CHUNK_WORDS, so a chunk never exceeds the
# bound by more than one line. MIN_CHUNK_WORDS is the lower bound the chunker
# accepts; heading boundaries always flush regardless of it.

MIN_CHUNK_WORDS = 120
MAX_CHUNK_WORDS = 450

# =============================================================================
# Embedding Batches
# =============================================================================
# Chunks from all files are sent to the embedding provider in fixed-size
# batches. Each batch is written to the index file as soon as it returns, so a
# failed run keeps every record up to the last flushed batch.

EMBED_BATCH_SIZE = 16

# =============================================================================
# Content Discovery
# =============================================================================
# Only markdown sources are indexed. Files and directories whose names start
# with an underscore are skipped (Hugo section files such as _index.md are
# handled by the URL policy when they are included explicitly). Build output,
# theme and asset directories never contain prose worth indexing.

CONTENT_EXTENSIONS = frozenset({".md", ".mdx"})

ALWAYS_IGNORED_DIRS = frozenset({".git", "node_modules", "dist", "build"})

DEFAULT_IGNORE_DIRS = (
    "themes",
    "exampleSite",
    "archetypes",
    ".github",
    ".devcontainer",
    "static",
    "resources",
    "public",
)

# =============================================================================
# URLs
# =============================================================================
# Language codes recognised as filename suffixes (foo.en.md -> /en/foo).

LANGUAGE_CODES = ("en", "nb")

DEFAULT_SOURCE_LABEL = "portal"
