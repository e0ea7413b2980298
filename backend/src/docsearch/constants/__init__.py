"""Configuration constants.

Re-exports all constants for convenient importing:
    from docsearch.constants import SNIPPET_MAX_LENGTH, EMBED_BATCH_SIZE
"""

from docsearch.constants.indexer import *  # noqa: F403
from docsearch.constants.embedding import *  # noqa: F403
from docsearch.constants.search import *  # noqa: F403
