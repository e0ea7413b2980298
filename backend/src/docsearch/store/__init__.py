"""Index storage: on-disk records, ranking config and their caches."""

from docsearch.store.index_store import (
    IndexFormatError,
    IndexNotFoundError,
    IndexStore,
    LoadedIndex,
    load_index_file,
)
from docsearch.store.ranking_config import (
    RankingConfig,
    RankingConfigError,
    RankingConfigNotFoundError,
    load_ranking_config,
)
from docsearch.store.records import ChunkRecord, IndexMetadata, decode_embedding, encode_embedding

__all__ = [
    "ChunkRecord",
    "IndexFormatError",
    "IndexMetadata",
    "IndexNotFoundError",
    "IndexStore",
    "LoadedIndex",
    "RankingConfig",
    "RankingConfigError",
    "RankingConfigNotFoundError",
    "decode_embedding",
    "encode_embedding",
    "load_index_file",
    "load_ranking_config",
]
