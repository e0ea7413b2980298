# backend/src/docsearch/config.py
"""Configuration system for the docsearch backend.

This module handles loading settings from environment variables, an optional
``.env`` file and an optional INI file, providing sensible defaults and
computing derived paths for the ``search/`` directory structure.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os

from dotenv import dotenv_values

from docsearch.constants.embedding import EMBED_BASE_DELAY_SECONDS, EMBED_MAX_RETRIES
from docsearch.constants.indexer import EMBED_BATCH_SIZE, MAX_CHUNK_WORDS, MIN_CHUNK_WORDS
from docsearch.constants.search import (
    DEFAULT_CORS_ORIGINS,
    DEFAULT_K,
    MAX_K,
    SNIPPET_MAX_LENGTH,
    TITLE_WEIGHT,
)


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "indexer": {
        "min_words": (int, MIN_CHUNK_WORDS, 0, 10_000, "Lower word bound for a chunk"),
        "max_words": (int, MAX_CHUNK_WORDS, 1, 10_000, "Word count that forces a chunk flush"),
        "batch_size": (int, EMBED_BATCH_SIZE, 1, 2048, "Chunks per embedding request"),
        "max_files": (int, 0, 0, None, "Stop after this many files (0 = no limit)"),
    },
    "embedding": {
        "max_retries": (int, EMBED_MAX_RETRIES, 0, 20, "Retries for 429/5xx responses"),
        "base_delay_seconds": (
            float,
            EMBED_BASE_DELAY_SECONDS,
            0.0,
            60.0,
            "First backoff delay, doubled per retry",
        ),
    },
    "search": {
        "default_k": (int, DEFAULT_K, 1, 1000, "Results returned when k is missing"),
        "max_k": (int, MAX_K, 1, 1000, "Upper clamp for k"),
        "snippet_max_length": (int, SNIPPET_MAX_LENGTH, 20, 5000, "Snippet window in characters"),
        "title_weight": (int, TITLE_WEIGHT, 0, 100, "Weight of a title match vs a text match"),
    },
    "server": {
        "port": (int, 8000, 1, 65535, "Port for `docsearch serve`"),
        "cors_origins": (
            str,
            ",".join(DEFAULT_CORS_ORIGINS),
            None,
            None,
            "Comma-separated origins allowed to read results",
        ),
    },
}


@dataclass(frozen=True)
class IndexerConfig:
    """Offline indexer configuration."""

    min_words: int
    max_words: int
    batch_size: int
    max_files: int


@dataclass(frozen=True)
class EmbeddingConfig:
    """Embedding client retry configuration."""

    max_retries: int
    base_delay_seconds: float


@dataclass(frozen=True)
class SearchConfig:
    """Online search configuration."""

    default_k: int
    max_k: int
    snippet_max_length: int
    title_weight: int


@dataclass(frozen=True)
class ServerConfig:
    """Query service configuration."""

    port: int
    cors_origins: str

    @property
    def cors_origin_list(self) -> list[str]:
        """Allowed origins as a list, empty entries removed."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: int | float | str
            try:
                if typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float):
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def load_config_file(config_path: Optional[Path] = None) -> tuple[
    IndexerConfig, EmbeddingConfig, SearchConfig, ServerConfig
]:
    """Load the tunable sections from an INI file.

    Args:
        config_path: Path to config file. If None or missing, schema defaults are used.

    Returns:
        Tuple of (indexer, embedding, search, server) section configs.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path, encoding="utf-8")

    indexer = IndexerConfig(**_load_section(parser, "indexer", CONFIG_SCHEMA["indexer"]))
    embedding = EmbeddingConfig(**_load_section(parser, "embedding", CONFIG_SCHEMA["embedding"]))
    search = SearchConfig(**_load_section(parser, "search", CONFIG_SCHEMA["search"]))
    server = ServerConfig(**_load_section(parser, "server", CONFIG_SCHEMA["server"]))

    if indexer.min_words > indexer.max_words:
        raise ConfigError(
            f"[indexer].min_words ({indexer.min_words}) exceeds "
            f"[indexer].max_words ({indexer.max_words})"
        )
    if search.default_k > search.max_k:
        raise ConfigError(
            f"[search].default_k ({search.default_k}) exceeds [search].max_k ({search.max_k})"
        )

    return indexer, embedding, search, server


@dataclass(frozen=True)
class Config:
    """Complete application configuration.

    Embedding credentials may be missing here; the embedding client reports
    that when it is first asked to embed something.
    """

    project_root: Path
    content_root_override: Optional[Path] = None

    # Embedding provider (names follow the Azure OpenAI .env convention)
    api_key: Optional[str] = None
    api_base: Optional[str] = None
    api_version: Optional[str] = None
    embedding_deployment: Optional[str] = None

    indexer: IndexerConfig = None  # type: ignore[assignment]
    embedding: EmbeddingConfig = None  # type: ignore[assignment]
    search: SearchConfig = None  # type: ignore[assignment]
    server: ServerConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Fill section configs with schema defaults if not provided."""
        if self.indexer is None:
            object.__setattr__(self, "indexer", IndexerConfig(**_defaults("indexer")))
        if self.embedding is None:
            object.__setattr__(self, "embedding", EmbeddingConfig(**_defaults("embedding")))
        if self.search is None:
            object.__setattr__(self, "search", SearchConfig(**_defaults("search")))
        if self.server is None:
            object.__setattr__(self, "server", ServerConfig(**_defaults("server")))

    @property
    def search_dir(self) -> Path:
        """Path to the search/ directory under the project root."""
        return self.project_root / "search"

    @property
    def index_dir(self) -> Path:
        """Directory holding index.jsonl and meta.json."""
        return self.search_dir / "index"

    @property
    def index_path(self) -> Path:
        """Path to the line-oriented chunk index."""
        return self.index_dir / "index.jsonl"

    @property
    def meta_path(self) -> Path:
        """Path to the index provenance metadata."""
        return self.index_dir / "meta.json"

    @property
    def ranking_config_path(self) -> Path:
        """Path to the ranking configuration JSON."""
        return self.search_dir / "search.config.json"

    @property
    def ini_path(self) -> Path:
        """Path to the optional INI file with indexer/search tunables."""
        return self.search_dir / "config.ini"

    @property
    def content_root(self) -> Path:
        """Root of the markdown content tree to index."""
        if self.content_root_override is not None:
            return self.content_root_override
        return self.project_root / "hugo" / "content"

    @property
    def embedding_log_path(self) -> Path:
        """Path to the embedding request log file."""
        return self.search_dir / "logs" / "embedding-requests.jsonl"


def _read_env(project_root: Path) -> dict[str, str]:
    """Merge ``<project_root>/.env`` with the process environment.

    Process environment variables win over values from the file.
    """
    env: dict[str, str] = {}
    env_file = project_root / ".env"
    try:
        env_exists = env_file.is_file()
    except PermissionError:
        env_exists = False
    if env_exists:
        env.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    env.update(os.environ)
    return env


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables, .env and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Returns:
        Config object populated from environment and config files.

    Raises:
        ConfigError: If the INI file holds invalid values.
    """
    root_str = os.getenv("DOCSEARCH_PROJECT_ROOT")
    project_root = Path(root_str).resolve() if root_str else Path.cwd()

    env = _read_env(project_root)

    content_root_str = env.get("DOCSEARCH_CONTENT_ROOT")
    content_root = None
    if content_root_str:
        content_root = Path(content_root_str)
        if not content_root.is_absolute():
            content_root = (project_root / content_root).resolve()

    base = Config(project_root=project_root)
    indexer, embedding, search, server = load_config_file(base.ini_path)

    return Config(
        project_root=project_root,
        content_root_override=content_root,
        api_key=env.get("api_key") or None,
        api_base=env.get("api_base") or None,
        api_version=env.get("api_version") or None,
        embedding_deployment=(
            env.get("embedding_deployment_name") or env.get("deployment_name") or None
        ),
        indexer=indexer,
        embedding=embedding,
        search=search,
        server=server,
    )


# Alias used by FastAPI dependencies
Settings = Config
