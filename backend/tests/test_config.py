"""Configuration tests.

Tests verify behavior (types, ranges, loading) not specific values.
"""

from pathlib import Path

import pytest

from docsearch.config import (
    CONFIG_SCHEMA,
    Config,
    ConfigError,
    load_config_file,
    load_settings,
)

PROVIDER_VARS = ("api_key", "api_base", "api_version", "embedding_deployment_name", "deployment_name")


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """Project root with a clean environment pointing at it."""
    for name in PROVIDER_VARS + ("DOCSEARCH_CONTENT_ROOT",):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOCSEARCH_PROJECT_ROOT", str(tmp_path))
    (tmp_path / "search").mkdir()
    return tmp_path


def write_config(workspace: Path, content: str) -> Path:
    """Write search/config.ini and return its path."""
    config_path = workspace / "search" / "config.ini"
    config_path.write_text(content)
    return config_path


# =============================================================================
# INI file
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    sections = dict(zip(CONFIG_SCHEMA, load_config_file(None)))

    for section_name, keys in CONFIG_SCHEMA.items():
        section = sections[section_name]
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_defaults_are_within_their_ranges():
    for section_name, keys in CONFIG_SCHEMA.items():
        for key, (typ, default, min_val, max_val, _) in keys.items():
            if typ in (int, float):
                assert min_val is None or default >= min_val, f"{section_name}.{key}"
                assert max_val is None or default <= max_val, f"{section_name}.{key}"


def test_invalid_type_raises_clear_error(workspace: Path):
    config_path = write_config(workspace, "[indexer]\nmax_words = lots")

    with pytest.raises(ConfigError) as exc_info:
        load_config_file(config_path)

    assert "[indexer].max_words" in str(exc_info.value)
    assert "int" in str(exc_info.value)


def test_out_of_range_value_raises(workspace: Path):
    config_path = write_config(workspace, "[embedding]\nmax_retries = 100")

    with pytest.raises(ConfigError, match="maximum"):
        load_config_file(config_path)


def test_min_words_above_max_words_raises(workspace: Path):
    config_path = write_config(workspace, "[indexer]\nmin_words = 500\nmax_words = 100")

    with pytest.raises(ConfigError, match="min_words"):
        load_config_file(config_path)


def test_ini_overrides_are_applied(workspace: Path):
    write_config(
        workspace,
        "[search]\nmax_k = 20\n[server]\ncors_origins = https://docs.example, http://localhost:1313\n",
    )

    settings = load_settings()

    assert settings.search.max_k == 20
    assert settings.search.default_k == 10
    assert settings.server.cors_origin_list == ["https://docs.example", "http://localhost:1313"]


# =============================================================================
# Environment
# =============================================================================


def test_paths_are_derived_from_project_root(workspace: Path):
    settings = load_settings()

    assert settings.project_root == workspace.resolve()
    assert settings.index_path == workspace.resolve() / "search" / "index" / "index.jsonl"
    assert settings.ranking_config_path == workspace.resolve() / "search" / "search.config.json"
    assert settings.content_root == workspace.resolve() / "hugo" / "content"


def test_relative_content_root_is_resolved_against_project_root(workspace: Path, monkeypatch):
    monkeypatch.setenv("DOCSEARCH_CONTENT_ROOT", "site/content")

    settings = load_settings()

    assert settings.content_root == workspace.resolve() / "site" / "content"


def test_missing_credentials_are_not_an_error(workspace: Path):
    settings = load_settings()

    assert settings.api_key is None
    assert settings.embedding_deployment is None


def test_dotenv_fills_provider_settings(workspace: Path):
    (workspace / ".env").write_text(
        "api_key=from-file\napi_base=https://file.example\napi_version=2024-02-01\n"
        "deployment_name=fallback-deployment\n"
    )

    settings = load_settings()

    assert settings.api_key == "from-file"
    assert settings.api_base == "https://file.example"
    assert settings.embedding_deployment == "fallback-deployment"


def test_environment_wins_over_dotenv(workspace: Path, monkeypatch):
    (workspace / ".env").write_text("api_key=from-file\nembedding_deployment_name=file-dep\n")
    monkeypatch.setenv("api_key", "from-env")

    settings = load_settings()

    assert settings.api_key == "from-env"
    assert settings.embedding_deployment == "file-dep"


def test_embedding_deployment_name_preferred_over_deployment_name(workspace: Path, monkeypatch):
    monkeypatch.setenv("embedding_deployment_name", "embed")
    monkeypatch.setenv("deployment_name", "chat")

    assert load_settings().embedding_deployment == "embed"


def test_settings_are_cached(workspace: Path):
    assert load_settings() is load_settings()


def test_config_defaults_sections(tmp_path: Path):
    config = Config(project_root=tmp_path)

    assert config.indexer.max_words == 450
    assert config.embedding.base_delay_seconds == 0.75
    assert config.server.port == 8000
