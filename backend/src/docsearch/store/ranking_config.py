"""Ranking configuration (search/search.config.json).

Every field is optional. Signal weights default to 0, so without a config
file every query has specificity 0 and uses ``lexWeightMin``.

Example:
    {
      "highlight": {"minTokenLength": 3},
      "ranking": {
        "lexWeightMin": 0.2,
        "lexWeightMax": 0.7,
        "signals": {"hasDigit": 0.25, "hasSpecialChar": 0.25, "hasCamelCase": 0.2,
                    "hasLongToken": 0.15, "manyTokens": 0.15},
        "thresholds": {"longTokenLength": 12, "manyTokensCount": 3}
      }
    }
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from docsearch.constants.search import (
    HIGHLIGHT_MIN_TOKEN_LENGTH,
    LEX_WEIGHT_MAX,
    LEX_WEIGHT_MIN,
    LONG_TOKEN_LENGTH,
    MANY_TOKENS_COUNT,
)
from docsearch.errors import NotFoundError, SearchError


class RankingConfigError(SearchError):
    """Raised when search.config.json cannot be parsed."""

    pass


class RankingConfigNotFoundError(NotFoundError):
    """Raised when search.config.json does not exist."""

    pass


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class HighlightConfig(_ConfigModel):
    """Client highlighting settings."""

    min_token_length: int = Field(default=HIGHLIGHT_MIN_TOKEN_LENGTH, alias="minTokenLength", ge=1)


class SignalWeights(_ConfigModel):
    """Additive contributions to query specificity."""

    has_digit: float = Field(default=0.0, alias="hasDigit")
    has_special_char: float = Field(default=0.0, alias="hasSpecialChar")
    has_camel_case: float = Field(default=0.0, alias="hasCamelCase")
    has_long_token: float = Field(default=0.0, alias="hasLongToken")
    many_tokens: float = Field(default=0.0, alias="manyTokens")


class SignalThresholds(_ConfigModel):
    """Thresholds gating the long-token and many-tokens signals."""

    long_token_length: int = Field(default=LONG_TOKEN_LENGTH, alias="longTokenLength", ge=1)
    many_tokens_count: int = Field(default=MANY_TOKENS_COUNT, alias="manyTokensCount", ge=1)


class RankingWeights(_ConfigModel):
    """Bounds of the lexical weight and the specificity signals."""

    lex_weight_min: float = Field(default=LEX_WEIGHT_MIN, alias="lexWeightMin", ge=0.0, le=1.0)
    lex_weight_max: float = Field(default=LEX_WEIGHT_MAX, alias="lexWeightMax", ge=0.0, le=1.0)
    signals: SignalWeights = Field(default_factory=SignalWeights)
    thresholds: SignalThresholds = Field(default_factory=SignalThresholds)

    @model_validator(mode="after")
    def _check_bounds(self) -> "RankingWeights":
        if self.lex_weight_min > self.lex_weight_max:
            raise ValueError("lexWeightMin must not exceed lexWeightMax")
        return self


class RankingConfig(_ConfigModel):
    """Top-level search.config.json document."""

    highlight: HighlightConfig = Field(default_factory=HighlightConfig)
    ranking: RankingWeights = Field(default_factory=RankingWeights)


def parse_ranking_config(raw: str, source: str = "search.config.json") -> RankingConfig:
    """Parse a ranking configuration document.

    Raises:
        RankingConfigError: If the document is not valid JSON or has invalid values.
    """
    try:
        return RankingConfig.model_validate_json(raw)
    except ValidationError as e:
        raise RankingConfigError(f"Invalid ranking config {source}: {e.error_count()} error(s)") from e


def load_ranking_config(path: Path) -> RankingConfig:
    """Read and parse a ranking configuration file."""
    return parse_ranking_config(path.read_text(encoding="utf-8"), source=path.name)
