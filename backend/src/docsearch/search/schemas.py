"""Pydantic schemas for search responses."""

from pydantic import BaseModel, ConfigDict, Field


class SearchResult(BaseModel):
    """One ranked chunk."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    url: str
    file_path: str = Field(alias="filePath")
    title: str
    score: float
    vec_score: float = Field(alias="vecScore")
    lex_score: float = Field(alias="lexScore")
    snippet: str


class RankingInfo(BaseModel):
    """How the lexical and vector scores were blended for a query."""

    model_config = ConfigDict(populate_by_name=True)

    specificity: float
    w_lex: float = Field(alias="wLex")
    w_vec: float = Field(alias="wVec")


class SearchResponse(BaseModel):
    """Search response body."""

    q: str
    k: int
    ranking: RankingInfo
    results: list[SearchResult]
