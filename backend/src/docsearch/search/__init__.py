"""Query-time ranking and result presentation."""

from docsearch.search.ranking import RankingEngine
from docsearch.search.schemas import RankingInfo, SearchResponse, SearchResult

__all__ = ["RankingEngine", "RankingInfo", "SearchResponse", "SearchResult"]
