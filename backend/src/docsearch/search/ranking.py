"""Hybrid ranking: lexical term counts fused with embedding similarity.

Every chunk gets two scores:

- ``lexScore``: ``log1p`` of whole-word query token matches, with title
  matches weighted (5x by default).
- ``vecScore``: cosine similarity between the query embedding and the stored
  chunk embedding, using the norm stored at index time.

They are blended as ``score = vecScore * wVec + lexScore * wLex``. ``wLex``
grows with query specificity: queries with digits, punctuation, camelCase,
long tokens or many tokens look like exact lookups and lean lexical, plain
natural-language queries lean semantic.
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from typing import Protocol, Sequence

import numpy as np

from docsearch.constants.search import (
    MAX_K,
    MIN_K,
    MIN_QUERY_TOKEN_LENGTH,
    SNIPPET_MAX_LENGTH,
    TITLE_WEIGHT,
)
from docsearch.search.schemas import RankingInfo, SearchResponse, SearchResult
from docsearch.store.index_store import IndexStore, LoadedIndex
from docsearch.store.ranking_config import RankingConfig

logger = logging.getLogger(__name__)

_TOKEN_SEPARATOR = re.compile(r"[\W_]+")
_HAS_DIGIT = re.compile(r"[0-9]")
_HAS_SPECIAL_CHAR = re.compile(r"[-_/.:]")
_HAS_CAMEL_CASE = re.compile(r"[a-z][A-Z]")


class QueryEmbedder(Protocol):
    """Anything that can embed a single query string."""

    async def embed_one(self, text: str) -> np.ndarray: ...


def tokenize(query: str) -> list[str]:
    """Lower-case the query and split it into letter/digit runs of length >= 2."""
    return [
        token
        for token in _TOKEN_SEPARATOR.split(query.lower())
        if len(token) >= MIN_QUERY_TOKEN_LENGTH
    ]


def compute_specificity(query: str, tokens: Sequence[str], config: RankingConfig) -> float:
    """Score how much a query looks like an exact lookup, in [0, 1].

    Args:
        query: Raw query text (camelCase is detected before lower-casing).
        tokens: Output of ``tokenize(query)``.
        config: Signal weights and thresholds.
    """
    signals = config.ranking.signals
    thresholds = config.ranking.thresholds

    longest = max((len(token) for token in tokens), default=0)

    score = 0.0
    if _HAS_DIGIT.search(query):
        score += signals.has_digit
    if _HAS_SPECIAL_CHAR.search(query):
        score += signals.has_special_char
    if _HAS_CAMEL_CASE.search(query):
        score += signals.has_camel_case
    if longest >= thresholds.long_token_length:
        score += signals.has_long_token
    if len(tokens) >= thresholds.many_tokens_count:
        score += signals.many_tokens
    return max(0.0, min(1.0, score))


def fusion_weights(specificity: float, config: RankingConfig) -> tuple[float, float]:
    """Return ``(w_lex, w_vec)`` for a specificity; the two always sum to 1."""
    low = config.ranking.lex_weight_min
    high = config.ranking.lex_weight_max
    w_lex = low + (high - low) * specificity
    return w_lex, 1.0 - w_lex


def _token_patterns(tokens: Sequence[str]) -> list[re.Pattern[str]]:
    return [re.compile(rf"\b{re.escape(token)}\b") for token in tokens]


def lexical_score(
    tokens: Sequence[str],
    text: str,
    title: str,
    title_weight: int = TITLE_WEIGHT,
    patterns: Sequence[re.Pattern[str]] | None = None,
) -> float:
    """``log1p(text matches + title_weight * title matches)`` over all tokens.

    Matches are whole-word and case-insensitive. ``patterns`` may carry the
    precompiled token patterns when scoring many chunks for one query.
    """
    if not tokens:
        return 0.0
    if patterns is None:
        patterns = _token_patterns(tokens)

    haystack = text.lower()
    title_lower = title.lower()
    total = 0
    for pattern in patterns:
        total += len(pattern.findall(haystack))
        total += title_weight * len(pattern.findall(title_lower))
    return math.log1p(total)


def cosine_similarity(
    query: np.ndarray, query_norm: float, vector: np.ndarray, vector_norm: float
) -> float:
    """Cosine similarity from precomputed norms; 0 when either norm is 0.

    Vectors of different length are compared over their common prefix.
    """
    denom = query_norm * vector_norm
    if not denom:
        return 0.0
    length = min(query.shape[0], vector.shape[0])
    dot = float(np.dot(query[:length].astype(np.float64), vector[:length].astype(np.float64)))
    return dot / denom


def cosine_scores(query: np.ndarray, index: LoadedIndex) -> np.ndarray:
    """Vectorised ``cosine_similarity`` of the query against every indexed chunk."""
    if len(index) == 0:
        return np.zeros(0, dtype=np.float64)

    query = np.asarray(query, dtype=np.float32)
    query_norm = float(np.linalg.norm(query.astype(np.float64)))
    length = min(query.shape[0], index.matrix.shape[1])
    dots = index.matrix[:, :length].astype(np.float64) @ query[:length].astype(np.float64)
    denom = index.norms * query_norm
    return np.divide(dots, denom, out=np.zeros_like(dots), where=denom != 0)


def make_snippet(tokens: Sequence[str], text: str, max_length: int = SNIPPET_MAX_LENGTH) -> str:
    """Cut a window of ``max_length`` characters around the first matching token.

    Tokens are tried in query order; the first one found anywhere in the
    text (substring, case-insensitive) wins, and a third of the window is
    placed before it. Without a match the head of the text is returned.
    """
    lower = text.lower()
    for token in tokens:
        idx = lower.find(token.lower())
        if idx != -1:
            start = max(0, idx - max_length // 3)
            return text[start : start + max_length]
    return text[:max_length]


def clamp_k(k: int, max_k: int = MAX_K) -> int:
    """Clamp a result count into ``[1, max_k]``."""
    return max(MIN_K, min(max_k, k))


class RankingEngine:
    """Ranks indexed chunks for a query.

    Holds no state of its own: the index and config come from the store and
    the query vector from the embedder on every call.
    """

    def __init__(
        self,
        store: IndexStore,
        embedder: QueryEmbedder,
        snippet_max_length: int = SNIPPET_MAX_LENGTH,
        title_weight: int = TITLE_WEIGHT,
        max_k: int = MAX_K,
    ):
        self.store = store
        self.embedder = embedder
        self.snippet_max_length = snippet_max_length
        self.title_weight = title_weight
        self.max_k = max_k

    async def rank(self, query: str, k: int) -> SearchResponse:
        """Return the top ``k`` chunks for ``query``.

        Raises:
            SearchError: If the index, the ranking config or the query
                embedding cannot be obtained. No partial ranking is returned.
        """
        k = clamp_k(k, self.max_k)

        index, config, query_vector = await asyncio.gather(
            self.store.load_index(),
            self.store.load_config(),
            self.embedder.embed_one(query),
        )

        tokens = tokenize(query)
        specificity = compute_specificity(query, tokens, config)
        w_lex, w_vec = fusion_weights(specificity, config)

        vec_scores = cosine_scores(query_vector, index)
        patterns = _token_patterns(tokens)
        lex_scores = np.array(
            [
                lexical_score(tokens, record.text, record.title, self.title_weight, patterns)
                for record in index.records
            ],
            dtype=np.float64,
        )
        fused = vec_scores * w_vec + lex_scores * w_lex

        order = np.argsort(-fused, kind="stable")[:k]

        results = []
        for i in order:
            record = index.records[i]
            results.append(
                SearchResult(
                    id=record.id,
                    url=record.url,
                    file_path=record.file_path,
                    title=record.title,
                    score=float(fused[i]),
                    vec_score=float(vec_scores[i]),
                    lex_score=float(lex_scores[i]),
                    snippet=make_snippet(tokens, record.text, self.snippet_max_length),
                )
            )

        logger.debug(
            f"Ranked {len(index)} chunks for {query!r}: specificity={specificity:.2f}, "
            f"wLex={w_lex:.2f}"
        )

        return SearchResponse(
            q=query,
            k=k,
            ranking=RankingInfo(specificity=specificity, w_lex=w_lex, w_vec=w_vec),
            results=results,
        )
