"""Ranking engine tests."""

import math

import numpy as np
import pytest
from hypothesis import assume, given, strategies as st

from docsearch.embeddings.client import EmbeddingProviderError
from docsearch.search.ranking import (
    RankingEngine,
    clamp_k,
    compute_specificity,
    cosine_scores,
    cosine_similarity,
    fusion_weights,
    lexical_score,
    make_snippet,
    tokenize,
)
from docsearch.store.index_store import IndexNotFoundError, IndexStore, load_index_file
from docsearch.store.ranking_config import RankingConfig

SIGNALS_CONFIG = RankingConfig.model_validate(
    {
        "ranking": {
            "signals": {
                "hasDigit": 0.25,
                "hasSpecialChar": 0.25,
                "hasCamelCase": 0.2,
                "hasLongToken": 0.15,
                "manyTokens": 0.15,
            }
        }
    }
)


# =============================================================================
# Query analysis
# =============================================================================


def test_tokenize_lowercases_and_splits_on_punctuation():
    assert tokenize("Hva er OAuth2-token_flyt?") == ["hva", "er", "oauth2", "token", "flyt"]


def test_tokenize_drops_single_characters():
    assert tokenize("a b cd") == ["cd"]


def test_tokenize_keeps_letters_outside_ascii():
    assert tokenize("Årsoppgjør søknad") == ["årsoppgjør", "søknad"]


def test_specificity_is_zero_with_default_config():
    config = RankingConfig()
    query = "getUserById v2/api"

    assert compute_specificity(query, tokenize(query), config) == 0.0


@pytest.mark.parametrize(
    "query,expected",
    [
        ("hei", 0.0),
        ("versjon 2", 0.25),
        ("api/v", 0.25),
        ("getUser", 0.2),
        ("autorisasjonsserver", 0.15),
        ("en to tre", 0.15),
    ],
)
def test_specificity_signals(query, expected):
    assert compute_specificity(query, tokenize(query), SIGNALS_CONFIG) == pytest.approx(expected)


def test_specificity_is_clamped_to_one():
    config = RankingConfig.model_validate({"ranking": {"signals": {"hasDigit": 0.8, "hasSpecialChar": 0.8}}})

    assert compute_specificity("v1.2", tokenize("v1.2"), config) == 1.0


def test_fusion_weights_interpolate_between_bounds():
    config = RankingConfig()

    assert fusion_weights(0.0, config) == pytest.approx((0.2, 0.8))
    assert fusion_weights(1.0, config) == pytest.approx((0.7, 0.3))
    assert fusion_weights(0.5, config)[0] == pytest.approx(0.45)


@given(
    low=st.floats(min_value=0.0, max_value=1.0),
    high=st.floats(min_value=0.0, max_value=1.0),
    s1=st.floats(min_value=0.0, max_value=1.0),
    s2=st.floats(min_value=0.0, max_value=1.0),
)
def test_lexical_weight_is_monotonic_in_specificity(low, high, s1, s2):
    assume(low <= high)
    config = RankingConfig.model_validate({"ranking": {"lexWeightMin": low, "lexWeightMax": high}})
    s1, s2 = sorted((s1, s2))

    w1, v1 = fusion_weights(s1, config)
    w2, v2 = fusion_weights(s2, config)

    assert w1 <= w2 + 1e-12
    assert math.isclose(w1 + v1, 1.0, rel_tol=0, abs_tol=1e-15)
    assert math.isclose(w2 + v2, 1.0, rel_tol=0, abs_tol=1e-15)


# =============================================================================
# Scores
# =============================================================================


def test_lexical_score_counts_whole_words_only():
    assert lexical_score(["auth"], "authorization uses auth tokens", "") == pytest.approx(
        math.log1p(1)
    )


def test_lexical_score_weights_title_matches():
    score = lexical_score(["token"], "a token and a Token", "Token")

    assert score == pytest.approx(math.log1p(2 + 5))


def test_lexical_score_without_tokens_is_zero():
    assert lexical_score([], "text", "title") == 0.0


def test_lexical_score_escapes_regex_characters():
    assert lexical_score(["c++"], "c++ is not c", "") >= 0.0


def test_cosine_similarity_with_zero_norm_is_zero():
    query = np.array([1.0, 0.0], dtype=np.float32)

    assert cosine_similarity(query, 1.0, np.zeros(2, dtype=np.float32), 0.0) == 0.0
    assert cosine_similarity(query, 0.0, query, 1.0) == 0.0


def test_cosine_similarity_uses_common_prefix():
    query = np.array([1.0, 0.0, 5.0], dtype=np.float32)
    vector = np.array([1.0, 0.0], dtype=np.float32)

    assert cosine_similarity(query, 1.0, vector, 1.0) == pytest.approx(1.0)


VECTOR = st.lists(
    st.floats(min_value=-100, max_value=100, allow_nan=False, width=32), min_size=4, max_size=4
)


@given(a=VECTOR, b=VECTOR)
def test_cosine_similarity_is_bounded(a, b):
    qa = np.array(a, dtype=np.float32)
    qb = np.array(b, dtype=np.float32)
    na = float(np.linalg.norm(qa.astype(np.float64)))
    nb = float(np.linalg.norm(qb.astype(np.float64)))

    score = cosine_similarity(qa, na, qb, nb)

    assert -1.0 - 1e-6 <= score <= 1.0 + 1e-6


def test_cosine_scores_match_scalar_cosine(write_index, record_factory):
    path = write_index(
        [
            record_factory("a.md#0", [1.0, 2.0, 3.0]),
            record_factory("b.md#0", [0.0, 0.0, 0.0]),
            record_factory("c.md#0", [-1.0, 0.5, 0.0]),
        ]
    )
    index = load_index_file(path)
    query = np.array([0.5, -1.0, 2.0], dtype=np.float32)
    query_norm = float(np.linalg.norm(query.astype(np.float64)))

    scores = cosine_scores(query, index)

    for i in range(3):
        expected = cosine_similarity(query, query_norm, index.matrix[i], index.norms[i])
        assert scores[i] == pytest.approx(expected)
    assert scores[1] == 0.0


# =============================================================================
# Snippets
# =============================================================================


def test_snippet_centres_on_first_match():
    text = "x" * 500 + "needle" + "y" * 494

    snippet = make_snippet(["needle"], text, 240)

    assert len(text) == 1000
    assert snippet == text[420:660]
    assert len(snippet) == 240


def test_snippet_prefers_query_order_over_text_order():
    text = "alpha " * 100 + "beta " * 100

    snippet = make_snippet(["beta", "alpha"], text, 60)

    assert snippet == text[580:640]
    assert "beta" in snippet


def test_snippet_without_match_is_text_head():
    assert make_snippet(["missing"], "short text", 240) == "short text"
    assert make_snippet([], "abc" * 100, 10) == "abcabcabca"


def test_snippet_matches_substrings():
    """Snippets match inside words even though scoring does not."""
    assert make_snippet(["tilgang"], "Om tilgangsstyring", 240) == "Om tilgangsstyring"


@pytest.mark.parametrize("k,expected", [(0, 1), (1, 1), (10, 10), (999, 50)])
def test_clamp_k(k, expected):
    assert clamp_k(k) == expected


# =============================================================================
# Engine
# =============================================================================


@pytest.fixture
def autorisasjon_index(write_index, record_factory):
    """Exact-match record with a weaker vector than an unrelated record."""
    return write_index(
        [
            record_factory(
                "nb/drift.md#0",
                [1.0, 0.0],
                title="Driftsrutiner",
                text="Rutiner for backup og overvåking.",
                url="/nb/drift",
            ),
            record_factory(
                "nb/sikkerhet.md#0",
                [0.5, math.sqrt(0.75)],
                title="Autorisasjon",
                text="Autorisasjon styrer tilgang. Les om autorisasjon og autorisasjon i API.",
                url="/nb/sikkerhet/autorisasjon",
            ),
        ]
    )


async def test_exact_phrase_match_ranks_first(
    autorisasjon_index, index_path, config_path, embedder_factory
):
    embedder = embedder_factory(vectors={"autorisasjon": [1.0, 0.0]})
    engine = RankingEngine(IndexStore(index_path, config_path), embedder)

    response = await engine.rank("autorisasjon", 5)

    assert [r.id for r in response.results] == ["nb/sikkerhet.md#0", "nb/drift.md#0"]
    top, other = response.results
    assert top.lex_score == pytest.approx(math.log1p(3 + 5))
    assert top.vec_score == pytest.approx(0.5)
    assert other.vec_score == pytest.approx(1.0)
    assert response.ranking.specificity == 0.0
    assert response.ranking.w_lex == pytest.approx(0.2)
    assert top.score == pytest.approx(0.5 * 0.8 + math.log1p(8) * 0.2)


async def test_rank_returns_at_most_k(write_index, record_factory, index_path, config_path, stub_embedder):
    write_index([record_factory(f"doc{i}.md#0", [1.0, float(i)]) for i in range(5)])
    engine = RankingEngine(IndexStore(index_path, config_path), stub_embedder)

    response = await engine.rank("query", 3)

    assert response.k == 3
    assert len(response.results) == 3


async def test_ties_keep_index_order(write_index, record_factory, index_path, config_path, embedder_factory):
    write_index([record_factory(f"doc{i}.md#0", [1.0, 0.0], text="same") for i in range(4)])
    engine = RankingEngine(
        IndexStore(index_path, config_path), embedder_factory(vectors={"q": [1.0, 0.0]})
    )

    response = await engine.rank("q", 10)

    assert [r.id for r in response.results] == [f"doc{i}.md#0" for i in range(4)]


async def test_query_embedding_failure_fails_the_call(autorisasjon_index, index_path, config_path):
    class FailingEmbedder:
        async def embed_one(self, text):
            raise EmbeddingProviderError("Embeddings request failed: 429 slow down", 429)

    engine = RankingEngine(IndexStore(index_path, config_path), FailingEmbedder())

    with pytest.raises(EmbeddingProviderError):
        await engine.rank("autorisasjon", 5)


async def test_missing_index_fails_the_call(index_path, config_path, stub_embedder):
    engine = RankingEngine(IndexStore(index_path, config_path), stub_embedder)

    with pytest.raises(IndexNotFoundError):
        await engine.rank("q", 5)


async def test_response_serializes_with_camel_case(autorisasjon_index, index_path, config_path, stub_embedder):
    engine = RankingEngine(IndexStore(index_path, config_path), stub_embedder)

    body = (await engine.rank("autorisasjon", 1)).model_dump(by_alias=True)

    assert set(body) == {"q", "k", "ranking", "results"}
    assert set(body["ranking"]) == {"specificity", "wLex", "wVec"}
    assert set(body["results"][0]) == {
        "id",
        "url",
        "filePath",
        "title",
        "score",
        "vecScore",
        "lexScore",
        "snippet",
    }
