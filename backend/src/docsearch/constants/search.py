"""Search and ranking configuration.

These settings control the online query service. Each query is scored both
lexically (term counts in chunk text and title) and semantically (cosine
similarity of embeddings). The two scores are blended with a weight that
depends on how specific the query looks.
"""

# =============================================================================
# Result Limits
# =============================================================================
# k is clamped to [MIN_K, MAX_K]. Missing or invalid values use DEFAULT_K.

DEFAULT_K = 10
MIN_K = 1
MAX_K = 50

# =============================================================================
# Snippets
# =============================================================================
# Snippets are a fixed character window around the first query token found
# in the chunk text. One third of the window precedes the match.

SNIPPET_MAX_LENGTH = 240

# =============================================================================
# Lexical Scoring
# =============================================================================
# Title matches count TITLE_WEIGHT times as much as text matches. Query tokens
# shorter than MIN_QUERY_TOKEN_LENGTH are ignored.

TITLE_WEIGHT = 5
MIN_QUERY_TOKEN_LENGTH = 2

# =============================================================================
# Fusion Defaults
# =============================================================================
# Used when search.config.json does not set them. Specificity in [0, 1] moves
# the lexical weight from LEX_WEIGHT_MIN to LEX_WEIGHT_MAX.

LEX_WEIGHT_MIN = 0.2
LEX_WEIGHT_MAX = 0.7
LONG_TOKEN_LENGTH = 12
MANY_TOKENS_COUNT = 3
HIGHLIGHT_MIN_TOKEN_LENGTH = 3

# =============================================================================
# CORS
# =============================================================================
# Only local Hugo development servers may read search results cross-origin.

DEFAULT_CORS_ORIGINS = ("http://localhost:1313", "http://127.0.0.1:1313")
