"""Embedding provider configuration.

The indexer and the query service both call an external embedding
deployment. Transient failures (HTTP 429 and 5xx) are retried with
exponential backoff; everything else fails immediately.
"""

# =============================================================================
# Retry
# =============================================================================
# EMBED_MAX_RETRIES is the number of retries after the first attempt, so a
# request is tried at most EMBED_MAX_RETRIES + 1 times. The delay before
# retry n is EMBED_BASE_DELAY_SECONDS * 2 ** (n - 1).

EMBED_MAX_RETRIES = 5
EMBED_BASE_DELAY_SECONDS = 0.75

RETRYABLE_STATUS_CODES = frozenset({429})

# =============================================================================
# Provider
# =============================================================================
# litellm routes "azure/<deployment>" to
# {api_base}/openai/deployments/<deployment>/embeddings?api-version=...

PROVIDER_PREFIX = "azure"
