# backend/src/docsearch/embeddings/client.py
"""LiteLLM-based embedding client."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np
from litellm import aembedding
from litellm.exceptions import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    BadGatewayError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ServiceUnavailableError,
    Timeout,
    UnprocessableEntityError,
)
from pydantic import ValidationError

from docsearch.constants.embedding import (
    EMBED_BASE_DELAY_SECONDS,
    EMBED_MAX_RETRIES,
    PROVIDER_PREFIX,
    RETRYABLE_STATUS_CODES,
)
from docsearch.embeddings.retry import RetryPolicy
from docsearch.embeddings.schemas import EmbeddingResponseBody
from docsearch.errors import SearchError

if TYPE_CHECKING:
    from docsearch.config import Config

logger = logging.getLogger(__name__)

_PROVIDER_ERRORS = (
    AuthenticationError,
    PermissionDeniedError,
    BadRequestError,
    NotFoundError,
    UnprocessableEntityError,
    RateLimitError,
    Timeout,
    APIConnectionError,
    InternalServerError,
    BadGatewayError,
    ServiceUnavailableError,
    APIError,
)


class EmbeddingError(SearchError):
    """Base exception for embedding client errors."""

    pass


class EmbeddingConfigError(EmbeddingError):
    """Raised when provider credentials or endpoint settings are missing."""

    pass


class EmbeddingProviderError(EmbeddingError):
    """Raised when the provider rejects or fails a request.

    Attributes:
        status_code: HTTP status reported by the provider, if any.
        retryable: True for rate limiting (429) and server errors (5xx).
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        self.retryable = is_retryable_status(status_code)
        super().__init__(message)


class EmbeddingShapeError(EmbeddingError):
    """Raised when a provider response does not match the request."""

    pass


def is_retryable_status(status_code: int | None) -> bool:
    """Return True for HTTP statuses worth retrying (429 and 5xx)."""
    if status_code is None:
        return False
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code <= 599


def is_transient(error: BaseException) -> bool:
    """Retry predicate: only retryable provider errors are transient."""
    return isinstance(error, EmbeddingProviderError) and error.retryable


def default_retry_policy(
    max_retries: int = EMBED_MAX_RETRIES, base_delay: float = EMBED_BASE_DELAY_SECONDS
) -> RetryPolicy:
    """Retry policy used for embedding requests."""
    return RetryPolicy(max_retries=max_retries, base_delay=base_delay, is_retryable=is_transient)


class EmbeddingClient:
    """Embedding client for an Azure OpenAI deployment, called through LiteLLM.

    One ``embed`` call is one provider request. Vectors come back as float32
    numpy arrays in input order.
    """

    def __init__(
        self,
        api_key: str | None,
        api_base: str | None,
        api_version: str | None,
        deployment: str | None,
        retry_policy: RetryPolicy | None = None,
        log_path: Path | None = None,
    ):
        """Initialize embedding client.

        Args:
            api_key: Provider API key, sent as the ``api-key`` header.
            api_base: Provider base URL (e.g. https://example.openai.azure.com).
            api_version: Provider API version query parameter.
            deployment: Embedding deployment name.
            retry_policy: Backoff policy for transient failures.
            log_path: Optional path to JSONL log file for request logging.
        """
        self.api_key = api_key
        self.api_base = api_base.rstrip("/") if api_base else api_base
        self.api_version = api_version
        self.deployment = deployment
        self.retry_policy = retry_policy or default_retry_policy()
        self.log_path = log_path

    @classmethod
    def from_settings(cls, settings: "Config", log_requests: bool = False) -> "EmbeddingClient":
        """Build a client from application settings."""
        return cls(
            api_key=settings.api_key,
            api_base=settings.api_base,
            api_version=settings.api_version,
            deployment=settings.embedding_deployment,
            retry_policy=default_retry_policy(
                max_retries=settings.embedding.max_retries,
                base_delay=settings.embedding.base_delay_seconds,
            ),
            log_path=settings.embedding_log_path if log_requests else None,
        )

    @property
    def model_string(self) -> str:
        """LiteLLM model string for the deployment."""
        return f"{PROVIDER_PREFIX}/{self.deployment}"

    def ensure_configured(self) -> None:
        """Fail fast if any provider setting is missing.

        Raises:
            EmbeddingConfigError: Listing the missing settings (never their values).
        """
        missing = [
            name
            for name, value in (
                ("api_key", self.api_key),
                ("api_base", self.api_base),
                ("api_version", self.api_version),
                ("embedding_deployment_name (or deployment_name)", self.deployment),
            )
            if not value
        ]
        if missing:
            raise EmbeddingConfigError(f"Missing required env: {', '.join(missing)}")

    def _log_request(
        self,
        input_count: int,
        duration_ms: int,
        error: str | None,
        status_code: int | None = None,
    ) -> None:
        """Append one request entry to the JSONL log file."""
        if not self.log_path:
            return

        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "deployment": self.deployment,
            "api_base": self.api_base,
            "input_count": input_count,
            "duration_ms": duration_ms,
            "error": error,
        }
        if status_code is not None:
            entry["status_code"] = status_code

        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry) + "\n")
        except OSError as e:
            logger.debug(f"Could not write embedding log {self.log_path}: {e}")

    @staticmethod
    def _to_payload(response: Any) -> Any:
        """Turn a LiteLLM response object into plain data for validation."""
        if isinstance(response, dict):
            return response
        if hasattr(response, "model_dump"):
            return response.model_dump()
        return {"data": getattr(response, "data", None)}

    async def _request(self, payload_input: str | list[str], expected: int) -> EmbeddingResponseBody:
        """Issue a single embeddings request and validate its shape.

        Raises:
            EmbeddingProviderError: Provider returned an error status.
            EmbeddingShapeError: Response body is malformed or has the wrong length.
        """
        start_time = time.perf_counter()
        try:
            response = await aembedding(
                model=self.model_string,
                input=payload_input,
                api_key=self.api_key,
                api_base=self.api_base,
                api_version=self.api_version,
                max_retries=0,
            )
        except _PROVIDER_ERRORS as e:
            status_code = getattr(e, "status_code", None)
            message = getattr(e, "message", None) or str(e)
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            self._log_request(expected, duration_ms, error=message, status_code=status_code)
            raise EmbeddingProviderError(
                f"Embeddings request failed: {status_code} {message}", status_code=status_code
            ) from e

        duration_ms = int((time.perf_counter() - start_time) * 1000)

        try:
            body = EmbeddingResponseBody.model_validate(self._to_payload(response))
        except ValidationError as e:
            self._log_request(expected, duration_ms, error="malformed response")
            raise EmbeddingShapeError("Unexpected embeddings response shape") from e

        if len(body.data) != expected:
            self._log_request(expected, duration_ms, error="length mismatch")
            raise EmbeddingShapeError(
                f"Unexpected embeddings response shape: expected {expected} vectors, "
                f"got {len(body.data)}"
            )

        self._log_request(expected, duration_ms, error=None)
        return body

    async def embed(self, texts: Sequence[str]) -> list[np.ndarray]:
        """Embed a batch of texts with one provider request.

        Args:
            texts: Input strings.

        Returns:
            One float32 vector per input, in input order.

        Raises:
            EmbeddingConfigError: Provider settings are missing.
            EmbeddingProviderError: Request failed (after retries, if transient).
            EmbeddingShapeError: Response did not match the request.
        """
        inputs = list(texts)
        if not inputs:
            return []
        self.ensure_configured()

        body = await self.retry_policy.run(lambda: self._request(inputs, len(inputs)))
        return [np.asarray(item.embedding, dtype=np.float32) for item in body.data]

    async def embed_one(self, text: str) -> np.ndarray:
        """Embed a single string (sent as a plain string input)."""
        self.ensure_configured()

        body = await self.retry_policy.run(lambda: self._request(text, 1))
        return np.asarray(body.data[0].embedding, dtype=np.float32)
