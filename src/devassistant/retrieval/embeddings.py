"""
Embedding generation via an Ollama-compatible embedding endpoint.

When the endpoint is unreachable, slow, or returns something unusable, the
provider falls back to a deterministic bag-of-words hashing embedder so
indexing and search keep working offline.
"""

import asyncio
import logging
import re
import time
from typing import Optional

import httpx
import numpy as np
from pydantic import BaseModel, FiniteFloat

from devassistant.config import Settings, get_settings
from devassistant.retrieval.models import Embedding, EmbeddingSource

logger = logging.getLogger(__name__)

# Everything that is not a Latin/Cyrillic letter, a digit or whitespace.
_NON_WORD_RE = re.compile(r"[^a-zа-яё0-9\s]")

_RETRYABLE_STATUS = (429, 503)


class EmbeddingResponseError(ValueError):
    """Raised when the embedding endpoint answers with an unusable body."""


class _EmbeddingResponse(BaseModel):
    embedding: list[FiniteFloat]


def string_hash(value: str) -> int:
    """
    32-bit signed polynomial hash of a string (h = 31 * h + code point).

    Unlike the built-in hash(), the result does not depend on the
    interpreter's hash seed, so embeddings are stable across processes.
    """
    h = 0
    for ch in value:
        h = (31 * h + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def tokenize(text: str) -> list[str]:
    """Lowercase, strip punctuation and split into words."""
    return _NON_WORD_RE.sub("", text.lower()).split()


def hash_embedding(text: str, dimension: int = 384) -> list[float]:
    """
    Deterministic hashed bag-of-words embedding.

    Each token increments the slot `abs(string_hash(token)) % dimension`;
    the result is L2-normalized. Text without tokens yields a zero vector.

    Args:
        text: Text to embed
        dimension: Length of the returned vector

    Returns:
        List of `dimension` floats
    """
    vector = np.zeros(dimension, dtype=np.float64)
    for token in tokenize(text):
        vector[abs(string_hash(token)) % dimension] += 1.0

    norm = np.linalg.norm(vector)
    if norm > 0:
        vector /= norm
    return vector.tolist()


class EmbeddingProvider:
    """
    Generate embeddings with the remote endpoint, falling back to hashing.

    Example:
        >>> provider = EmbeddingProvider(use_remote=False)
        >>> result = provider.embed("How is the index persisted?")
        >>> result.is_fallback, result.dimension
        (True, 384)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        dimension: Optional[int] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        use_remote: Optional[bool] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            base_url: Server base URL (default from settings)
            model: Embedding model id (default from settings)
            dimension: Dimension of fallback embeddings (default from settings)
            timeout: Request timeout in seconds (default from settings)
            max_retries: Attempts on 429/503 responses (default from settings)
            use_remote: Whether to call the endpoint at all (default from settings)
            settings: Settings to read defaults from
        """
        settings = settings or get_settings()
        self.base_url = (settings.llm_api_url if base_url is None else base_url).rstrip("/")
        self.model = settings.embedding_model if model is None else model
        self.dimension = settings.embedding_dimension if dimension is None else dimension
        self.timeout = settings.embedding_timeout if timeout is None else timeout
        self.max_retries = settings.embedding_max_retries if max_retries is None else max_retries
        if self.dimension < 1:
            raise ValueError(f"Embedding dimension must be positive, got {self.dimension}")
        self.use_remote = settings.use_remote_embeddings if use_remote is None else use_remote
        self.initial_retry_delay = 0.5  # seconds
        self._fallback_reported = False

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/embeddings"

    def embed(self, text: str) -> Embedding:
        """
        Embed a single text.

        Never raises: any failure of the remote path is logged and answered
        with the hashing embedding.

        Args:
            text: Text to embed

        Returns:
            Embedding tagged REMOTE or FALLBACK
        """
        if not self.use_remote:
            return self.fallback(text)

        try:
            vector = self._request_sync(text)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            return self.fallback(text, reason=e)
        return Embedding(vector=vector, source=EmbeddingSource.REMOTE)

    async def aembed(self, text: str) -> Embedding:
        """
        Async version of embed.

        Args:
            text: Text to embed

        Returns:
            Embedding tagged REMOTE or FALLBACK
        """
        if not self.use_remote:
            return self.fallback(text)

        try:
            vector = await self._request_async(text)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            return self.fallback(text, reason=e)
        return Embedding(vector=vector, source=EmbeddingSource.REMOTE)

    def fallback(self, text: str, reason: Optional[Exception] = None) -> Embedding:
        """Compute the local hashing embedding."""
        if reason is not None:
            if not self._fallback_reported:
                logger.warning(
                    f"Embedding endpoint {self.url} unavailable ({reason}); "
                    "using local hashing embeddings"
                )
                self._fallback_reported = True
            else:
                logger.debug(f"Embedding fallback: {reason}")
        return Embedding(
            vector=hash_embedding(text, self.dimension),
            source=EmbeddingSource.FALLBACK,
        )

    def _request_sync(self, text: str) -> list[float]:
        """
        Request an embedding, retrying 429/503 with exponential backoff.

        Raises:
            httpx.HTTPStatusError: If the endpoint answers non-2xx after retries
            httpx.HTTPError: If a network error or timeout occurs
            EmbeddingResponseError: If the body is not a usable vector
        """
        payload = {"model": self.model, "prompt": text}
        retry_delay = self.initial_retry_delay

        with httpx.Client(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                response = client.post(self.url, json=payload)

                if response.status_code in _RETRYABLE_STATUS and attempt < self.max_retries - 1:
                    time.sleep(retry_delay)
                    retry_delay *= 2
                    continue

                response.raise_for_status()
                return self._parse(response)

        # Only reachable when max_retries < 1
        raise EmbeddingResponseError("No embedding request was attempted")

    async def _request_async(self, text: str) -> list[float]:
        """
        Async request an embedding, retrying 429/503 with exponential backoff.

        Raises:
            httpx.HTTPStatusError: If the endpoint answers non-2xx after retries
            httpx.HTTPError: If a network error or timeout occurs
            EmbeddingResponseError: If the body is not a usable vector
        """
        payload = {"model": self.model, "prompt": text}
        retry_delay = self.initial_retry_delay

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                response = await client.post(self.url, json=payload)

                if response.status_code in _RETRYABLE_STATUS and attempt < self.max_retries - 1:
                    await asyncio.sleep(retry_delay)
                    retry_delay *= 2
                    continue

                response.raise_for_status()
                return self._parse(response)

        raise EmbeddingResponseError("No embedding request was attempted")

    @staticmethod
    def _parse(response: httpx.Response) -> list[float]:
        body = _EmbeddingResponse.model_validate(response.json())
        if not body.embedding:
            raise EmbeddingResponseError("Endpoint returned an empty embedding")
        return body.embedding
