"""
Client for the Ollama generation endpoint.

Wraps `POST /api/generate` with non-streaming requests and retries for
transient failures. Every failure surfaces as LLMUnavailableError so callers
can degrade gracefully instead of crashing.
"""

import logging
import time
from typing import Optional

import requests

from devassistant.config import Settings, get_settings

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when the LLM endpoint cannot produce an answer."""


class OllamaClient:
    """LLM client for Ollama-compatible servers."""

    def __init__(
        self,
        base_url: str,
        model: str,
        timeout: float = 300.0,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        num_predict: int = 2048,
    ):
        """
        Initialize the client.

        Args:
            base_url: Server base URL, e.g. http://localhost:11434
            model: Model name passed to the server
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for 502/503/504 and connection errors
            retry_delay: Initial delay between retries (uses exponential backoff)
            num_predict: Maximum number of tokens to generate
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.num_predict = num_predict

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "OllamaClient":
        settings = settings or get_settings()
        return cls(
            base_url=settings.llm_api_url,
            model=settings.llm_model,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
            num_predict=settings.llm_num_predict,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/generate"

    def generate(self, prompt: str) -> str:
        """
        Generate a completion for a prompt.

        Args:
            prompt: The input prompt text

        Returns:
            The generated response text

        Raises:
            LLMUnavailableError: If the request fails after all retries or
                the response has no text
        """
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"num_predict": self.num_predict},
        }

        for attempt in range(self.max_retries):
            try:
                response = requests.post(self.url, json=payload, timeout=self.timeout)
                response.raise_for_status()
                return self._parse(response)

            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if status in (502, 503, 504) and attempt < self.max_retries - 1:
                    self._backoff(attempt, f"Endpoint returned {status}")
                    continue
                raise LLMUnavailableError(f"LLM request failed: {e}") from e

            except (requests.Timeout, requests.ConnectionError) as e:
                if attempt < self.max_retries - 1:
                    self._backoff(attempt, f"Connection error: {e}")
                    continue
                raise LLMUnavailableError(f"LLM endpoint unreachable: {e}") from e

            except requests.RequestException as e:
                raise LLMUnavailableError(f"LLM request failed: {e}") from e

        raise LLMUnavailableError("All retry attempts failed")

    def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_delay * (2 ** attempt)
        logger.warning(
            f"{reason}, retrying in {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
        )
        time.sleep(delay)

    @staticmethod
    def _parse(response: requests.Response) -> str:
        try:
            result = response.json()
        except ValueError as e:
            raise LLMUnavailableError(f"LLM returned invalid JSON: {e}") from e

        text = result.get("response") if isinstance(result, dict) else None
        if not isinstance(text, str):
            raise LLMUnavailableError("LLM response has no 'response' field")
        return text.strip()
