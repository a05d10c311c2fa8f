"""LLM clients for devassistant."""

from devassistant.llm.ollama import LLMUnavailableError, OllamaClient

__all__ = ["LLMUnavailableError", "OllamaClient"]
