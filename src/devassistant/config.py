"""
Configuration management using Pydantic Settings.

All configuration is loaded from environment variables with sensible defaults.
Use a .env file for local development.

Environment Variables:
    LLM_API_URL: Base URL of the Ollama-compatible server
    LLM_MODEL: Model used for narrative answers and reviews
    EMBEDDING_MODEL: Model used by the remote embedding endpoint
    USE_REMOTE_EMBEDDINGS: Set to false to always use the local hashing embedder
    CHUNK_SIZE: Words per document chunk
    CHUNK_OVERLAP: Words shared by consecutive chunks
    DOCS_PATH: Directory indexed by default
    INDEX_PATH: Path to the JSON index file
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ==========================================================================
    # Model Server
    # ==========================================================================
    llm_api_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the Ollama-compatible server",
    )
    llm_model: str = Field(
        default="qwen3:4b",
        description="Model used for help answers and PR reviews",
    )
    llm_timeout: float = Field(
        default=300.0,
        gt=0,
        description="Timeout in seconds for a single generation request",
    )
    llm_max_retries: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts for a generation request before giving up",
    )
    llm_num_predict: int = Field(
        default=2048,
        ge=1,
        le=8192,
        description="Maximum tokens the LLM may generate",
    )

    # ==========================================================================
    # Embeddings
    # ==========================================================================
    embedding_model: str = Field(
        default="nomic-embed-text",
        description="Model used by the remote embedding endpoint",
    )
    embedding_dimension: int = Field(
        default=384,
        ge=1,
        le=8192,
        description="Dimension of the local hashing embeddings",
    )
    use_remote_embeddings: bool = Field(
        default=True,
        description="Query the embedding endpoint before falling back to hashing",
    )
    embedding_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for a single embedding request",
    )
    embedding_max_retries: int = Field(
        default=2,
        ge=1,
        le=5,
        description="Attempts for an embedding request on 429/503 responses",
    )

    # ==========================================================================
    # Chunking Configuration
    # ==========================================================================
    chunk_size: int = Field(
        default=500,
        ge=1,
        le=4096,
        description="Number of words per document chunk",
    )
    chunk_overlap: int = Field(
        default=50,
        ge=0,
        description="Number of words shared by consecutive chunks",
    )

    # ==========================================================================
    # Indexing and Retrieval
    # ==========================================================================
    docs_path: Path = Field(
        default=Path("project"),
        description="Directory indexed when no path is given",
    )
    index_path: Path = Field(
        default=Path("data/index.json"),
        description="Path to the JSON document index",
    )
    index_max_depth: int = Field(
        default=32,
        ge=1,
        le=256,
        description="Maximum directory depth visited while indexing",
    )
    search_top_k: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Number of results returned by search",
    )
    help_top_k: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Number of chunks used as context for help answers",
    )

    # ==========================================================================
    # Observability Configuration
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("chunk_overlap")
    @classmethod
    def validate_chunk_overlap(cls, v: int, info) -> int:
        """Ensure overlap is less than chunk size."""
        chunk_size = info.data.get("chunk_size", 500)
        if v >= chunk_size:
            raise ValueError(f"chunk_overlap ({v}) must be less than chunk_size ({chunk_size})")
        return v

    @field_validator("llm_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so endpoint paths can be appended."""
        return v.rstrip("/")

    @field_validator("index_path")
    @classmethod
    def resolve_path(cls, v: Path) -> Path:
        """Resolve paths to absolute paths."""
        return v.resolve()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are only loaded once.
    Call `get_settings.cache_clear()` to reload settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
