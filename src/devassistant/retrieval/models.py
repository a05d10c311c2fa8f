"""
Data types shared by the retrieval components.

Documents are pydantic models because they are persisted to and validated
from the JSON index. Search results and embeddings are ephemeral and stay
plain dataclasses.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, FiniteFloat


class Document(BaseModel):
    """One embedded chunk of content."""

    id: str = Field(..., description="Unique id: source name plus insertion sequence number")
    content: str = Field(..., description="Literal chunk text")
    source: str = Field(..., description="File path, or pr:<ref>:<filename> for diff chunks")
    embedding: list[FiniteFloat] = Field(default_factory=list, description="Embedding vector")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Informational key/value pairs, never used in scoring",
    )


@dataclass
class SearchResult:
    """A stored document paired with its similarity to the query."""

    document: Document
    score: float


class EmbeddingSource(str, Enum):
    """Which path produced an embedding."""

    REMOTE = "remote"
    FALLBACK = "fallback"


@dataclass
class Embedding:
    """Embedding vector tagged with the path that produced it."""

    vector: list[float]
    source: EmbeddingSource

    @property
    def is_fallback(self) -> bool:
        return self.source is EmbeddingSource.FALLBACK

    @property
    def dimension(self) -> int:
        return len(self.vector)
