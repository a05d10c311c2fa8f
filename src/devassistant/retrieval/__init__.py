"""
Document retrieval components for the RAG pipeline.

Components:
    - chunker: Split documents into overlapping word windows
    - embeddings: Remote embeddings with a deterministic hashing fallback
    - store: In-memory document store with cosine search and JSON persistence
    - indexer: Rebuild the store from a directory tree
"""

from devassistant.retrieval.chunker import chunk_text
from devassistant.retrieval.embeddings import EmbeddingProvider, hash_embedding
from devassistant.retrieval.indexer import DocumentIndexer, IndexReport
from devassistant.retrieval.models import Document, Embedding, EmbeddingSource, SearchResult
from devassistant.retrieval.store import DocumentStore, cosine_similarity

__all__ = [
    "chunk_text",
    "cosine_similarity",
    "Document",
    "DocumentIndexer",
    "DocumentStore",
    "Embedding",
    "EmbeddingProvider",
    "EmbeddingSource",
    "hash_embedding",
    "IndexReport",
    "SearchResult",
]
