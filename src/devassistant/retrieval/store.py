"""
In-memory document store with cosine-similarity search and JSON persistence.

Every query is a linear scan over all stored embeddings, which is plenty for
one project's documentation plus a pull request diff. The store is not
thread-safe: use one instance per process and do not mutate it concurrently.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
from pydantic import TypeAdapter, ValidationError

from devassistant.retrieval.embeddings import EmbeddingProvider
from devassistant.retrieval.models import Document, SearchResult

logger = logging.getLogger(__name__)

_DOCUMENT_LIST = TypeAdapter(list[Document])


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector is empty, the lengths differ, or either
    vector has zero norm.
    """
    if len(a) == 0 or len(b) == 0 or len(a) != len(b):
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denominator = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denominator == 0.0:
        return 0.0
    return float(np.dot(va, vb)) / denominator


class DocumentStore:
    """
    Ordered collection of embedded documents.

    Insertion order is kept for persistence and breaks ties between equal
    scores; it carries no ranking meaning otherwise.

    Example:
        >>> store = DocumentStore("data/index.json", EmbeddingProvider(use_remote=False))
        >>> store.add("The index is saved as JSON.", source="docs/storage.md")
        >>> results = store.search("where is the index saved?", top_k=3)
        >>> store.save()
    """

    def __init__(
        self,
        index_path: str | Path,
        embedder: Optional[EmbeddingProvider] = None,
    ) -> None:
        """
        Initialize an empty store.

        Args:
            index_path: JSON file used by save() and load()
            embedder: Provider for document and query embeddings
        """
        self.index_path = Path(index_path)
        self.embedder = embedder or EmbeddingProvider()
        self._documents: list[Document] = []

    @property
    def size(self) -> int:
        """Number of stored documents."""
        return len(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    @property
    def documents(self) -> list[Document]:
        """Copy of the stored documents in insertion order."""
        return list(self._documents)

    def add(
        self,
        content: str,
        source: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> Document:
        """
        Embed content and append it as a new document.

        Documents are never deduplicated.

        Args:
            content: Chunk text
            source: Provenance of the chunk
            metadata: Informational key/value pairs

        Returns:
            The stored document
        """
        document = Document(
            id=f"{source}_{len(self._documents)}",
            content=content,
            source=source,
            embedding=self.embedder.embed(content).vector,
            metadata=dict(metadata or {}),
        )
        self._documents.append(document)
        return document

    def search(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """
        Find the documents most similar to a query.

        Args:
            query: Free-text query
            top_k: Maximum number of results

        Returns:
            Results sorted by descending similarity
        """
        if not self._documents:
            return []
        return self.search_by_vector(self.embedder.embed(query).vector, top_k=top_k)

    async def asearch(self, query: str, top_k: int = 5) -> list[SearchResult]:
        """
        Async version of search; only the query embedding is awaited.

        Args:
            query: Free-text query
            top_k: Maximum number of results

        Returns:
            Results sorted by descending similarity
        """
        if not self._documents:
            return []
        embedding = await self.embedder.aembed(query)
        return self.search_by_vector(embedding.vector, top_k=top_k)

    def search_by_vector(
        self,
        query_embedding: Sequence[float],
        top_k: int = 5,
    ) -> list[SearchResult]:
        """
        Rank stored documents against an already computed query embedding.

        Args:
            query_embedding: Query vector
            top_k: Maximum number of results

        Returns:
            Up to top_k results sorted by descending similarity; documents
            inserted earlier come first on equal scores
        """
        if top_k <= 0:
            return []

        scored = [
            SearchResult(document=doc, score=cosine_similarity(doc.embedding, query_embedding))
            for doc in self._documents
        ]
        # list.sort is stable, also with reverse=True
        scored.sort(key=lambda result: result.score, reverse=True)
        return scored[:top_k]

    def save(self) -> None:
        """
        Write all embedded documents to the index file as a JSON array.

        Creates parent directories if needed. The file is written next to the
        index first and moved into place, so a failed save leaves the
        previous index intact.

        Raises:
            OSError: If the index file cannot be written
        """
        records = []
        for doc in self._documents:
            if not doc.embedding:
                logger.warning(f"Skipping document without embedding: {doc.id}")
                continue
            records.append(doc.model_dump())

        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self.index_path.parent,
            prefix=f".{self.index_path.name}.",
            suffix=".tmp",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            try:
                json.dump(records, f, indent=2, ensure_ascii=False)
            except BaseException:
                f.close()
                tmp_path.unlink(missing_ok=True)
                raise

        try:
            os.replace(tmp_path, self.index_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info(f"Saved {len(records)} documents to {self.index_path}")

    def load(self) -> bool:
        """
        Replace the in-memory documents with the index file contents.

        Returns:
            True on success. False if the file is missing, unreadable or
            invalid, in which case the in-memory documents are unchanged.
        """
        if not self.index_path.is_file():
            logger.info(f"Index file not found: {self.index_path}")
            return False

        try:
            with self.index_path.open(encoding="utf-8") as f:
                data = json.load(f)
            documents = _DOCUMENT_LIST.validate_python(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Failed to load index {self.index_path}: {e}")
            return False

        self._documents = documents
        logger.info(f"Loaded {len(documents)} documents from {self.index_path}")
        return True

    def clear(self) -> None:
        """Remove all documents from memory; the index file is untouched."""
        self._documents.clear()
