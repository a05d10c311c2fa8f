"""
DevAssistant: documentation-aware help and pull request review

This package indexes a project's documentation into a small vector store,
answers questions about the project with retrieved context, and reviews
pull request diffs with pattern checks plus an optional LLM narrative.

Key Components:
    - retrieval: Chunking, embeddings, document store and directory indexer
    - llm: Client for the Ollama-compatible generation endpoint
    - commands: The help command
    - review: Diff parsing, static checks and the PR analyzer

Example:
    >>> from devassistant.retrieval import DocumentStore
    >>> store = DocumentStore("data/index.json")
    >>> store.load()
    >>> results = store.search("How do I run the indexer?")
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
