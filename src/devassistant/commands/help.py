"""
Help command: answers questions about the project from indexed documentation.

Retrieves the most relevant chunks, asks the LLM to answer from them, and
shows the raw chunks when the LLM is unavailable.
"""

import logging
from typing import Optional

from devassistant.llm import LLMUnavailableError, OllamaClient
from devassistant.retrieval.models import SearchResult
from devassistant.retrieval.store import DocumentStore

logger = logging.getLogger(__name__)


HELP_PROMPT = """You are a developer assistant. Answer questions about the project using the documentation below.

Documentation:
---
{context}
---

Question: {question}

Give a short, useful answer based on the documentation.
If the documentation is not sufficient, say so.

Answer:"""


GENERAL_HELP = """DevAssistant help

Commands:
  devassistant help <question>   Ask a question about the project
  devassistant search <text>     Search the documentation index
  devassistant index [path]      Rebuild the documentation index
  devassistant review <diff>     Review a unified diff (use - for stdin)
  devassistant version           Show the version

Examples:
  devassistant help "project structure"
  devassistant help "how does RAG work?"
  devassistant search "API endpoints"

Tip: specific questions give better results."""


PREVIEW_CHARS = 300


class HelpCommand:
    """RAG-backed help for questions about the project."""

    def __init__(
        self,
        store: DocumentStore,
        llm: Optional[OllamaClient] = None,
        top_k: int = 3,
    ) -> None:
        """
        Initialize the command.

        Args:
            store: Loaded documentation store
            llm: Client used to phrase answers; None always shows raw chunks
            top_k: Number of chunks used as context
        """
        self.store = store
        self.llm = llm
        self.top_k = top_k

    def execute(self, query: str) -> str:
        """
        Answer a question.

        Args:
            query: The user's question; blank shows the general help

        Returns:
            Text to show to the user
        """
        query = query.strip()
        if not query:
            return GENERAL_HELP

        results = self.store.search(query, top_k=self.top_k)
        if not results:
            return (
                f"No relevant information found for: {query}\n"
                "Try rebuilding the index with `devassistant index`."
            )

        if self.llm is None:
            return format_snippets(query, results)

        try:
            answer = self.llm.generate(
                HELP_PROMPT.format(question=query, context=build_context(results))
            )
        except LLMUnavailableError as e:
            logger.warning(f"LLM unavailable, showing retrieved snippets: {e}")
            return format_snippets(query, results)

        return answer


def build_context(results: list[SearchResult]) -> str:
    """Join search results into a prompt context block."""
    return "\n\n---\n\n".join(
        f"{result.document.source} (relevance: {result.score:.2f})\n{result.document.content}"
        for result in results
    )


def format_snippets(query: str, results: list[SearchResult]) -> str:
    """Render search results as previews for display without an LLM."""
    lines = [f'Found for "{query}":', ""]
    for result in results:
        content = result.document.content
        preview = content[:PREVIEW_CHARS]
        if len(content) > PREVIEW_CHARS:
            preview += "..."
        lines.append(result.document.source)
        lines.append(f"   Relevance: {result.score * 100:.1f}%")
        lines.append(f"   {preview}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
