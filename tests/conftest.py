"""
Pytest configuration and shared fixtures.

Provides common fixtures for:
    - Settings with test values (offline embeddings, temporary index path)
    - Embedders returning hand-constructed vectors
    - Sample documentation trees and diffs
    - Fake LLM clients
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from devassistant.retrieval.models import Embedding, EmbeddingSource


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture
def mock_settings():
    """Provide test settings without requiring .env file."""
    with patch.dict(
        "os.environ",
        {
            "LLM_API_URL": "http://ollama.test:11434/",
            "EMBEDDING_MODEL": "nomic-embed-text",
            "CHUNK_SIZE": "200",
            "CHUNK_OVERLAP": "20",
            "USE_REMOTE_EMBEDDINGS": "false",
        },
    ):
        from devassistant.config import Settings
        yield Settings()


@pytest.fixture
def offline_settings(tmp_path: Path):
    """Settings that never touch the network and write into tmp_path."""
    from devassistant.config import Settings

    return Settings(
        llm_api_url="http://ollama.test:11434",
        use_remote_embeddings=False,
        chunk_size=5,
        chunk_overlap=1,
        index_path=tmp_path / "index" / "index.json",
        index_max_depth=32,
    )


@pytest.fixture
def offline_embedder(offline_settings):
    """Embedding provider using only the hashing fallback."""
    from devassistant.retrieval.embeddings import EmbeddingProvider

    return EmbeddingProvider(settings=offline_settings)


@pytest.fixture
def offline_store(offline_settings, offline_embedder):
    """Empty store persisting into tmp_path."""
    from devassistant.retrieval.store import DocumentStore

    return DocumentStore(offline_settings.index_path, offline_embedder)


# =============================================================================
# Embedder Doubles
# =============================================================================

class StaticEmbedder:
    """Embedder returning preset vectors, keyed by text."""

    def __init__(self, vectors: dict[str, list[float]]):
        self.vectors = vectors
        self.calls: list[str] = []

    def embed(self, text: str) -> Embedding:
        self.calls.append(text)
        return Embedding(vector=list(self.vectors.get(text, [])), source=EmbeddingSource.REMOTE)

    async def aembed(self, text: str) -> Embedding:
        return self.embed(text)


@pytest.fixture
def compass_embedder():
    """Hand-constructed 2-d embeddings."""
    return StaticEmbedder(
        {
            "north": [1.0, 0.0],
            "east": [0.0, 1.0],
            "north-east": [0.7, 0.7],
            "query north": [1.0, 0.0],
            "query east": [0.0, 1.0],
        }
    )


@pytest.fixture
def compass_store(tmp_path: Path, compass_embedder):
    """Store with three documents: [1,0], [0,1], [0.7,0.7]."""
    from devassistant.retrieval.store import DocumentStore

    store = DocumentStore(tmp_path / "compass.json", compass_embedder)
    store.add("north", source="doc1.md")
    store.add("east", source="doc2.md")
    store.add("north-east", source="doc3.md")
    return store


# =============================================================================
# LLM Doubles
# =============================================================================

class FakeLLM:
    """LLM client double recording prompts."""

    def __init__(self, answer: str = "Generated answer", error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def failing_llm():
    from devassistant.llm import LLMUnavailableError

    return FakeLLM(error=LLMUnavailableError("LLM endpoint unreachable: connection refused"))


# =============================================================================
# Directory Fixtures
# =============================================================================

@pytest.fixture
def sample_docs(tmp_path: Path) -> Path:
    """
    Documentation tree:

        README.md                    (working root)
        docs/guide.md                12 words
        docs/notes.txt
        docs/image.png               not supported
        docs/run.sh                  not supported
        docs/.hidden/secret.md       hidden directory
        docs/api/client.py
        docs/api/deep/config.yaml
    """
    (tmp_path / "README.md").write_text("DevAssistant indexes project documentation.")

    docs = tmp_path / "docs"
    (docs / ".hidden").mkdir(parents=True)
    (docs / "api" / "deep").mkdir(parents=True)

    (docs / "guide.md").write_text(
        "one two three four five six seven eight nine ten eleven twelve"
    )
    (docs / "notes.txt").write_text("Remember to rebuild the index after edits.")
    (docs / "image.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (docs / "run.sh").write_text("echo indexing")
    (docs / ".hidden" / "secret.md").write_text("Hidden notes must not be indexed.")
    (docs / "api" / "client.py").write_text("def fetch(url):\n    return url\n")
    (docs / "api" / "deep" / "config.yaml").write_text("chunk_size: 500\n")

    return docs


# =============================================================================
# Diff Fixtures
# =============================================================================

@pytest.fixture
def sample_diff() -> str:
    """Unified diff touching a modified, an added, a deleted and a renamed file."""
    return """diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,4 +1,6 @@
 import os
-result = compute()
+result = eval(user_input)
+password = "hunter2"
+# TODO: remove debug output
 print(result)
diff --git a/src/new_module.py b/src/new_module.py
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/src/new_module.py
@@ -0,0 +1,2 @@
+def handler(event):
+    return event
diff --git a/docs/old.md b/docs/old.md
deleted file mode 100644
index 1111111..0000000
--- a/docs/old.md
+++ /dev/null
@@ -1 +0,0 @@
-Old documentation
diff --git a/a.txt b/b.txt
similarity index 100%
rename from a.txt
rename to b.txt
"""
