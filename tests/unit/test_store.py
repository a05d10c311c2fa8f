"""Unit tests for retrieval.store module."""

import json
import math

import pytest

from devassistant.retrieval.models import Document
from devassistant.retrieval.store import DocumentStore, cosine_similarity


@pytest.mark.unit
class TestCosineSimilarity:
    def test_identical_vectors(self):
        assert cosine_similarity([0.3, 0.4, 0.5], [0.3, 0.4, 0.5]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == 0.0

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 1.0], [5.0, 5.0]) == pytest.approx(1.0)

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ([], []),
            ([], [1.0]),
            ([1.0, 0.0], [1.0, 0.0, 0.0]),
            ([0.0, 0.0], [1.0, 0.0]),
            ([0.0, 0.0], [0.0, 0.0]),
        ],
    )
    def test_degenerate_inputs_score_zero(self, a, b):
        assert cosine_similarity(a, b) == 0.0

    def test_bounded(self):
        pairs = [([1.0, 2.0, 3.0], [-3.0, 0.5, 2.0]), ([0.1, -0.9], [0.8, 0.2])]
        for a, b in pairs:
            assert -1.0 <= cosine_similarity(a, b) <= 1.0


@pytest.mark.unit
class TestDocumentStore:
    """Tests for DocumentStore class."""

    def test_add_assigns_id_and_embedding(self, tmp_path, compass_embedder):
        store = DocumentStore(tmp_path / "index.json", compass_embedder)

        first = store.add("north", source="doc1.md", metadata={"chunk_index": "0"})
        second = store.add("east", source="doc1.md")

        assert first.id == "doc1.md_0"
        assert second.id == "doc1.md_1"
        assert first.embedding == [1.0, 0.0]
        assert first.metadata == {"chunk_index": "0"}
        assert second.metadata == {}
        assert store.size == 2
        assert len(store) == 2

    def test_add_never_deduplicates(self, tmp_path, compass_embedder):
        store = DocumentStore(tmp_path / "index.json", compass_embedder)
        store.add("north", source="doc.md")
        store.add("north", source="doc.md")

        assert store.size == 2

    def test_documents_returns_copy(self, compass_store):
        docs = compass_store.documents
        docs.clear()

        assert compass_store.size == 3

    def test_search_ranks_by_similarity(self, compass_store):
        results = compass_store.search("query north", top_k=2)

        assert [r.document.source for r in results] == ["doc1.md", "doc3.md"]
        assert results[0].score == pytest.approx(1.0)
        assert results[1].score == pytest.approx(0.7 / math.sqrt(0.98))

    def test_search_top_k_larger_than_store(self, compass_store):
        results = compass_store.search("query east", top_k=10)

        assert len(results) == 3
        assert results[0].document.source == "doc2.md"
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_search_non_positive_top_k(self, compass_store):
        assert compass_store.search("query north", top_k=0) == []
        assert compass_store.search("query north", top_k=-3) == []

    def test_ties_keep_insertion_order(self, tmp_path, compass_embedder):
        store = DocumentStore(tmp_path / "index.json", compass_embedder)
        store.add("north", source="first.md")
        store.add("east", source="other.md")
        store.add("north", source="second.md")
        store.add("north", source="third.md")

        results = store.search("query north", top_k=3)

        assert [r.document.source for r in results] == ["first.md", "second.md", "third.md"]

    def test_empty_store_does_not_embed_query(self, tmp_path, compass_embedder):
        store = DocumentStore(tmp_path / "index.json", compass_embedder)

        assert store.search("query north") == []
        assert compass_embedder.calls == []

    def test_mismatched_dimensions_score_zero(self, compass_store):
        results = compass_store.search_by_vector([1.0, 0.0, 0.0], top_k=3)

        assert len(results) == 3
        assert all(r.score == 0.0 for r in results)
        assert [r.document.source for r in results] == ["doc1.md", "doc2.md", "doc3.md"]

    def test_self_similarity(self, offline_store):
        doc = offline_store.add("Chunks overlap by a configurable number of words.", "doc.md")
        offline_store.add("Completely different subject matter here.", "other.md")

        results = offline_store.search(doc.content, top_k=1)

        assert results[0].document.id == doc.id
        assert results[0].score == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_asearch(self, compass_store):
        results = await compass_store.asearch("query east", top_k=1)

        assert results[0].document.source == "doc2.md"
        assert results[0].score == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_asearch_empty_store(self, tmp_path, compass_embedder):
        store = DocumentStore(tmp_path / "index.json", compass_embedder)

        assert await store.asearch("query north") == []

    def test_clear(self, compass_store):
        compass_store.clear()

        assert compass_store.size == 0
        assert compass_store.search("query north") == []


@pytest.mark.unit
class TestDocumentStorePersistence:
    """Save and load of the JSON index."""

    def test_save_and_load_round_trip(self, compass_store, compass_embedder):
        compass_store.save()

        restored = DocumentStore(compass_store.index_path, compass_embedder)
        assert restored.load() is True
        assert restored.documents == compass_store.documents

        results = restored.search("query north", top_k=2)
        assert [r.document.source for r in results] == ["doc1.md", "doc3.md"]

    def test_save_writes_json_array(self, compass_store):
        compass_store.save()

        data = json.loads(compass_store.index_path.read_text(encoding="utf-8"))
        assert isinstance(data, list)
        assert data[0] == {
            "id": "doc1.md_0",
            "content": "north",
            "source": "doc1.md",
            "embedding": [1.0, 0.0],
            "metadata": {},
        }

    def test_save_creates_parent_directories(self, tmp_path, compass_embedder):
        path = tmp_path / "nested" / "deeper" / "index.json"
        store = DocumentStore(path, compass_embedder)
        store.add("north", source="doc.md")

        store.save()

        assert path.is_file()

    def test_save_preserves_unicode(self, offline_store):
        offline_store.add("Индексация документов", source="ru.md")
        offline_store.save()

        assert "Индексация" in offline_store.index_path.read_text(encoding="utf-8")

    def test_save_skips_documents_without_embedding(self, compass_store):
        compass_store.add("unknown text", source="orphan.md")
        assert compass_store.size == 4

        compass_store.save()

        data = json.loads(compass_store.index_path.read_text(encoding="utf-8"))
        assert [record["source"] for record in data] == ["doc1.md", "doc2.md", "doc3.md"]

    def test_save_to_directory_raises_and_cleans_up(self, tmp_path, compass_embedder):
        target = tmp_path / "index.json"
        target.mkdir()
        store = DocumentStore(target, compass_embedder)
        store.add("north", source="doc.md")

        with pytest.raises(OSError):
            store.save()

        assert target.is_dir()
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_failed_save_keeps_previous_index(self, compass_store, monkeypatch):
        compass_store.save()
        before = compass_store.index_path.read_text(encoding="utf-8")

        def fail_replace(src, dst):
            raise OSError("No space left on device")

        monkeypatch.setattr("devassistant.retrieval.store.os.replace", fail_replace)
        compass_store.add("east", source="doc4.md")

        with pytest.raises(OSError):
            compass_store.save()

        assert compass_store.index_path.read_text(encoding="utf-8") == before
        assert list(compass_store.index_path.parent.glob(".*.tmp")) == []

    def test_load_replaces_documents(self, compass_store, compass_embedder, tmp_path):
        compass_store.save()

        other = DocumentStore(compass_store.index_path, compass_embedder)
        other.add("east", source="stale.md")
        assert other.load() is True

        assert [d.source for d in other.documents] == ["doc1.md", "doc2.md", "doc3.md"]

    def test_load_missing_file(self, compass_store):
        assert compass_store.load() is False
        assert compass_store.size == 3

    @pytest.mark.parametrize(
        "content",
        [
            "not json at all",
            '{"id": "doc"}',
            '[{"id": "doc1.md_0"}]',
            '[{"id": "a", "content": "x", "source": "s", "embedding": "nope", "metadata": {}}]',
            '[{"id": "a", "content": "x", "source": "s", "embedding": [NaN, 0.0], "metadata": {}}]',
            '[{"id": "a", "content": "x", "source": "s", "embedding": [Infinity, 1.0], "metadata": {}}]',
        ],
    )
    def test_load_invalid_file_leaves_state(self, compass_store, content):
        compass_store.index_path.write_text(content, encoding="utf-8")
        before = compass_store.documents

        assert compass_store.load() is False
        assert compass_store.documents == before

    def test_non_finite_embedding_rejected_before_ranking(self, tmp_path, compass_embedder):
        path = tmp_path / "index.json"
        path.write_text(
            '[{"id": "nan.md_0", "content": "x", "source": "nan.md", "embedding": [NaN, 0.0], "metadata": {}},'
            ' {"id": "good.md_1", "content": "y", "source": "good.md", "embedding": [1.0, 0.0], "metadata": {}}]',
            encoding="utf-8",
        )
        store = DocumentStore(path, compass_embedder)
        store.add("north", source="kept.md")

        assert store.load() is False

        results = store.search("query north", top_k=1)
        assert results[0].document.source == "kept.md"
        assert results[0].score == pytest.approx(1.0)

    def test_loaded_documents_are_models(self, compass_store, compass_embedder):
        compass_store.save()
        restored = DocumentStore(compass_store.index_path, compass_embedder)
        restored.load()

        assert all(isinstance(doc, Document) for doc in restored.documents)
