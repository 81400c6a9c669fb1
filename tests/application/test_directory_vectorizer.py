"""Tests for directory aggregation."""

from __future__ import annotations

import pytest

from semtree.application.directory_vectorizer import DirectoryVectorizer, select_contributors
from semtree.domain.entities import EmbeddingItem, VectorizationConfig
from semtree.domain.enums import EmbeddingKind, EmbeddingType


def _file(path: str, vector: list[float], kind=EmbeddingKind.ORIGIN) -> EmbeddingItem:
    return EmbeddingItem(type=EmbeddingType.FILE, path=path, kind=kind, vector=vector)


@pytest.fixture
def vectorizer(store, tracker):
    return DirectoryVectorizer(store, tracker)


async def _aggregate(store, path: str, kind=EmbeddingKind.VS_ORIGIN) -> EmbeddingItem | None:
    for record in await store.get_by_path(path):
        if record.kind == kind:
            return record
    return None


class TestAggregation:
    @pytest.mark.asyncio
    async def test_sums_file_vectors(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/dirA/f1", [1.0, 2.0]))
        await store.add_embedding(_file("/r/dirA/f2", [3.0, 4.0]))

        result = await vectorizer.vectorize_directory("/r/dirA", None, config)

        assert (result.processed, result.errors) == (1, 0)
        record = await _aggregate(store, "/r/dirA")
        assert record.type == EmbeddingType.DIRECTORY
        assert record.vector == [4.0, 6.0]
        assert record.raw["count"] == 2
        assert "description" in record.raw

    @pytest.mark.asyncio
    async def test_transitive_through_intermediate_aggregate(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/dirA/f1", [1.0, 2.0]))
        await store.add_embedding(_file("/r/dirA/f2", [3.0, 4.0]))
        await vectorizer.vectorize_directory("/r/dirA", None, config)
        await vectorizer.vectorize_directory("/r", None, config)

        root = await _aggregate(store, "/r")
        dir_a = await _aggregate(store, "/r/dirA")
        assert root.vector == dir_a.vector == [4.0, 6.0]
        assert root.raw["count"] == 1

    @pytest.mark.asyncio
    async def test_files_and_subdirectories_combine(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/top", [1.0, 0.0]))
        await store.add_embedding(_file("/r/sub/f", [0.0, 1.0]))
        await vectorizer.vectorize_directory("/r/sub", None, config)
        await vectorizer.vectorize_directory("/r", None, config)
        assert (await _aggregate(store, "/r")).vector == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_empty_subtree_writes_nothing(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/other/f", [1.0, 1.0]))
        result = await vectorizer.vectorize_directory("/r/empty", None, config)
        assert (result.processed, result.errors) == (0, 0)
        assert await store.get_by_path("/r/empty") == []

    @pytest.mark.asyncio
    async def test_dimension_mismatch_skipped(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/d/f1", [1.0, 2.0]))
        await store.add_embedding(_file("/r/d/f2", [1.0, 2.0, 3.0]))
        await store.add_embedding(_file("/r/d/f3", [3.0, 4.0]))
        await vectorizer.vectorize_directory("/r/d", None, config)
        record = await _aggregate(store, "/r/d")
        assert record.vector == [4.0, 6.0]
        assert record.raw["count"] == 2

    @pytest.mark.asyncio
    async def test_idempotent(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/d/f1", [1.0, 2.0]))
        await vectorizer.vectorize_directory("/r/d", None, config)
        again = await vectorizer.vectorize_directory("/r/d", None, config)
        assert again.processed == 0
        assert await store.get_count() == 2

    @pytest.mark.asyncio
    async def test_parent_and_children_recorded(self, store, vectorizer, config):
        await store.add_embedding(_file("/r/d/f1", [1.0]))
        await vectorizer.vectorize_directory("/r/d", "root-id", config, children_ids=["c1"])
        record = await _aggregate(store, "/r/d")
        assert record.parent == "root-id"
        assert record.children == ["c1"]


class TestSummarizeAggregates:
    @pytest.mark.asyncio
    async def test_vs_summarize_uses_summarize_records_only(self, store, vectorizer):
        config = VectorizationConfig(enable_summarize=True, enable_vs_summarize=True)
        await store.add_embedding(_file("/r/d/f", [1.0, 0.0]))
        await store.add_embedding(_file("/r/d/f", [0.0, 5.0], kind=EmbeddingKind.SUMMARIZE))
        await vectorizer.vectorize_directory("/r/d", None, config)
        assert (await _aggregate(store, "/r/d")).vector == [1.0, 0.0]
        assert (await _aggregate(store, "/r/d", EmbeddingKind.VS_SUMMARIZE)).vector == [0.0, 5.0]

    @pytest.mark.asyncio
    async def test_disabled_aggregate_is_deleted(self, store, vectorizer, config):
        await store.add_embedding(
            EmbeddingItem(
                type=EmbeddingType.DIRECTORY,
                path="/r/d",
                kind=EmbeddingKind.VS_SUMMARIZE,
                vector=[1.0],
            )
        )
        await vectorizer.vectorize_directory("/r/d", None, config)
        assert await _aggregate(store, "/r/d", EmbeddingKind.VS_SUMMARIZE) is None


class TestSelectContributors:
    def test_nested_files_shadowed_by_their_directory_aggregate(self):
        items = [
            _file("/r/a/f1", [1.0]),
            EmbeddingItem(type="directory", path="/r/a", kind="vs_origin", vector=[1.0]),
            _file("/r/b/f2", [1.0]),
        ]
        selected = select_contributors("/r", items, EmbeddingKind.VS_ORIGIN)
        assert [i.path for i in selected] == ["/r/a", "/r/b/f2"]
