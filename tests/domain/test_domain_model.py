"""Tests for domain entities, enums and exceptions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from semtree.domain.entities import (
    EmbeddingItem,
    RunStats,
    VectorizationConfig,
    VectorizationResult,
)
from semtree.domain.enums import EmbeddingKind, EmbeddingType, SearchMode
from semtree.domain.exceptions import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnreachableError,
    SemtreeError,
    StorageConflictError,
    StorageError,
    VectorizationBusyError,
    VectorizationError,
)


class TestEmbeddingItem:
    def test_defaults(self):
        item = EmbeddingItem(
            type=EmbeddingType.FILE, path="/ws/a.txt", kind=EmbeddingKind.ORIGIN, vector=[1.0]
        )
        assert len(item.id) == 32
        assert item.parent is None
        assert item.children == []
        assert item.raw == ""
        assert item.dimensions == 1

    def test_path_is_normalized(self):
        item = EmbeddingItem(
            type=EmbeddingType.DIRECTORY,
            path="/ws/dir/./sub/",
            kind=EmbeddingKind.VS_ORIGIN,
            vector=[0.0],
        )
        assert item.path.endswith("/ws/dir/sub")

    def test_ids_are_unique(self):
        a = EmbeddingItem(type="file", path="/a", kind="origin", vector=[1.0])
        b = EmbeddingItem(type="file", path="/a", kind="origin", vector=[1.0])
        assert a.id != b.id

    def test_invalid_kind_rejected(self):
        with pytest.raises(ValidationError):
            EmbeddingItem(type="file", path="/a", kind="chunky", vector=[1.0])

    def test_raw_accepts_mapping(self):
        item = EmbeddingItem(
            type="directory", path="/a", kind="vs_origin", raw={"count": 2}, vector=[1.0]
        )
        assert item.raw == {"count": 2}


class TestEnums:
    def test_aggregate_kinds(self):
        assert EmbeddingKind.VS_ORIGIN.is_aggregate
        assert EmbeddingKind.VS_SUMMARIZE.is_aggregate
        assert not EmbeddingKind.ORIGIN.is_aggregate

    def test_file_kind_of_aggregates(self):
        assert EmbeddingKind.VS_ORIGIN.file_kind is EmbeddingKind.ORIGIN
        assert EmbeddingKind.VS_SUMMARIZE.file_kind is EmbeddingKind.SUMMARIZE

    def test_search_mode_kinds(self):
        assert SearchMode.ALL.kinds is None
        assert EmbeddingKind.VS_ORIGIN in SearchMode.ORIGIN.kinds
        assert EmbeddingKind.SUMMARIZE in SearchMode.SUMMARIZE.kinds


class TestVectorizationConfig:
    def test_defaults_enable_origin_family_only(self):
        config = VectorizationConfig()
        assert config.is_enabled(EmbeddingKind.ORIGIN)
        assert config.is_enabled(EmbeddingKind.VS_ORIGIN)
        assert not config.is_enabled(EmbeddingKind.SUMMARIZE)
        assert not config.is_enabled(EmbeddingKind.VS_SUMMARIZE)

    def test_frozen(self):
        config = VectorizationConfig()
        with pytest.raises(ValidationError):
            config.enable_origin = False

    def test_max_workers_must_be_positive(self):
        with pytest.raises(ValidationError):
            VectorizationConfig(max_workers=0)


class TestRunBookkeeping:
    def test_result_addition(self):
        a = VectorizationResult(processed=1)
        b = VectorizationResult()
        b.fail("boom")
        total = a + b
        assert (total.processed, total.errors, total.messages) == (1, 1, ["boom"])

    def test_stats_record(self):
        stats = RunStats()
        stats.record("/a", VectorizationResult(processed=2))
        stats.record("/b", VectorizationResult())
        failed = VectorizationResult()
        failed.fail("unreadable")
        stats.record("/c", failed)
        assert stats.summary() == {"processed": 2, "errors": 1}
        assert stats.skipped == 1
        assert stats.failures[0].path == "/c"


class TestExceptions:
    def test_hierarchy(self):
        assert issubclass(ProviderTimeoutError, ProviderError)
        assert issubclass(ProviderUnreachableError, ProviderError)
        assert issubclass(StorageConflictError, StorageError)
        assert issubclass(VectorizationBusyError, VectorizationError)
        assert issubclass(StorageError, SemtreeError)

    def test_provider_error_carries_endpoint(self):
        error = ProviderTimeoutError("Ollama", endpoint="http://x/api/embeddings", timeout=5)
        assert error.endpoint == "http://x/api/embeddings"
        assert "http://x/api/embeddings" in error.message
        assert "5s" in error.message
        assert error.details["timeout"] == 5
