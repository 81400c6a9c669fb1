"""Tests for the JSON-lines VectorStore."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import pytest_asyncio

from semtree.domain.entities import EmbeddingItem
from semtree.domain.enums import EmbeddingKind, EmbeddingType
from semtree.domain.exceptions import StorageUnavailableError
from semtree.infrastructure.vector.jsonl_store import EMBEDDINGS_FILE, JsonlVectorStore


def _item(path: str, vector: list[float], kind=EmbeddingKind.ORIGIN):
    return EmbeddingItem(type=EmbeddingType.FILE, path=path, kind=kind, vector=vector)


class TestJsonlPersistence:
    @pytest.mark.asyncio
    async def test_records_survive_reopen(self, tmp_path):
        store = JsonlVectorStore(tmp_path / "idx")
        item = _item("/ws/a.txt", [1.0, 2.0])
        await store.add_embedding(item)
        await store.add_embedding(_item("/ws/b.txt", [3.0, 4.0]))
        await store.dispose()

        reopened = JsonlVectorStore(tmp_path / "idx")
        assert await reopened.get_count() == 2
        assert (await reopened.get_by_id(item.id)).vector == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_deletes_and_updates_are_persisted(self, tmp_path):
        store = JsonlVectorStore(tmp_path)
        a = _item("/ws/a.txt", [1.0])
        b = _item("/ws/b.txt", [1.0])
        await store.add_embedding(a)
        await store.add_embedding(b)
        await store.delete_embedding(a.id)
        await store.update_embedding(b.id, vector=[9.0])

        reopened = JsonlVectorStore(tmp_path)
        items = await reopened.get_all_items()
        assert [(i.id, i.vector) for i in items] == [(b.id, [9.0])]

    @pytest.mark.asyncio
    async def test_clear_empties_file(self, tmp_path):
        store = JsonlVectorStore(tmp_path)
        await store.add_embedding(_item("/ws/a.txt", [1.0]))
        await store.clear()
        assert (tmp_path / EMBEDDINGS_FILE).read_text() == ""
        assert await JsonlVectorStore(tmp_path).get_count() == 0

    @pytest.mark.asyncio
    async def test_corrupt_lines_are_skipped(self, tmp_path):
        good = _item("/ws/a.txt", [1.0])
        (tmp_path / EMBEDDINGS_FILE).write_text(
            "not json\n" + good.model_dump_json() + "\n{\"path\": \"/x\"}\n",
            encoding="utf-8",
        )
        store = JsonlVectorStore(tmp_path)
        assert await store.get_count() == 1
        assert await store.exists("/ws/a.txt", EmbeddingKind.ORIGIN)

    @pytest.mark.asyncio
    async def test_duplicate_lines_keep_first(self, tmp_path):
        first = _item("/ws/a.txt", [1.0])
        second = _item("/ws/a.txt", [2.0])
        (tmp_path / EMBEDDINGS_FILE).write_text(
            first.model_dump_json() + "\n" + second.model_dump_json() + "\n", encoding="utf-8"
        )
        store = JsonlVectorStore(tmp_path)
        records = await store.get_by_path("/ws/a.txt")
        assert [r.id for r in records] == [first.id]

    @pytest.mark.asyncio
    async def test_unusable_directory_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = JsonlVectorStore(blocker / "idx")
        with pytest.raises(StorageUnavailableError):
            await store.initialize()


class TestFailedRewrite:
    @pytest_asyncio.fixture
    async def populated(self, tmp_path):
        store = JsonlVectorStore(tmp_path)
        a = _item("/ws/a.txt", [1.0, 0.0])
        b = _item("/ws/b.txt", [0.0, 1.0])
        await store.add_embedding(a)
        await store.add_embedding(b)
        return store, a, b

    @staticmethod
    def _failing_replace(*args, **kwargs):
        raise OSError("disk full")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["delete", "delete_by_path", "update", "clear"])
    async def test_memory_matches_disk_after_failure(self, tmp_path, populated, operation):
        store, a, b = populated
        with patch("semtree.infrastructure.vector.jsonl_store.os.replace", self._failing_replace):
            with pytest.raises(StorageUnavailableError):
                if operation == "delete":
                    await store.delete_embedding(a.id)
                elif operation == "delete_by_path":
                    await store.delete_by_path(a.path)
                elif operation == "update":
                    await store.update_embedding(a.id, vector=[5.0, 5.0])
                else:
                    await store.clear()

        in_memory = [(i.id, i.vector) for i in await store.get_all_items()]
        on_disk = [(i.id, i.vector) for i in await JsonlVectorStore(tmp_path).get_all_items()]
        assert in_memory == on_disk == [(a.id, [1.0, 0.0]), (b.id, [0.0, 1.0])]
        assert await store.exists(a.path, EmbeddingKind.ORIGIN)

    @pytest.mark.asyncio
    async def test_temp_file_removed_after_failure(self, tmp_path, populated):
        store, a, _ = populated
        with patch("semtree.infrastructure.vector.jsonl_store.os.replace", self._failing_replace):
            with pytest.raises(StorageUnavailableError):
                await store.delete_embedding(a.id)
        assert [p.name for p in tmp_path.iterdir()] == [EMBEDDINGS_FILE]

    @pytest.mark.asyncio
    async def test_store_usable_after_failure(self, tmp_path, populated):
        store, a, b = populated
        with patch("semtree.infrastructure.vector.jsonl_store.os.replace", self._failing_replace):
            with pytest.raises(StorageUnavailableError):
                await store.delete_embedding(a.id)

        assert await store.delete_embedding(a.id)
        assert [i.id for i in await JsonlVectorStore(tmp_path).get_all_items()] == [b.id]
