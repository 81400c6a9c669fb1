"""In-memory VectorStore implementation.

Reference implementation of the ``VectorStore`` port.  Records live in an
insertion-ordered dict so that search ties resolve in insertion order, and a
secondary ``(path, kind) -> id`` index enforces uniqueness.

Search is exact: every record whose dimension matches the query is scored
with numpy, records of other dimensions are skipped.
"""

from __future__ import annotations

import asyncio
from typing import Any

import numpy as np
import structlog

from semtree.domain.entities import EmbeddingItem, SearchHit
from semtree.domain.enums import EmbeddingKind
from semtree.domain.exceptions import (
    EmbeddingNotFoundError,
    StorageConflictError,
    StorageUnavailableError,
)
from semtree.domain.paths import is_strictly_nested, normalize_path
from semtree.infrastructure.vector.similarity import cosine_scores

logger = structlog.get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 5


class InMemoryVectorStore:
    """Vector store held entirely in process memory."""

    def __init__(self) -> None:
        self._items: dict[str, EmbeddingItem] = {}
        self._by_key: dict[tuple[str, EmbeddingKind], str] = {}
        self._lock = asyncio.Lock()
        self._initialized = False
        self._disposed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        if self._disposed:
            raise StorageUnavailableError("Vector store has been disposed")
        if self._initialized:
            return
        async with self._lock:
            if not self._initialized:
                await self._load()
                self._initialized = True

    async def dispose(self) -> None:
        async with self._lock:
            self._items.clear()
            self._by_key.clear()
            self._disposed = True
            self._initialized = False

    async def _ensure_ready(self) -> None:
        if self._disposed:
            raise StorageUnavailableError("Vector store has been disposed")
        if not self._initialized:
            await self.initialize()

    # ------------------------------------------------------------------
    # Persistence hooks (no-ops in memory)
    # ------------------------------------------------------------------

    async def _load(self) -> None:
        return None

    async def _persist_added(self, item: EmbeddingItem) -> None:
        return None

    async def _persist_all(self, items: list[EmbeddingItem]) -> None:
        return None

    def _index(self, item: EmbeddingItem) -> None:
        self._items[item.id] = item
        self._by_key[(item.path, item.kind)] = item.id

    async def _commit(self, items: dict[str, EmbeddingItem]) -> None:
        """Persist *items* as the full record set, then make it the live one.

        If persisting fails the live records are left untouched.
        """
        await self._persist_all(list(items.values()))
        self._items = items
        self._by_key = {(i.path, i.kind): i.id for i in items.values()}

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def add_embedding(self, item: EmbeddingItem) -> str:
        """Store *item*; raises ``StorageConflictError`` if (path, kind) is taken."""
        await self._ensure_ready()
        async with self._lock:
            key = (item.path, item.kind)
            if key in self._by_key:
                raise StorageConflictError(item.path, item.kind.value)
            if item.id in self._items:
                raise StorageConflictError(item.path, item.kind.value)
            stored = item.model_copy(deep=True)
            await self._persist_added(stored)
            self._index(stored)
        logger.debug(
            "vector_store.add",
            id=item.id,
            path=item.path,
            kind=item.kind.value,
            dimensions=item.dimensions,
        )
        return item.id

    async def update_embedding(self, embedding_id: str, **fields: Any) -> EmbeddingItem:
        """Replace fields of an existing record, keeping its id."""
        await self._ensure_ready()
        fields.pop("id", None)
        async with self._lock:
            existing = self._items.get(embedding_id)
            if existing is None:
                raise EmbeddingNotFoundError(embedding_id)
            updated = EmbeddingItem.model_validate(
                {**existing.model_dump(), **fields, "id": existing.id}
            )
            old_key = (existing.path, existing.kind)
            new_key = (updated.path, updated.kind)
            if new_key != old_key and new_key in self._by_key:
                raise StorageConflictError(updated.path, updated.kind.value)
            await self._commit({**self._items, updated.id: updated})
        return updated.model_copy(deep=True)

    async def delete_embedding(self, embedding_id: str) -> bool:
        await self._ensure_ready()
        async with self._lock:
            if embedding_id not in self._items:
                return False
            await self._commit({k: v for k, v in self._items.items() if k != embedding_id})
        return True

    async def delete_by_path(self, path: str) -> int:
        """Remove every kind stored for *path*; returns the number removed."""
        await self._ensure_ready()
        normalized = normalize_path(path)
        async with self._lock:
            kept = {k: v for k, v in self._items.items() if v.path != normalized}
            removed = len(self._items) - len(kept)
            if removed:
                await self._commit(kept)
        return removed

    async def clear(self) -> None:
        await self._ensure_ready()
        async with self._lock:
            await self._commit({})
        logger.info("vector_store.cleared")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def search_similar(
        self,
        query_vector: list[float],
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> list[SearchHit]:
        """Rank stored records by cosine similarity to *query_vector*.

        Only records with the query's dimension take part.  Ties keep
        insertion order.
        """
        await self._ensure_ready()
        if limit <= 0 or not query_vector:
            return []

        dimension = len(query_vector)
        async with self._lock:
            candidates = [i for i in self._items.values() if i.dimensions == dimension]
        if not candidates:
            return []

        matrix = np.asarray([c.vector for c in candidates], dtype=np.float64)
        query = np.asarray(query_vector, dtype=np.float64)
        scores = cosine_scores(matrix, query)
        order = np.argsort(-scores, kind="stable")[:limit]
        return [
            SearchHit(item=candidates[int(idx)].model_copy(deep=True), similarity=float(scores[idx]))
            for idx in order
        ]

    async def get_by_id(self, embedding_id: str) -> EmbeddingItem | None:
        await self._ensure_ready()
        item = self._items.get(embedding_id)
        return item.model_copy(deep=True) if item else None

    async def get_by_path(self, path: str) -> list[EmbeddingItem]:
        await self._ensure_ready()
        normalized = normalize_path(path)
        return [i.model_copy(deep=True) for i in self._items.values() if i.path == normalized]

    async def get_descendants(self, path: str) -> list[EmbeddingItem]:
        """Every record strictly nested under *path*, in insertion order."""
        await self._ensure_ready()
        normalized = normalize_path(path)
        return [
            i.model_copy(deep=True)
            for i in self._items.values()
            if is_strictly_nested(i.path, normalized)
        ]

    async def get_children(self, parent_id: str | None) -> list[EmbeddingItem]:
        await self._ensure_ready()
        return [i.model_copy(deep=True) for i in self._items.values() if i.parent == parent_id]

    async def get_all_items(self, limit: int | None = None) -> list[EmbeddingItem]:
        await self._ensure_ready()
        items = list(self._items.values())
        if limit is not None:
            items = items[: max(limit, 0)]
        return [i.model_copy(deep=True) for i in items]

    async def exists(self, path: str, kind: EmbeddingKind) -> bool:
        await self._ensure_ready()
        return (normalize_path(path), EmbeddingKind(kind)) in self._by_key

    async def get_count(self) -> int:
        await self._ensure_ready()
        return len(self._items)
