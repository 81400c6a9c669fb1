"""Port definitions (hexagonal architecture).

Each Protocol defines a boundary that infrastructure adapters must satisfy.
The application layer depends only on these Protocols, never on concrete
implementations.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from semtree.domain.entities import EmbeddingItem, SearchHit
from semtree.domain.enums import EmbeddingKind


# ---------------------------------------------------------------------------
# Storage port
# ---------------------------------------------------------------------------


@runtime_checkable
class VectorStore(Protocol):
    """Durable keyed storage of EmbeddingItems with cosine search.

    Implementations own their internal locking; callers never lock
    around them.  ``add_embedding`` must raise ``StorageConflictError``
    rather than overwrite an existing (path, kind) record.
    """

    async def initialize(self) -> None: ...
    async def add_embedding(self, item: EmbeddingItem) -> str: ...
    async def search_similar(
        self,
        query_vector: list[float],
        limit: int = 5,
    ) -> list[SearchHit]: ...
    async def get_by_id(self, embedding_id: str) -> EmbeddingItem | None: ...
    async def get_by_path(self, path: str) -> list[EmbeddingItem]: ...
    async def get_descendants(self, path: str) -> list[EmbeddingItem]: ...
    async def get_children(self, parent_id: str | None) -> list[EmbeddingItem]: ...
    async def get_all_items(self, limit: int | None = None) -> list[EmbeddingItem]: ...
    async def update_embedding(self, embedding_id: str, **fields: Any) -> EmbeddingItem: ...
    async def delete_embedding(self, embedding_id: str) -> bool: ...
    async def delete_by_path(self, path: str) -> int: ...
    async def exists(self, path: str, kind: EmbeddingKind) -> bool: ...
    async def get_count(self) -> int: ...
    async def clear(self) -> None: ...
    async def dispose(self) -> None: ...


@runtime_checkable
class ExclusionStore(Protocol):
    """Durable set of manually excluded paths.

    Calls are blocking; the application layer runs them in a worker thread.
    """

    def load(self) -> list[str]: ...
    def save(self, paths: list[str]) -> None: ...


# ---------------------------------------------------------------------------
# Model ports
# ---------------------------------------------------------------------------


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into a fixed-length vector.

    Failures are raised as ``ProviderTimeoutError``,
    ``ProviderUnreachableError`` or ``ProviderError``.
    """

    @property
    def model_name(self) -> str: ...

    @property
    def endpoint(self) -> str: ...

    async def get_embedding(self, text: str) -> list[float]: ...


@runtime_checkable
class TextSummarizer(Protocol):
    """Turns long text into a short description via an LLM."""

    @property
    def max_input_length(self) -> int: ...

    async def summarize(self, text: str, prompt: str | None = None) -> str: ...


# ---------------------------------------------------------------------------
# Event bus port
# ---------------------------------------------------------------------------


@runtime_checkable
class EventBus(Protocol):
    """Publish/subscribe in-memory event bus."""

    def publish(self, event: Any) -> None: ...
    def subscribe(self, event_type: type, handler: Any) -> None: ...
    def unsubscribe(self, event_type: type, handler: Any) -> None: ...
