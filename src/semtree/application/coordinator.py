"""Vectorization coordinator.

Drives a full-tree run: enumerate once, schedule files and directories
bottom-up on a bounded worker pool, and aggregate each directory only
after all of its children have been attempted.  Also fronts the search,
single-path and storage maintenance operations used by the API layer.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from semtree.application.context import RunContext
from semtree.application.directory_vectorizer import DirectoryVectorizer
from semtree.application.file_vectorizer import FileVectorizer
from semtree.application.status import PathStatusTracker
from semtree.application.tree import TreeNode, bottom_up, discover_tree
from semtree.domain.entities import (
    EmbeddingItem,
    RunStats,
    SearchHit,
    VectorizationConfig,
    VectorizationResult,
)
from semtree.domain.enums import EmbeddingKind, PathStatus
from semtree.domain.events import StorageCleared, VectorizationCompleted, VectorizationStarted
from semtree.domain.exceptions import (
    ConfigurationMissingError,
    VectorizationBusyError,
    VectorizationError,
)
from semtree.domain.paths import normalize_path, parent_path
from semtree.domain.ports import EmbeddingProvider, EventBus, TextSummarizer, VectorStore

logger = structlog.get_logger(__name__)

DEFAULT_SEARCH_LIMIT = 5


@dataclass
class _PathLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class VectorizationCoordinator:
    """Owns vectorization runs against one vector store."""

    def __init__(
        self,
        store: VectorStore,
        embedding_provider: EmbeddingProvider,
        config: VectorizationConfig | None = None,
        summarizer: TextSummarizer | None = None,
        tracker: PathStatusTracker | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedding_provider
        self._summarizer = summarizer
        self._config = config or VectorizationConfig()
        self._event_bus = event_bus
        self._tracker = tracker or PathStatusTracker(store, self._config, event_bus)
        self._tracker.configure(self._config)
        self._files = FileVectorizer(store, embedding_provider, self._tracker, summarizer)
        self._directories = DirectoryVectorizer(store, self._tracker)
        self._path_locks: dict[str, _PathLock] = {}
        self._running = False
        self._current: RunContext | None = None

    @property
    def config(self) -> VectorizationConfig:
        return self._config

    @property
    def tracker(self) -> PathStatusTracker:
        return self._tracker

    @property
    def is_running(self) -> bool:
        return self._running

    def cancel(self) -> bool:
        """Request cancellation of the current run; False if nothing is running."""
        if self._current is None:
            return False
        self._current.cancel()
        return True

    @asynccontextmanager
    async def _path_lock(self, path: str) -> AsyncIterator[None]:
        """Serialize work on *path*; the lock is dropped once nobody holds or awaits it."""
        entry = self._path_locks.get(path)
        if entry is None:
            entry = self._path_locks[path] = _PathLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._path_locks[path]

    def _check_config(self) -> None:
        summarizing = self._config.enable_summarize or self._config.enable_vs_summarize
        if summarizing and self._summarizer is None:
            raise ConfigurationMissingError(
                "Summarization is enabled but no summarization model is configured"
            )

    async def _parent_id(self, path: str) -> str | None:
        parent = parent_path(path)
        if parent is None:
            return None
        records = await self._store.get_by_path(parent)
        return records[0].id if records else None

    # ------------------------------------------------------------------
    # Full-tree run
    # ------------------------------------------------------------------

    async def vectorize_all(
        self,
        root: str | Path,
        *,
        context: RunContext | None = None,
    ) -> RunStats:
        """Vectorize every file and directory under *root*, root included.

        Raises ``VectorizationBusyError`` if a run is already in progress.
        Per-path failures are counted in the returned stats.
        """
        if self._running:
            raise VectorizationBusyError()
        self._check_config()
        if not Path(root).is_dir():
            raise VectorizationError(f"'{root}' is not a directory", path=normalize_path(root))
        self._running = True
        context = context or RunContext.create(root=normalize_path(root))
        self._current = context
        try:
            return await self._run(Path(root), context)
        finally:
            self._running = False
            self._current = None

    async def _run(self, root: Path, context: RunContext) -> RunStats:
        log = context.logger
        started = time.monotonic()
        await self._store.initialize()
        await self._tracker.load_exclusions()
        self._tracker.add_root(root)

        tree = await asyncio.to_thread(discover_tree, root, self._tracker.is_excluded)
        stats = RunStats()
        stats.excluded = sum(1 for node in tree.walk() if node.excluded)
        schedule = bottom_up(tree)

        log.info("coordinator.run.start", pending=len(schedule), excluded=stats.excluded)
        self._publish(
            VectorizationStarted(
                root_path=tree.path, pending=len(schedule), started_at=datetime.now()
            )
        )

        semaphore = asyncio.Semaphore(self._config.max_workers)
        done: dict[str, asyncio.Event] = {node.path: asyncio.Event() for node in schedule}

        async def run_node(node: TreeNode) -> None:
            try:
                if node.is_dir:
                    for child in node.children:
                        if child.path in done:
                            await done[child.path].wait()
                async with semaphore:
                    if context.cancelled:
                        stats.skipped += 1
                        return
                    async with self._path_lock(node.path):
                        result = await self._vectorize_node(node, log)
                    stats.record(node.path, result)
            except Exception as e:
                log.exception("coordinator.task_failed", path=node.path, error=str(e))
                stats.record_failure(node.path, str(e))
            finally:
                done[node.path].set()

        await asyncio.gather(*(run_node(node) for node in schedule))

        stats.cancelled = context.cancelled
        stats.duration_ms = (time.monotonic() - started) * 1000
        log.info(
            "coordinator.run.complete",
            processed=stats.processed,
            errors=stats.errors,
            skipped=stats.skipped,
            cancelled=stats.cancelled,
            duration_ms=round(stats.duration_ms, 1),
        )
        self._publish(
            VectorizationCompleted(
                root_path=tree.path,
                processed=stats.processed,
                errors=stats.errors,
                cancelled=stats.cancelled,
                duration_ms=stats.duration_ms,
                completed_at=datetime.now(),
            )
        )
        return stats

    async def _vectorize_node(self, node: TreeNode, log: Any) -> VectorizationResult:
        parent_id = await self._parent_id(node.path)
        if not node.is_dir:
            return await self._files.vectorize_file(node.fs_path, parent_id, self._config, log=log)

        children_ids: list[str] = []
        for child in node.children:
            if not child.excluded:
                children_ids.extend(r.id for r in await self._store.get_by_path(child.path))
        return await self._directories.vectorize_directory(
            node.path, parent_id, self._config, children_ids=children_ids, log=log
        )

    # ------------------------------------------------------------------
    # Single-path operations
    # ------------------------------------------------------------------

    async def vectorize_path(
        self,
        path: str | Path,
        kind: EmbeddingKind | None = None,
    ) -> VectorizationResult:
        """Re-vectorize one file, replacing its records (or just one kind)."""
        normalized = normalize_path(path)
        await self._tracker.load_exclusions()
        if self._tracker.is_excluded(normalized):
            raise VectorizationError(f"'{normalized}' is excluded from vectorization", path=normalized)
        if not Path(path).is_file():
            raise VectorizationError(f"'{normalized}' is not a file", path=normalized)
        self._check_config()

        async with self._path_lock(normalized):
            for record in await self._store.get_by_path(normalized):
                if kind is None or record.kind is kind:
                    await self._store.delete_embedding(record.id)
            parent_id = await self._parent_id(normalized)
            result = await self._files.vectorize_file(path, parent_id, self._config)
        logger.info(
            "coordinator.path_vectorized",
            path=normalized,
            processed=result.processed,
            errors=result.errors,
        )
        return result

    async def delete_path(self, path: str | Path) -> int:
        """Remove the records of *path* and of everything below it."""
        normalized = normalize_path(path)
        async with self._path_lock(normalized):
            doomed = {normalized}
            doomed.update(item.path for item in await self._store.get_descendants(normalized))
            removed = 0
            for target in sorted(doomed):
                removed += await self._store.delete_by_path(target)
        self._tracker.notify_all_changed()
        logger.info("coordinator.path_deleted", path=normalized, removed=removed)
        return removed

    async def get_status(self, path: str | Path) -> PathStatus:
        await self._tracker.load_exclusions()
        return await self._tracker.get_status(path)

    async def exclude_path(self, path: str | Path) -> PathStatus:
        """Manually exclude *path* and everything below it from vectorization."""
        await self._tracker.set_excluded(path, True)
        logger.info("coordinator.path_excluded", path=normalize_path(path))
        return PathStatus.EXCLUDED

    async def include_path(self, path: str | Path) -> PathStatus:
        """Lift a manual exclusion; returns the status now derived for *path*."""
        await self._tracker.set_excluded(path, False)
        logger.info("coordinator.path_included", path=normalize_path(path))
        return await self._tracker.refresh(path)

    async def excluded_paths(self) -> list[str]:
        await self._tracker.load_exclusions()
        return self._tracker.excluded_paths

    # ------------------------------------------------------------------
    # Search and storage
    # ------------------------------------------------------------------

    async def search_similar(
        self,
        query_text: str,
        limit: int = DEFAULT_SEARCH_LIMIT,
        kinds: tuple[EmbeddingKind, ...] | list[EmbeddingKind] | None = None,
    ) -> list[SearchHit]:
        """Embed *query_text* and return the closest records."""
        if limit <= 0 or not query_text.strip():
            return []
        vector = await self._embedder.get_embedding(query_text)
        if not kinds:
            return await self._store.search_similar(vector, limit)

        # Over-fetch so that filtering by kind cannot starve the result.
        wanted = set(kinds)
        hits = await self._store.search_similar(vector, await self._store.get_count())
        return [h for h in hits if h.item.kind in wanted][:limit]

    async def get_storage_count(self) -> int:
        return await self._store.get_count()

    async def get_all_items(self, limit: int | None = None) -> list[EmbeddingItem]:
        return await self._store.get_all_items(limit)

    async def clear_storage(self) -> None:
        if self._running:
            raise VectorizationBusyError()
        await self._store.clear()
        self._tracker.notify_all_changed()
        self._publish(StorageCleared(cleared_at=datetime.now()))
        logger.info("coordinator.storage_cleared")

    async def dispose(self) -> None:
        self.cancel()
        await self._store.dispose()
        for component in (self._embedder, self._summarizer):
            aclose = getattr(component, "aclose", None)
            if aclose is not None:
                await aclose()

    def _publish(self, event: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.publish(event)
