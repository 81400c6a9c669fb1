"""Path status tracker.

Keeps, per normalized path, one of ``not_processed``, ``processing``,
``processed`` or ``excluded``.  Only ``excluded`` (manual or glob driven)
and ``processing`` (in-flight task) are held here; ``processed`` and
``not_processed`` are derived from the vector store, never the reverse.

Every change is published as a :class:`PathStatusChanged` event so a host UI
can refresh its decorations.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

import structlog

from semtree.domain.entities import VectorizationConfig
from semtree.domain.enums import AGGREGATE_KINDS, FILE_KINDS, EmbeddingKind, PathStatus
from semtree.domain.events import PathStatusChanged
from semtree.domain.exceptions import StorageError
from semtree.domain.paths import (
    is_strictly_nested,
    matches_exclusion,
    normalize_path,
    parent_path,
)
from semtree.domain.ports import EventBus, ExclusionStore, VectorStore

logger = structlog.get_logger(__name__)


class PathStatusTracker:
    """Low-consistency cache of per-path indexing status."""

    def __init__(
        self,
        store: VectorStore,
        config: VectorizationConfig | None = None,
        event_bus: EventBus | None = None,
        exclusions: ExclusionStore | None = None,
    ) -> None:
        self._store = store
        self._config = config or VectorizationConfig()
        self._event_bus = event_bus
        self._exclusions = exclusions
        self._exclusions_loaded = False
        self._roots: list[str] = []
        self._excluded: set[str] = set()
        self._processing: set[str] = set()
        self._last: dict[str, PathStatus] = {}

    @property
    def config(self) -> VectorizationConfig:
        return self._config

    def configure(self, config: VectorizationConfig) -> None:
        self._config = config

    def add_root(self, root: str | Path) -> None:
        """Register a workspace root; exclusion globs are matched relative to it."""
        normalized = normalize_path(root)
        if normalized not in self._roots:
            self._roots.append(normalized)
            # Longest first so nested roots win.
            self._roots.sort(key=len, reverse=True)

    # ------------------------------------------------------------------
    # Exclusion
    # ------------------------------------------------------------------

    def _relative(self, path: str) -> str:
        for root in self._roots:
            if path == root:
                return ""
            if is_strictly_nested(path, root):
                return path[len(root):].lstrip("/")
        return path.lstrip("/")

    def is_excluded(self, path: str | Path) -> bool:
        normalized = normalize_path(path)
        ancestor: str | None = normalized
        while ancestor is not None:
            if ancestor in self._excluded:
                return True
            ancestor = parent_path(ancestor)
        return matches_exclusion(self._relative(normalized), self._config.exclude_patterns)

    def exclude(self, path: str | Path) -> None:
        normalized = normalize_path(path)
        self._excluded.add(normalized)
        self._processing.discard(normalized)
        self._publish(normalized, PathStatus.EXCLUDED)

    def include(self, path: str | Path) -> None:
        """Reset a manual exclusion (the path becomes eligible again)."""
        normalized = normalize_path(path)
        self._excluded.discard(normalized)
        self._processing.discard(normalized)
        self._publish(normalized, PathStatus.NOT_PROCESSED)

    @property
    def excluded_paths(self) -> list[str]:
        return sorted(self._excluded)

    async def load_exclusions(self) -> None:
        """Merge the persisted manual exclusions in, once."""
        if self._exclusions is None or self._exclusions_loaded:
            return
        paths = await asyncio.to_thread(self._exclusions.load)
        self._excluded.update(normalize_path(p) for p in paths)
        self._exclusions_loaded = True
        logger.debug("status.exclusions_loaded", count=len(paths))

    async def set_excluded(self, path: str | Path, excluded: bool) -> None:
        """Persist a manual exclusion change, then apply it.

        If the exclusion store cannot be written the in-memory set is left
        as it was.
        """
        await self.load_exclusions()
        normalized = normalize_path(path)
        wanted = set(self._excluded)
        if excluded:
            wanted.add(normalized)
        else:
            wanted.discard(normalized)
        if self._exclusions is not None and wanted != self._excluded:
            await asyncio.to_thread(self._exclusions.save, sorted(wanted))
        if excluded:
            self.exclude(normalized)
        else:
            self.include(normalized)

    # ------------------------------------------------------------------
    # Processing markers
    # ------------------------------------------------------------------

    def mark_processing(self, path: str | Path) -> None:
        normalized = normalize_path(path)
        self._processing.add(normalized)
        self._publish(normalized, PathStatus.PROCESSING)

    async def clear_processing(self, path: str | Path, *, is_directory: bool | None = None) -> PathStatus:
        """Drop the in-flight marker and publish the status derived from the store."""
        normalized = normalize_path(path)
        self._processing.discard(normalized)
        return await self.refresh(normalized, is_directory=is_directory)

    def is_processing(self, path: str | Path) -> bool:
        return normalize_path(path) in self._processing

    # ------------------------------------------------------------------
    # Status queries
    # ------------------------------------------------------------------

    def expected_kinds(self, is_directory: bool) -> list[EmbeddingKind]:
        kinds = AGGREGATE_KINDS if is_directory else FILE_KINDS
        return self._config.enabled_kinds(kinds)

    async def get_status(self, path: str | Path, *, is_directory: bool | None = None) -> PathStatus:
        """Current status; ``excluded`` wins regardless of store contents."""
        normalized = normalize_path(path)
        if self.is_excluded(normalized):
            return PathStatus.EXCLUDED
        if normalized in self._processing:
            return PathStatus.PROCESSING

        if is_directory is None:
            is_directory = Path(path).is_dir()
        expected = self.expected_kinds(is_directory)
        if not expected:
            return PathStatus.NOT_PROCESSED
        try:
            records = await self._store.get_by_path(normalized)
        except StorageError as e:
            logger.warning("status.store_check_failed", path=normalized, error=str(e))
            return PathStatus.NOT_PROCESSED
        present = {r.kind for r in records}
        if all(kind in present for kind in expected):
            return PathStatus.PROCESSED
        return PathStatus.NOT_PROCESSED

    def get_cached_status(self, path: str | Path) -> PathStatus:
        """Best effort status without touching the store."""
        normalized = normalize_path(path)
        if self.is_excluded(normalized):
            return PathStatus.EXCLUDED
        if normalized in self._processing:
            return PathStatus.PROCESSING
        return self._last.get(normalized, PathStatus.NOT_PROCESSED)

    async def refresh(self, path: str | Path, *, is_directory: bool | None = None) -> PathStatus:
        """Recompute the status of *path* from the store and publish it if it changed."""
        normalized = normalize_path(path)
        status = await self.get_status(path, is_directory=is_directory)
        self._publish(normalized, status)
        return status

    def notify_all_changed(self) -> None:
        """Tell listeners every status may have changed (e.g. after a clear)."""
        self._last.clear()
        if self._event_bus is not None:
            self._event_bus.publish(
                PathStatusChanged(path=None, status=None, changed_at=datetime.now())
            )

    def _publish(self, path: str, status: PathStatus) -> None:
        if self._last.get(path) == status:
            return
        self._last[path] = status
        if self._event_bus is not None:
            self._event_bus.publish(
                PathStatusChanged(path=path, status=status, changed_at=datetime.now())
            )
