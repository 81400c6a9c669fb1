"""Directory vectorizer: writes the ``vs_origin`` / ``vs_summarize`` aggregates.

An aggregate is the element-wise sum of the matching vectors found below
the directory.  The subtree is walked by path prefix; where an intermediate
directory already carries an aggregate of the same kind, that aggregate
stands in for everything under it, so each file contributes exactly once.
"""

from __future__ import annotations

from typing import Any

import structlog

from semtree.application.status import PathStatusTracker
from semtree.domain.entities import EmbeddingItem, VectorizationConfig, VectorizationResult
from semtree.domain.enums import AGGREGATE_KINDS, EmbeddingKind, EmbeddingType
from semtree.domain.exceptions import (
    InvalidVectorDimensionError,
    SemtreeError,
    StorageConflictError,
)
from semtree.domain.paths import normalize_path, parent_path
from semtree.domain.ports import VectorStore
from semtree.infrastructure.vector.similarity import sum_vectors

logger = structlog.get_logger(__name__)


def select_contributors(
    directory: str,
    descendants: list[EmbeddingItem],
    kind: EmbeddingKind,
) -> list[EmbeddingItem]:
    """Pick the records whose vectors make up *directory*'s *kind* aggregate.

    Files of ``kind.file_kind`` and directories of ``kind`` qualify, unless a
    closer ancestor directory (below *directory*) already has an aggregate.
    """
    qualifying = [
        item
        for item in descendants
        if (item.type is EmbeddingType.FILE and item.kind is kind.file_kind)
        or (item.type is EmbeddingType.DIRECTORY and item.kind is kind)
    ]
    covered = {item.path for item in qualifying if item.type is EmbeddingType.DIRECTORY}

    selected: list[EmbeddingItem] = []
    for item in qualifying:
        ancestor = parent_path(item.path)
        shadowed = False
        while ancestor is not None and ancestor != directory:
            if ancestor in covered:
                shadowed = True
                break
            ancestor = parent_path(ancestor)
        if not shadowed:
            selected.append(item)
    return selected


class DirectoryVectorizer:
    """Creates the aggregate records for a single directory."""

    def __init__(self, store: VectorStore, tracker: PathStatusTracker) -> None:
        self._store = store
        self._tracker = tracker

    async def vectorize_directory(
        self,
        path: str,
        parent_id: str | None,
        config: VectorizationConfig,
        *,
        children_ids: list[str] | None = None,
        log: Any = None,
    ) -> VectorizationResult:
        """Write every enabled aggregate kind that *path* is missing.

        Must only be called once every child of *path* has been attempted.
        """
        normalized = normalize_path(path)
        log = (log or logger).bind(path=normalized)
        result = VectorizationResult()

        if self._tracker.is_excluded(normalized):
            log.debug("directory_vectorizer.excluded")
            return result

        existing = await self._store.get_by_path(normalized)
        present = {item.kind for item in existing}
        missing = [k for k in config.enabled_kinds(AGGREGATE_KINDS) if k not in present]

        disabled = [
            i for i in existing if i.kind in AGGREGATE_KINDS and not config.is_enabled(i.kind)
        ]
        for item in disabled:
            await self._store.delete_embedding(item.id)
            log.info("directory_vectorizer.disabled_kind_deleted", kind=item.kind.value)

        if not missing:
            if disabled:
                await self._tracker.refresh(normalized, is_directory=True)
            return result

        self._tracker.mark_processing(normalized)
        try:
            descendants = await self._store.get_descendants(normalized)
            for kind in missing:
                try:
                    created = await self._create(
                        kind, normalized, descendants, parent_id, children_ids or [], log
                    )
                except (StorageConflictError, InvalidVectorDimensionError) as e:
                    log.error("directory_vectorizer.integrity_error", kind=kind.value, error=e.message)
                    result.fail(f"{kind.value}: {e.message}")
                    continue
                except SemtreeError as e:
                    log.warning("directory_vectorizer.kind_failed", kind=kind.value, error=e.message)
                    result.fail(f"{kind.value}: {e.message}")
                    continue
                if created is not None:
                    result.processed += 1
        finally:
            await self._tracker.clear_processing(normalized, is_directory=True)

        return result

    async def _create(
        self,
        kind: EmbeddingKind,
        path: str,
        descendants: list[EmbeddingItem],
        parent_id: str | None,
        children_ids: list[str],
        log: Any,
    ) -> EmbeddingItem | None:
        contributors = select_contributors(path, descendants, kind)

        vectors: list[list[float]] = []
        dimension: int | None = None
        for item in contributors:
            if dimension is None:
                dimension = item.dimensions
            if item.dimensions != dimension:
                log.warning(
                    "directory_vectorizer.dimension_skipped",
                    kind=kind.value,
                    source=item.path,
                    expected=dimension,
                    actual=item.dimensions,
                )
                continue
            vectors.append(item.vector)

        if not vectors:
            log.warning("directory_vectorizer.nothing_to_aggregate", kind=kind.value)
            return None

        item = EmbeddingItem(
            type=EmbeddingType.DIRECTORY,
            parent=parent_id,
            children=list(children_ids),
            path=path,
            kind=kind,
            raw={
                "description": f"Sum of {len(vectors)} {kind.file_kind.value} vectors under {path}",
                "count": len(vectors),
            },
            vector=sum_vectors(vectors),
        )
        await self._store.add_embedding(item)
        log.debug("directory_vectorizer.created", kind=kind.value, count=len(vectors))
        return item
