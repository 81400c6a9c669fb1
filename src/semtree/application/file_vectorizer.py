"""File vectorizer: writes the ``origin`` and ``summarize`` records of one file.

One ``get_by_path`` lookup decides which enabled kinds are still missing.
Each kind is committed on its own, so a failing summarizer never prevents
the ``origin`` record from landing.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import structlog

from semtree.application.status import PathStatusTracker
from semtree.domain.entities import EmbeddingItem, VectorizationConfig, VectorizationResult
from semtree.domain.enums import FILE_KINDS, EmbeddingKind, EmbeddingType
from semtree.domain.exceptions import (
    ConfigurationMissingError,
    InvalidVectorDimensionError,
    SemtreeError,
    StorageConflictError,
)
from semtree.domain.paths import normalize_path
from semtree.domain.ports import EmbeddingProvider, TextSummarizer, VectorStore

logger = structlog.get_logger(__name__)

# Store contract violations are bugs or races, not provider hiccups.
_INTEGRITY_ERRORS = (StorageConflictError, InvalidVectorDimensionError)


def read_text_file(path: Path) -> str:
    return path.read_text(encoding="utf-8")


class FileVectorizer:
    """Creates the per-file records for a single path."""

    def __init__(
        self,
        store: VectorStore,
        embedding_provider: EmbeddingProvider,
        tracker: PathStatusTracker,
        summarizer: TextSummarizer | None = None,
    ) -> None:
        self._store = store
        self._embedder = embedding_provider
        self._tracker = tracker
        self._summarizer = summarizer

    async def vectorize_file(
        self,
        path: str | Path,
        parent_id: str | None,
        config: VectorizationConfig,
        *,
        log: Any = None,
    ) -> VectorizationResult:
        """Write every enabled file kind that *path* is missing.

        Returns a result with the number of records written and the number
        of failures; never raises for per-kind failures.
        """
        normalized = normalize_path(path)
        log = (log or logger).bind(path=normalized)
        result = VectorizationResult()

        if self._tracker.is_excluded(normalized):
            log.debug("file_vectorizer.excluded")
            return result

        existing = await self._store.get_by_path(normalized)
        present = {item.kind for item in existing}
        missing = [k for k in config.enabled_kinds(FILE_KINDS) if k not in present]

        disabled = [i for i in existing if i.kind in FILE_KINDS and not config.is_enabled(i.kind)]
        for item in disabled:
            await self._store.delete_embedding(item.id)
            log.info("file_vectorizer.disabled_kind_deleted", kind=item.kind.value)

        if not missing:
            if disabled:
                await self._tracker.refresh(normalized, is_directory=False)
            return result

        self._tracker.mark_processing(normalized)
        try:
            try:
                content = await asyncio.to_thread(read_text_file, Path(path))
            except (OSError, UnicodeDecodeError) as e:
                log.warning("file_vectorizer.unreadable", error=str(e))
                result.fail(f"cannot read file: {e}")
                return result

            for kind in missing:
                try:
                    await self._create(kind, normalized, content, parent_id, config, log)
                    result.processed += 1
                except _INTEGRITY_ERRORS as e:
                    log.error("file_vectorizer.integrity_error", kind=kind.value, error=e.message)
                    result.fail(f"{kind.value}: {e.message}")
                except SemtreeError as e:
                    log.warning("file_vectorizer.kind_failed", kind=kind.value, error=e.message)
                    result.fail(f"{kind.value}: {e.message}")
        finally:
            await self._tracker.clear_processing(normalized, is_directory=False)

        return result

    async def _create(
        self,
        kind: EmbeddingKind,
        path: str,
        content: str,
        parent_id: str | None,
        config: VectorizationConfig,
        log: Any,
    ) -> EmbeddingItem:
        if kind is EmbeddingKind.SUMMARIZE:
            if self._summarizer is None:
                raise ConfigurationMissingError(
                    "Summarization is enabled but no summarization model is configured"
                )
            text = await self._summarizer.summarize(content, config.summarize_prompt)
        else:
            text = content

        vector = await self._embedder.get_embedding(text)
        item = EmbeddingItem(
            type=EmbeddingType.FILE,
            parent=parent_id,
            path=path,
            kind=kind,
            raw=text,
            vector=vector,
        )
        await self._store.add_embedding(item)
        log.debug("file_vectorizer.created", kind=kind.value, dimensions=item.dimensions)
        return item
