"""JSON-lines VectorStore implementation.

Persists the in-memory store to a single ``embeddings.jsonl`` file so that
the index survives restarts::

    <store_path>/
    └── embeddings.jsonl      one EmbeddingItem per line

Adds are appended; updates, deletes and clears rewrite the file through a
temporary file and ``os.replace`` so a crash never leaves a torn file.
"""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path

import structlog
from pydantic import ValidationError

from semtree.domain.entities import EmbeddingItem
from semtree.domain.exceptions import StorageUnavailableError
from semtree.infrastructure.vector.memory_store import InMemoryVectorStore

logger = structlog.get_logger(__name__)

EMBEDDINGS_FILE = "embeddings.jsonl"


class JsonlVectorStore(InMemoryVectorStore):
    """In-memory vector store mirrored to a JSON-lines file."""

    def __init__(self, store_path: str | Path) -> None:
        super().__init__()
        self._root = Path(store_path)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def file_path(self) -> Path:
        return self._root / EMBEDDINGS_FILE

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    async def _load(self) -> None:
        items = await asyncio.to_thread(self._read_file)
        for item in items:
            if (item.path, item.kind) in self._by_key or item.id in self._items:
                logger.warning(
                    "jsonl_store.duplicate_skipped",
                    path=item.path,
                    kind=item.kind.value,
                )
                continue
            self._index(item)
        logger.info("jsonl_store.loaded", file=str(self.file_path), count=len(self._items))

    async def _persist_added(self, item: EmbeddingItem) -> None:
        await asyncio.to_thread(self._append_line, item)

    async def _persist_all(self, items: list[EmbeddingItem]) -> None:
        await asyncio.to_thread(self._rewrite, items)

    # ------------------------------------------------------------------
    # File I/O (runs in a worker thread)
    # ------------------------------------------------------------------

    def _read_file(self) -> list[EmbeddingItem]:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create store directory '{self._root}': {e}",
                details={"path": str(self._root)},
            ) from e

        path = self.file_path
        if not path.exists():
            return []

        items: list[EmbeddingItem] = []
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot read '{path}': {e}", details={"path": str(path)}
            ) from e

        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                items.append(EmbeddingItem.model_validate(json.loads(line)))
            except (json.JSONDecodeError, ValidationError) as e:
                logger.warning("jsonl_store.corrupt_line", line=number, error=str(e))
        return items

    def _append_line(self, item: EmbeddingItem) -> None:
        try:
            with self.file_path.open("a", encoding="utf-8") as f:
                f.write(item.model_dump_json() + "\n")
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot write '{self.file_path}': {e}",
                details={"path": str(self.file_path)},
            ) from e

    def _rewrite(self, items: list[EmbeddingItem]) -> None:
        path = self.file_path
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            with tmp.open("w", encoding="utf-8") as f:
                for item in items:
                    f.write(item.model_dump_json() + "\n")
            os.replace(tmp, path)
        except OSError as e:
            self._discard(tmp)
            raise StorageUnavailableError(
                f"Cannot rewrite '{path}': {e}", details={"path": str(path)}
            ) from e

    def _discard(self, tmp: Path) -> None:
        try:
            tmp.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("jsonl_store.tmp_cleanup_failed", file=str(tmp), error=str(e))
