"""JSON file holding the manually excluded paths.

Lives next to the vector store so exclusions survive restarts::

    <store_path>/
    ├── embeddings.jsonl
    └── exclusions.json       {"excluded": ["/ws/vendor", ...]}
"""

from __future__ import annotations

import json
import os
from pathlib import Path

import structlog

from semtree.domain.exceptions import StorageUnavailableError

logger = structlog.get_logger(__name__)

EXCLUSIONS_FILE = "exclusions.json"


class JsonExclusionStore:
    """Implements ``ExclusionStore`` on a single JSON document."""

    def __init__(self, store_path: str | Path) -> None:
        self._root = Path(store_path)

    @property
    def file_path(self) -> Path:
        return self._root / EXCLUSIONS_FILE

    def load(self) -> list[str]:
        path = self.file_path
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot read '{path}': {e}", details={"path": str(path)}
            ) from e
        except json.JSONDecodeError as e:
            logger.warning("exclusions.corrupt_file", file=str(path), error=str(e))
            return []

        excluded = data.get("excluded") if isinstance(data, dict) else None
        if not isinstance(excluded, list):
            logger.warning("exclusions.unexpected_format", file=str(path))
            return []
        return [p for p in excluded if isinstance(p, str) and p]

    def save(self, paths: list[str]) -> None:
        path = self.file_path
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps({"excluded": sorted(paths)}, indent=2), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            if tmp.exists():
                tmp.unlink()
            raise StorageUnavailableError(
                f"Cannot write '{path}': {e}", details={"path": str(path)}
            ) from e
        logger.debug("exclusions.saved", file=str(path), count=len(paths))
