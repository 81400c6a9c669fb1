"""Domain entities for semtree.

All entities are Pydantic BaseModels; the result/bookkeeping types that
never cross a process boundary are plain dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from semtree.domain.enums import EmbeddingKind, EmbeddingType
from semtree.domain.paths import normalize_path


def new_embedding_id() -> str:
    return uuid4().hex


# ---------------------------------------------------------------------------
# Core entity
# ---------------------------------------------------------------------------


class EmbeddingItem(BaseModel):
    """The unit of storage: one vector for one (path, kind) pair.

    ``parent`` is a back-reference only; the vector store owns the record's
    lifetime.  ``children`` is kept for traversal convenience and is not
    load-bearing: what lies under a directory is decided by path prefix.
    """

    id: str = Field(default_factory=new_embedding_id)
    type: EmbeddingType
    parent: str | None = None
    children: list[str] = Field(default_factory=list)
    path: str
    kind: EmbeddingKind
    raw: str | dict[str, Any] = ""
    vector: list[float]

    @field_validator("path")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_path(value)

    @property
    def dimensions(self) -> int:
        return len(self.vector)


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------


class SearchHit(BaseModel):
    """An EmbeddingItem scored against a query vector."""

    item: EmbeddingItem
    similarity: float


class SearchResultEntry(BaseModel):
    """What the host receives for one search result."""

    path: str
    kind: EmbeddingKind
    type: EmbeddingType
    similarity: float


class VectorizationConfig(BaseModel):
    """Already-validated switches consumed by the vectorizers."""

    enable_origin: bool = True
    enable_summarize: bool = False
    enable_vs_origin: bool = True
    enable_vs_summarize: bool = False
    summarize_prompt: str | None = None
    exclude_patterns: list[str] = Field(default_factory=list)
    max_workers: int = Field(default=4, ge=1)

    model_config = {"frozen": True}

    def is_enabled(self, kind: EmbeddingKind) -> bool:
        return {
            EmbeddingKind.ORIGIN: self.enable_origin,
            EmbeddingKind.SUMMARIZE: self.enable_summarize,
            EmbeddingKind.VS_ORIGIN: self.enable_vs_origin,
            EmbeddingKind.VS_SUMMARIZE: self.enable_vs_summarize,
        }[kind]

    def enabled_kinds(self, kinds: tuple[EmbeddingKind, ...]) -> list[EmbeddingKind]:
        return [k for k in kinds if self.is_enabled(k)]


# ---------------------------------------------------------------------------
# Run bookkeeping
# ---------------------------------------------------------------------------


@dataclass
class VectorizationResult:
    """Outcome of vectorizing a single path: records written and failures."""

    processed: int = 0
    errors: int = 0
    messages: list[str] = field(default_factory=list)

    def __add__(self, other: VectorizationResult) -> VectorizationResult:
        return VectorizationResult(
            processed=self.processed + other.processed,
            errors=self.errors + other.errors,
            messages=[*self.messages, *other.messages],
        )

    def fail(self, message: str) -> None:
        self.errors += 1
        self.messages.append(message)


@dataclass
class PathError:
    path: str
    message: str


@dataclass
class RunStats:
    """Result of a full-tree vectorization run."""

    processed: int = 0
    errors: int = 0
    skipped: int = 0
    excluded: int = 0
    cancelled: bool = False
    duration_ms: float = 0.0
    failures: list[PathError] = field(default_factory=list)

    def record(self, path: str, result: VectorizationResult) -> None:
        self.processed += result.processed
        self.errors += result.errors
        self.failures.extend(PathError(path=path, message=m) for m in result.messages)
        if result.processed == 0 and result.errors == 0:
            self.skipped += 1

    def record_failure(self, path: str, message: str) -> None:
        self.errors += 1
        self.failures.append(PathError(path=path, message=message))

    def summary(self) -> dict[str, int]:
        return {"processed": self.processed, "errors": self.errors}
