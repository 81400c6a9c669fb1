"""Domain layer: entities, enums, rules, ports and exceptions."""

from semtree.domain.entities import (
    EmbeddingItem,
    RunStats,
    SearchHit,
    SearchResultEntry,
    VectorizationConfig,
    VectorizationResult,
)
from semtree.domain.enums import EmbeddingKind, EmbeddingType, PathStatus, SearchMode

__all__ = [
    "EmbeddingItem",
    "EmbeddingKind",
    "EmbeddingType",
    "PathStatus",
    "RunStats",
    "SearchHit",
    "SearchMode",
    "SearchResultEntry",
    "VectorizationConfig",
    "VectorizationResult",
]
