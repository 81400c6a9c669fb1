"""Domain enumerations for semtree."""

from __future__ import annotations

from enum import Enum


class EmbeddingType(str, Enum):
    """What an EmbeddingItem describes.

    ``CHUNK`` is reserved for sub-file granularity and is never produced
    by the vectorizers.
    """

    FILE = "file"
    DIRECTORY = "directory"
    CHUNK = "chunk"


class EmbeddingKind(str, Enum):
    """Discriminator between the records stored for the same path.

    ``ORIGIN`` and ``SUMMARIZE`` belong to files.  ``VS_ORIGIN`` and
    ``VS_SUMMARIZE`` are directory aggregates: the element-wise sum of the
    matching descendant vectors.
    """

    ORIGIN = "origin"
    SUMMARIZE = "summarize"
    VS_ORIGIN = "vs_origin"
    VS_SUMMARIZE = "vs_summarize"

    @property
    def is_aggregate(self) -> bool:
        return self in (EmbeddingKind.VS_ORIGIN, EmbeddingKind.VS_SUMMARIZE)

    @property
    def file_kind(self) -> EmbeddingKind:
        """The file-level kind an aggregate sums over."""
        if self is EmbeddingKind.VS_ORIGIN:
            return EmbeddingKind.ORIGIN
        if self is EmbeddingKind.VS_SUMMARIZE:
            return EmbeddingKind.SUMMARIZE
        return self


FILE_KINDS: tuple[EmbeddingKind, ...] = (EmbeddingKind.ORIGIN, EmbeddingKind.SUMMARIZE)
AGGREGATE_KINDS: tuple[EmbeddingKind, ...] = (
    EmbeddingKind.VS_ORIGIN,
    EmbeddingKind.VS_SUMMARIZE,
)


class PathStatus(str, Enum):
    """Ephemeral indexing state of a filesystem path.

    ``EXCLUDED`` is absorbing and wins over everything else.  ``PROCESSED``
    is never set by hand: it is derived from the vector store.
    """

    NOT_PROCESSED = "not_processed"
    PROCESSING = "processing"
    PROCESSED = "processed"
    EXCLUDED = "excluded"


class SearchMode(str, Enum):
    """Which family of records a search should return."""

    ORIGIN = "origin"
    SUMMARIZE = "summarize"
    ALL = "all"

    @property
    def kinds(self) -> tuple[EmbeddingKind, ...] | None:
        if self is SearchMode.ORIGIN:
            return (EmbeddingKind.ORIGIN, EmbeddingKind.VS_ORIGIN)
        if self is SearchMode.SUMMARIZE:
            return (EmbeddingKind.SUMMARIZE, EmbeddingKind.VS_SUMMARIZE)
        return None
