"""Custom exceptions for semtree."""

from __future__ import annotations


class SemtreeError(Exception):
    """Base exception for all semtree errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationMissingError(SemtreeError):
    """Raised when a required configuration value is absent (e.g. no embedding model)."""

    pass


# ---------------------------------------------------------------------------
# Provider errors (embedding / summarization)
# ---------------------------------------------------------------------------


class ProviderError(SemtreeError):
    """Raised when an embedding or summarization call fails unexpectedly.

    Always carries the endpoint that was called so the caller can tell the
    user which server misbehaved.
    """

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        details: dict | None = None,
    ) -> None:
        super().__init__(
            f"{message} (endpoint: {endpoint})",
            details={"endpoint": endpoint, **(details or {})},
        )
        self.endpoint = endpoint


class ProviderTimeoutError(ProviderError):
    """The provider did not answer within the configured timeout."""

    def __init__(self, provider: str, *, endpoint: str, timeout: float) -> None:
        super().__init__(
            f"{provider} request timed out after {timeout:g}s; "
            "the server is running but too slow",
            endpoint=endpoint,
            details={"timeout": timeout, "provider": provider},
        )
        self.timeout = timeout


class ProviderUnreachableError(ProviderError):
    """The provider could not be connected to at all."""

    def __init__(self, provider: str, *, endpoint: str, reason: str = "") -> None:
        suffix = f": {reason}" if reason else ""
        super().__init__(
            f"Could not connect to {provider}; make sure the server is running{suffix}",
            endpoint=endpoint,
            details={"provider": provider},
        )


# ---------------------------------------------------------------------------
# Storage errors
# ---------------------------------------------------------------------------


class StorageError(SemtreeError):
    """Raised when a vector store operation fails."""

    pass


class StorageConflictError(StorageError):
    """A record with the same (path, kind) already exists."""

    def __init__(self, path: str, kind: str) -> None:
        super().__init__(
            f"Embedding of kind '{kind}' already exists for '{path}'",
            details={"path": path, "kind": kind},
        )
        self.path = path
        self.kind = kind


class StorageUnavailableError(StorageError):
    """The store cannot be read or written (disposed, missing, I/O failure)."""

    pass


class EmbeddingNotFoundError(StorageError):
    """No record with the given id exists."""

    def __init__(self, embedding_id: str) -> None:
        super().__init__(
            f"Embedding '{embedding_id}' not found",
            details={"id": embedding_id},
        )
        self.embedding_id = embedding_id


class InvalidVectorDimensionError(SemtreeError):
    """Two vectors of different length were compared."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            f"Vector dimension mismatch: expected {expected}, got {actual}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


# ---------------------------------------------------------------------------
# Vectorization errors
# ---------------------------------------------------------------------------


class VectorizationError(SemtreeError):
    """Raised when a vectorization request cannot be carried out."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message, details={"path": path} if path else None)
        self.path = path


class VectorizationBusyError(VectorizationError):
    """A full-tree run is already in progress."""

    def __init__(self) -> None:
        super().__init__("Vectorization is already running")
