"""Application layer: vectorizers, status tracking and run coordination."""

from semtree.application.context import CancellationToken, RunContext
from semtree.application.coordinator import VectorizationCoordinator
from semtree.application.directory_vectorizer import DirectoryVectorizer
from semtree.application.file_vectorizer import FileVectorizer
from semtree.application.status import PathStatusTracker

__all__ = [
    "CancellationToken",
    "DirectoryVectorizer",
    "FileVectorizer",
    "PathStatusTracker",
    "RunContext",
    "VectorizationCoordinator",
]
