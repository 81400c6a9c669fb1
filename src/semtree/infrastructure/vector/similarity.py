"""Vector math shared by the stores and the directory vectorizer."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from semtree.domain.exceptions import InvalidVectorDimensionError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Dot product divided by the product of magnitudes.

    Raises ``InvalidVectorDimensionError`` when the lengths differ; a zero
    vector on either side scores 0.0.
    """
    if len(a) != len(b):
        raise InvalidVectorDimensionError(expected=len(a), actual=len(b))
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def cosine_scores(matrix: np.ndarray, query: np.ndarray) -> np.ndarray:
    """Cosine similarity of every row of *matrix* against *query*."""
    if matrix.shape[1] != query.shape[0]:
        raise InvalidVectorDimensionError(expected=query.shape[0], actual=matrix.shape[1])
    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query
    with np.errstate(divide="ignore", invalid="ignore"):
        scores = np.where(norms > 0, dots / norms, 0.0)
    return scores


def sum_vectors(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise sum; all vectors must share one dimension."""
    if not vectors:
        return []
    dimension = len(vectors[0])
    for vector in vectors:
        if len(vector) != dimension:
            raise InvalidVectorDimensionError(expected=dimension, actual=len(vector))
    total = np.sum(np.asarray(vectors, dtype=np.float64), axis=0)
    return [float(x) for x in total]
