"""Vector similarity helpers."""

from collections.abc import Sequence

import numpy as np


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two vectors.

    Returns 0.0 instead of NaN when either vector has zero norm, and 0.0 for
    vectors of different lengths. The result is clipped to [-1, 1] to absorb
    floating point drift.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    vec_a = np.asarray(a, dtype=np.float64)
    vec_b = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    score = float(np.dot(vec_a, vec_b) / (norm_a * norm_b))
    return max(-1.0, min(1.0, score))


def cosine_similarity_matrix(query: Sequence[float], vectors: np.ndarray) -> np.ndarray:
    """Cosine similarity of one query against each row of a matrix.

    Rows with zero norm, and every row when the query has zero norm, score 0.
    """
    vec_q = np.asarray(query, dtype=np.float64)
    if vectors.size == 0:
        return np.zeros(0, dtype=np.float64)
    if vectors.shape[1] != vec_q.shape[0]:
        return np.zeros(vectors.shape[0], dtype=np.float64)

    norm_q = np.linalg.norm(vec_q)
    norms = np.linalg.norm(vectors, axis=1)
    if norm_q == 0:
        return np.zeros(vectors.shape[0], dtype=np.float64)

    denom = norms * norm_q
    scores = np.zeros(vectors.shape[0], dtype=np.float64)
    nonzero = denom > 0
    scores[nonzero] = (vectors[nonzero] @ vec_q) / denom[nonzero]
    return np.clip(scores, -1.0, 1.0)
