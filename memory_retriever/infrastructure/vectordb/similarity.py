"""Cosine similarity scoring."""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt


def cosine_scores(
    matrix: npt.NDArray[np.float64],
    query: Sequence[float],
) -> npt.NDArray[np.float64]:
    """Score every row of ``matrix`` against ``query``.

    Rows or queries with zero magnitude score 0.0.

    Args:
        matrix: Array of shape (n, d) holding stored vectors.
        query: Vector of length d.

    Returns:
        Array of n scores in [-1, 1].
    """
    q = np.asarray(query, dtype=np.float64)
    if matrix.shape[0] == 0:
        return np.zeros(0, dtype=np.float64)

    norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
    dots = matrix @ q
    scores = np.zeros_like(dots)
    np.divide(dots, norms, out=scores, where=norms > 0)
    # Rounding can push identical vectors slightly past 1.0
    return np.clip(scores, -1.0, 1.0)


def rank(scores: npt.NDArray[np.float64], k: int) -> list[int]:
    """Return positions of the top ``k`` scores, ties kept in position order."""
    order = np.argsort(-scores, kind="stable")
    return [int(i) for i in order[:k]]
