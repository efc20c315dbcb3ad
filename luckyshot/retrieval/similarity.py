# luckyshot/retrieval/similarity.py

from typing import List, Sequence

import numpy as np

from luckyshot.errors import EmbeddingError


def dot_product_similarity(query: Sequence[float], doc: Sequence[float]) -> float:
    """Unnormalized dot product; magnitudes are not normalized here."""
    q_arr = np.asarray(query, dtype=np.float64)
    d_arr = np.asarray(doc, dtype=np.float64)
    if q_arr.shape != d_arr.shape:
        raise EmbeddingError(f"Vector dimensions differ: {q_arr.shape[0]} vs {d_arr.shape[0]}")
    return float(np.dot(q_arr, d_arr))


def dense_scores(query: Sequence[float], vectors: Sequence[Sequence[float]]) -> List[float]:
    """Dot product of `query` against every vector, in order."""
    if not vectors:
        return []
    matrix = np.asarray(vectors, dtype=np.float64)
    q_arr = np.asarray(query, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] != q_arr.shape[0]:
        raise EmbeddingError(
            f"Query vector has {q_arr.shape[0]} dimensions, stored vectors do not match"
        )
    return [float(s) for s in matrix @ q_arr]
