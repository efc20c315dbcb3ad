# luckyshot/retrieval/ranker.py

import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

EPSILON = sys.float_info.epsilon


@dataclass
class ScoredMatch:
    filename: str
    chunk_offset: int
    chunk_length: int
    is_full_file: bool
    raw_score: float
    score: float
    content: Optional[str] = None


@dataclass(frozen=True)
class DenseCandidate:
    filename: str
    chunk_offset: int
    chunk_length: int
    is_full_file: bool
    raw_score: float


def normalize_bm25_symmetric(scores: Sequence[float]) -> List[float]:
    """
    Scale scores by the largest magnitude so it lands on ±1.0, keeping signs
    and keeping zero at zero. All-zero input is returned unchanged.
    """
    if not scores:
        return []
    max_extent = max(abs(min(scores)), abs(max(scores)))
    if max_extent <= EPSILON:
        return list(scores)
    return [s / max_extent for s in scores]


def min_max_normalize(scores: Sequence[float]) -> List[float]:
    """Map scores to [0, 1]. Returned unchanged when all scores are equal."""
    if not scores:
        return []
    lo, hi = min(scores), max(scores)
    if abs(hi - lo) <= EPSILON:
        return list(scores)
    return [(s - lo) / (hi - lo) for s in scores]


def fuse(
    bm25_scores: Dict[str, float],
    dense: Sequence[DenseCandidate],
    bm25_scale: float,
    rag_scale: float,
    filter_similarity: float = 0.0,
    count: int = 0,
    dedupe: bool = True,
) -> List[ScoredMatch]:
    """
    Blend file-level BM25 scores with chunk-level dense scores.

    Every dense chunk is a candidate; files that only have a BM25 score become
    whole-file candidates after all chunks. Results are min-max normalized,
    stable-sorted by score, optionally reduced to the best chunk per file,
    filtered by `filter_similarity` and capped at `count` (0 = no cap).
    """
    bm25_names = list(bm25_scores.keys())
    bm25_norm = dict(zip(bm25_names, normalize_bm25_symmetric([bm25_scores[n] for n in bm25_names])))
    dense_norm = min_max_normalize([c.raw_score for c in dense])

    # (filename, offset, length, is_full_file, hybrid)
    candidates: List[Tuple[str, int, int, bool, float]] = []
    for cand, d_score in zip(dense, dense_norm):
        hybrid = rag_scale * d_score + bm25_scale * bm25_norm.get(cand.filename, 0.0)
        candidates.append((cand.filename, cand.chunk_offset, cand.chunk_length, cand.is_full_file, hybrid))

    with_dense = {c.filename for c in dense}
    for name in bm25_names:
        if name not in with_dense:
            candidates.append((name, 0, 0, True, bm25_scale * bm25_norm[name]))

    normalized = min_max_normalize([c[4] for c in candidates])
    matches = [
        ScoredMatch(
            filename=name,
            chunk_offset=offset,
            chunk_length=length,
            is_full_file=full,
            raw_score=hybrid,
            score=score,
        )
        for (name, offset, length, full, hybrid), score in zip(candidates, normalized)
    ]

    # sorted() is stable: equal scores keep encounter order
    matches = sorted(matches, key=lambda m: m.score, reverse=True)

    if dedupe:
        seen = set()
        unique = []
        for m in matches:
            if m.filename in seen:
                continue
            seen.add(m.filename)
            unique.append(m)
        matches = unique

    matches = [m for m in matches if m.score >= filter_similarity]

    if count > 0:
        matches = matches[:count]
    return matches
