# luckyshot/retrieval/bm25_index.py

import hashlib
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence

from luckyshot.retrieval.tokenizer import deduplicate, tokenize_code
from luckyshot.retrieval.vector_store import CorpusStatistics, SparseEmbeddingRecord

# --------------------------------------------------------------------------------
# BM25 parameters
# --------------------------------------------------------------------------------

K1 = 1.5  # term frequency saturation
B = 0.75  # length normalization

_ID_MASK = (1 << 63) - 1

SparseVector = Dict[int, float]


def token_id(token: str) -> int:
    """Stable 63-bit id for a token, identical across processes."""
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") & _ID_MASK


class CorpusStatisticsBuilder:
    """
    Accumulates document lengths for one scan. Totals are summed and the mean
    is computed once, so the result does not depend on processing order.
    """

    def __init__(self):
        self.total_token_count = 0
        self.document_count = 0

    def add_document(self, unique_token_count: int) -> None:
        self.total_token_count += unique_token_count
        self.document_count += 1

    @property
    def average_document_length(self) -> float:
        if self.document_count == 0:
            return 0.0
        return self.total_token_count / self.document_count

    def build(self) -> CorpusStatistics:
        return CorpusStatistics(
            average_document_length=self.average_document_length,
            document_count=self.document_count,
            total_token_count=self.total_token_count,
        )


def bm25_weights(tokens: Sequence[str], avgdl: float) -> SparseVector:
    """
    BM25 term weight for every unique token in `tokens`.
    tf is the occurrence count in `tokens`; the document length is the number
    of unique tokens, normalized against `avgdl`.
    """
    counts = Counter(tokens)
    doc_len = len(counts)
    length_ratio = doc_len / avgdl if avgdl > 0 else 1.0
    norm = K1 * (1.0 - B + B * length_ratio)

    vector: SparseVector = {}
    for token in deduplicate(tokens):
        tf = counts[token]
        weight = tf * (K1 + 1.0) / (tf + norm)
        tid = token_id(token)
        # colliding ids share one slot
        vector[tid] = vector.get(tid, 0.0) + weight
    return vector


def bm25_score(query: SparseVector, document: SparseVector) -> float:
    """Sparse dot product over the ids present in both vectors."""
    if len(query) > len(document):
        query, document = document, query
    score = 0.0
    for tid, weight in query.items():
        other = document.get(tid)
        if other is not None:
            score += weight * other
    return score


def build_sparse_record(
    filename: str,
    tokens: Sequence[str],
    stats: CorpusStatistics,
    last_modified: int,
    has_metadata: bool,
) -> Optional[SparseEmbeddingRecord]:
    """Sparse record for one file, or None when the file produced no tokens."""
    if not tokens:
        return None
    unique = deduplicate(tokens)
    vector = bm25_weights(tokens, stats.average_document_length)
    return SparseEmbeddingRecord(
        filename=filename,
        token_ids=list(vector.keys()),
        weights=list(vector.values()),
        deduplicated_tokens=unique,
        token_count=len(unique),
        last_modified=last_modified,
        has_metadata=has_metadata,
    )


class BM25Index:
    """
    Query-time view over the sparse records of a loaded store. Documents are
    turned into id → weight dicts once so each score is an O(overlap) lookup.
    """

    def __init__(self, records: Iterable[SparseEmbeddingRecord], stats: CorpusStatistics):
        self.stats = stats
        self.documents: Dict[str, SparseVector] = {}
        self.order: List[str] = []
        for record in records:
            if record.filename not in self.documents:
                self.order.append(record.filename)
            self.documents[record.filename] = record.as_dict()

    def query_vector(self, query_text: str) -> SparseVector:
        """
        Sparse vector of a query, weighted against the persisted statistics.
        Queries go through the code tokenizer so `Vec<String>` or `x=1` split
        the way they do in source files.
        """
        return bm25_weights(tokenize_code(query_text), self.stats.average_document_length)

    def query(self, query_text: str) -> Dict[str, float]:
        """Return {filename: raw BM25 score} for every indexed document."""
        q_vec = self.query_vector(query_text)
        return {name: bm25_score(q_vec, self.documents[name]) for name in self.order}
