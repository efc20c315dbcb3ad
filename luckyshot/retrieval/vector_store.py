# luckyshot/retrieval/vector_store.py

from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, ValidationError, model_validator

from luckyshot.errors import StoreError
from luckyshot.utils.fs import FileLock, atomic_write

STORE_VERSION = 1


class DenseEmbeddingRecord(BaseModel):
    """Embedding of one chunk of one file."""
    filename: str
    vector: List[float]
    last_modified: int = Field(..., description="File mtime at scan time, seconds since epoch")
    chunk_offset: int = Field(..., ge=0, description="Byte offset of the chunk in the file")
    chunk_length: int = Field(..., ge=0, description="Byte length of the chunk")
    is_full_file: bool = False
    has_metadata: bool = False


class SparseEmbeddingRecord(BaseModel):
    """BM25 document for one whole file."""
    filename: str
    token_ids: List[int]
    weights: List[float]
    deduplicated_tokens: List[str]
    token_count: int = Field(..., ge=0)
    last_modified: int
    has_metadata: bool = False

    @model_validator(mode="after")
    def parallel_unique_ids(self):
        if len(self.token_ids) != len(self.weights):
            raise ValueError("token_ids and weights must have the same length")
        if len(set(self.token_ids)) != len(self.token_ids):
            raise ValueError("token_ids must be unique")
        return self

    def as_dict(self) -> dict[int, float]:
        return dict(zip(self.token_ids, self.weights))


class CorpusStatistics(BaseModel):
    average_document_length: float = 0.0
    document_count: int = 0
    total_token_count: int = 0


class VectorStore(BaseModel):
    """
    Everything one scan produces. Built once, persisted as a single file and
    loaded wholesale for every query.
    """
    version: int = STORE_VERSION
    sparse_records: List[SparseEmbeddingRecord] = Field(default_factory=list)
    dense_records: List[DenseEmbeddingRecord] = Field(default_factory=list)
    scan_pattern: str = ""
    chunk_size: int = 0
    overlap_size: int = 0
    embed_metadata: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    corpus_statistics: CorpusStatistics = Field(default_factory=CorpusStatistics)


def save_store(store: VectorStore, path: Path) -> None:
    """Persist `store` at `path`, replacing any previous store in one step."""
    with FileLock(path):
        atomic_write(path, store.model_dump_json(indent=2))


def load_store(path: Path) -> VectorStore:
    """
    Load the store at `path`.
    Raises StoreError if it is missing, unreadable, malformed or from an
    unsupported version.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StoreError(f"Cannot read vectors file {path}: {e}") from e

    try:
        store = VectorStore.model_validate_json(raw)
    except ValidationError as e:
        raise StoreError(f"Cannot parse vectors file {path}: {e}") from e

    if store.version != STORE_VERSION:
        raise StoreError(f"Unsupported vectors file version {store.version} (expected {STORE_VERSION})")
    return store
