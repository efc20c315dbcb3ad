# luckyshot/retrieval/orchestrator.py

import sys
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from luckyshot.config import Settings, get_settings
from luckyshot.errors import ConfigurationError, EmbeddingError, StoreError
from luckyshot.retrieval.bm25_index import BM25Index, CorpusStatisticsBuilder, build_sparse_record
from luckyshot.retrieval.chunker import Chunk, chunk_document, validate_chunking
from luckyshot.retrieval.embedder import DenseEmbeddingAdapter, Embedder, OpenAIEmbedder, prepend_metadata
from luckyshot.retrieval.ranker import DenseCandidate, ScoredMatch, fuse
from luckyshot.retrieval.similarity import dense_scores
from luckyshot.retrieval.tokenizer import tokenize
from luckyshot.retrieval.vector_store import (
    DenseEmbeddingRecord,
    VectorStore,
    load_store,
    save_store,
)
from luckyshot.utils.fs import find_matching_files


@dataclass
class _ScannedFile:
    filename: str
    chunks: List[Chunk]
    tokens: List[str]
    last_modified: int
    size: int


# --------------------------------------------------------------------------------
# HybridRetriever: builds the BM25 + embedding store and searches it
# --------------------------------------------------------------------------------

class HybridRetriever:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        embedder: Optional[Embedder] = None,
        root: Optional[Path] = None,
    ):
        self.settings = settings or get_settings()
        self.root = Path(root or self.settings.luckyshot_home).resolve()
        self.store_path = self.root / self.settings.store_filename
        self._embedder = embedder

    @property
    def embedder(self) -> Embedder:
        # created lazily so searches against a missing store need no API key
        if self._embedder is None:
            self._embedder = OpenAIEmbedder(self.settings)
        return self._embedder

    def _relative_name(self, path: Path) -> str:
        path = Path(path)
        if not path.is_absolute():
            path = self.root / path
        try:
            return path.resolve().relative_to(self.root).as_posix()
        except ValueError:
            # outside the project root: keep the absolute path
            return str(path)

    def _resolve(self, filename: str) -> Path:
        path = Path(filename)
        return path if path.is_absolute() else self.root / path

    # ---------------------------------------------------------------- scanning

    def _read_file(self, path: Path, chunk_size: int, overlap_size: int, embed_metadata: bool) -> _ScannedFile:
        filename = self._relative_name(path)
        print(f"[Scan] Processing: {filename}")
        full_path = self._resolve(filename)
        try:
            data = full_path.read_bytes()
            text = data.decode("utf-8")
            stat = full_path.stat()
        except (OSError, UnicodeDecodeError) as e:
            print(f"[Scan] Error reading file {filename}: {e}", file=sys.stderr)
            raise

        last_modified = int(stat.st_mtime)
        indexed_text = prepend_metadata(filename, last_modified, stat.st_size, text) if embed_metadata else text
        return _ScannedFile(
            filename=filename,
            chunks=chunk_document(filename, data, chunk_size, overlap_size),
            tokens=tokenize(indexed_text, full_path.suffix),
            last_modified=last_modified,
            size=stat.st_size,
        )

    def _embed_all(
        self,
        adapter: DenseEmbeddingAdapter,
        files: Sequence[_ScannedFile],
        embed_metadata: bool,
    ) -> List[DenseEmbeddingRecord]:
        jobs = [(f, ch) for f in files for ch in f.chunks]
        max_workers = max(1, int(self.settings.retrieval["scan"]["max_workers"]))

        def run(job) -> DenseEmbeddingRecord:
            scanned, chunk = job
            try:
                record = adapter.embed_chunk(chunk, scanned.last_modified, scanned.size, embed_metadata)
            except EmbeddingError as e:
                print(f"[Scan] Error getting embedding for {chunk.filename}: {e}", file=sys.stderr)
                raise
            if chunk.is_full_file:
                print(f"[Scan] Got embedding for {chunk.filename}")
            else:
                print(f"[Scan] Got embedding for {chunk.filename} (chunk offset: {chunk.byte_offset})")
            return record

        if max_workers == 1:
            return [run(job) for job in jobs]

        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = [pool.submit(run, job) for job in jobs]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in pending:
                fut.cancel()
            for fut in futures:
                if fut in done and fut.exception() is not None:
                    raise fut.exception()
            return [fut.result() for fut in futures]

    def build_index(
        self,
        file_paths: Iterable[Path],
        chunk_size: int,
        overlap_size: int,
        embed_metadata: bool = False,
        scan_pattern: str = "",
    ) -> VectorStore:
        """
        Build a fresh store from `file_paths`.

        Pass one reads, chunks and tokenizes every file and accumulates corpus
        statistics; pass two computes BM25 weights against the final statistics
        and embeds every chunk. The first read or provider error propagates and
        nothing is returned.
        """
        validate_chunking(chunk_size, overlap_size)

        files: List[_ScannedFile] = []
        stats_builder = CorpusStatisticsBuilder()
        for path in file_paths:
            scanned = self._read_file(Path(path), chunk_size, overlap_size, embed_metadata)
            if scanned.tokens:
                stats_builder.add_document(len(set(scanned.tokens)))
            files.append(scanned)
        stats = stats_builder.build()

        sparse_records = []
        for scanned in files:
            record = build_sparse_record(
                scanned.filename, scanned.tokens, stats, scanned.last_modified, embed_metadata
            )
            if record is not None:
                sparse_records.append(record)

        dense_records: List[DenseEmbeddingRecord] = []
        if any(f.chunks for f in files):
            adapter = DenseEmbeddingAdapter(self.embedder)
            dense_records = self._embed_all(adapter, files, embed_metadata)

        return VectorStore(
            sparse_records=sparse_records,
            dense_records=dense_records,
            scan_pattern=scan_pattern,
            chunk_size=chunk_size,
            overlap_size=overlap_size,
            embed_metadata=embed_metadata,
            corpus_statistics=stats,
        )

    def index_codebase(
        self,
        pattern: Optional[str] = None,
        chunk_size: Optional[int] = None,
        overlap_size: Optional[int] = None,
        embed_metadata: Optional[bool] = None,
    ) -> VectorStore:
        """
        Discover files matching `pattern`, rebuild the store and persist it.
        Unset arguments come from the `retrieval.scan` settings.
        """
        scan_cfg = self.settings.retrieval["scan"]
        pattern = pattern if pattern is not None else scan_cfg["pattern"]
        chunk_size = chunk_size if chunk_size is not None else int(scan_cfg["chunk_size"])
        overlap_size = overlap_size if overlap_size is not None else int(scan_cfg["overlap_size"])
        embed_metadata = embed_metadata if embed_metadata is not None else bool(scan_cfg["embed_metadata"])

        validate_chunking(chunk_size, overlap_size)

        print(f"[Scan] Scanning for files matching pattern: {pattern}")
        files = find_matching_files(self.root, pattern, exclude=[self.settings.store_filename],
                                   exclude_dirs=[Path(self.settings.llm_log_dir)])
        store = self.build_index(files, chunk_size, overlap_size, embed_metadata, scan_pattern=pattern)

        save_store(store, self.store_path)
        print(f"[Scan] Saved vectors for {len(store.dense_records)} chunks "
              f"from {len(store.sparse_records)} files")
        return store

    # ---------------------------------------------------------------- searching

    def load(self) -> Optional[VectorStore]:
        """Load the persisted store, or None (with a diagnostic) if it is unusable."""
        try:
            return load_store(self.store_path)
        except StoreError as e:
            print(f"[Search] {e}", file=sys.stderr)
            return None

    def search(
        self,
        query: str,
        filter_similarity: Optional[float] = None,
        count: Optional[int] = None,
        bm25_scale: Optional[float] = None,
        rag_scale: Optional[float] = None,
        verbose: bool = False,
        include_file_contents: bool = False,
        store: Optional[VectorStore] = None,
    ) -> List[ScoredMatch]:
        """
        Rank stored files/chunks against `query`.

        Non-verbose searches return each file at most once (its best chunk);
        verbose searches keep every chunk. Unset knobs come from the
        `retrieval.fusion` settings. A missing or corrupt store, or a failed
        query embedding, yields [].
        """
        fusion_cfg = self.settings.retrieval["fusion"]
        filter_similarity = float(fusion_cfg["filter_similarity"] if filter_similarity is None else filter_similarity)
        count = int(fusion_cfg["count"] if count is None else count)
        bm25_scale = float(fusion_cfg["bm25_scale"] if bm25_scale is None else bm25_scale)
        rag_scale = float(fusion_cfg["rag_scale"] if rag_scale is None else rag_scale)

        if not query or not query.strip():
            raise ConfigurationError("Query text must not be empty")
        if not 0.0 <= filter_similarity <= 1.0:
            raise ConfigurationError("filter_similarity must be between 0 and 1")
        if count < 0:
            raise ConfigurationError("count must not be negative")

        if store is None:
            store = self.load()
            if store is None:
                return []

        bm25 = BM25Index(store.sparse_records, store.corpus_statistics)
        bm25_scores = bm25.query(query)

        dense: List[DenseCandidate] = []
        if store.dense_records:
            try:
                q_emb = self.embedder.embed(query)
                raw = dense_scores(q_emb, [r.vector for r in store.dense_records])
            except EmbeddingError as e:
                print(f"[Search] Error getting query embedding: {e}", file=sys.stderr)
                return []
            dense = [
                DenseCandidate(r.filename, r.chunk_offset, r.chunk_length, r.is_full_file, s)
                for r, s in zip(store.dense_records, raw)
            ]

        matches = fuse(
            bm25_scores,
            dense,
            bm25_scale=bm25_scale,
            rag_scale=rag_scale,
            filter_similarity=filter_similarity,
            count=count,
            dedupe=not verbose,
        )

        if include_file_contents:
            self._attach_contents(matches, store)
        return matches

    def _attach_contents(self, matches: List[ScoredMatch], store: VectorStore) -> None:
        """Re-read each match's chunk from the live file; unreadable files are skipped."""
        has_metadata = {r.filename: r.has_metadata for r in store.sparse_records}
        last_modified = {r.filename: r.last_modified for r in store.sparse_records}
        for r in store.dense_records:
            has_metadata[r.filename] = r.has_metadata
            last_modified[r.filename] = r.last_modified

        for m in matches:
            path = self._resolve(m.filename)
            try:
                data = path.read_bytes()
                size = path.stat().st_size
            except OSError:
                continue

            if m.is_full_file and m.chunk_length == 0:
                piece = data
            else:
                end = m.chunk_offset + m.chunk_length
                if end > len(data):
                    continue
                piece = data[m.chunk_offset:end]

            content = piece.decode("utf-8", errors="replace")
            if has_metadata.get(m.filename):
                content = prepend_metadata(m.filename, last_modified[m.filename], size, content)
            m.content = content

    def fetch_context(self, query: str, top_n: int = 5) -> List[ScoredMatch]:
        """Top `top_n` file-level matches with their contents, for prompting."""
        return self.search(
            query,
            filter_similarity=0.0,
            count=top_n,
            verbose=False,
            include_file_contents=True,
        )
