# tests/test_retrieval.py

import pytest
from pathlib import Path

from conftest import FakeEmbedder
from luckyshot.config import Settings
from luckyshot.errors import ConfigurationError, EmbeddingError
from luckyshot.retrieval.orchestrator import HybridRetriever
from luckyshot.retrieval.vector_store import load_store

@pytest.fixture(scope="function")
def temp_repo(tmp_path, monkeypatch):
    """
    Create a temporary codebase with two small Python files:
      - hello.py containing a function 'def greet(): return "hello"'
      - math_utils.py containing add() and multiply()
    """
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / "hello.py").write_text("def greet():\n    return 'hello'\n")
    (repo / "math_utils.py").write_text(
        "def add(a, b):\n    return a + b\n\ndef multiply(x, y):\n    return x * y\n"
    )
    monkeypatch.chdir(repo)
    return repo

def make_retriever(repo: Path, embedder=None, **retrieval) -> HybridRetriever:
    settings = Settings(luckyshot_home=repo, retrieval=retrieval)
    return HybridRetriever(settings=settings, embedder=embedder or FakeEmbedder())

def test_index_codebase_persists_store(temp_repo):
    retriever = make_retriever(temp_repo)
    store = retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)

    assert retriever.store_path.exists()
    assert retriever.store_path.name == ".luckyshot.file.vectors.v1"
    assert {r.filename for r in store.sparse_records} == {"hello.py", "math_utils.py"}
    assert {r.filename for r in store.dense_records} == {"hello.py", "math_utils.py"}
    assert all(r.is_full_file for r in store.dense_records)
    assert store.scan_pattern == "**/*.py"
    assert store.corpus_statistics.document_count == 2

    loaded = load_store(retriever.store_path)
    assert loaded == store

def test_dense_records_stay_within_file(temp_repo):
    retriever = make_retriever(temp_repo)
    store = retriever.index_codebase(pattern="**/*.py", chunk_size=16, overlap_size=4)

    for record in store.dense_records:
        size = len((temp_repo / record.filename).read_bytes())
        assert record.chunk_offset + record.chunk_length <= size
        assert not record.is_full_file

def test_average_document_length_is_mean_of_unique_tokens(temp_repo):
    retriever = make_retriever(temp_repo)
    store = retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)

    counts = [r.token_count for r in store.sparse_records]
    assert store.corpus_statistics.average_document_length == pytest.approx(sum(counts) / len(counts))

def test_second_scan_replaces_store(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)
    (temp_repo / "hello.py").unlink()
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)

    loaded = load_store(retriever.store_path)
    assert {r.filename for r in loaded.dense_records} == {"math_utils.py"}

def test_scan_skips_store_and_hidden_files(temp_repo):
    (temp_repo / ".hidden").mkdir()
    (temp_repo / ".hidden" / "secret.py").write_text("def secret(): pass\n")
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*", chunk_size=0, overlap_size=0)
    store = retriever.index_codebase(pattern="**/*", chunk_size=0, overlap_size=0)

    names = {r.filename for r in store.sparse_records}
    assert names == {"hello.py", "math_utils.py"}

def test_search_ranks_relevant_file_first(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)

    matches = retriever.search("multiply x y", filter_similarity=0.0, count=0,
                               bm25_scale=0.5, rag_scale=0.5)
    assert [m.filename for m in matches] == ["math_utils.py", "hello.py"]
    assert matches[0].score == pytest.approx(1.0)
    assert matches[1].score == pytest.approx(0.0)

def test_search_threshold_and_count(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)

    filtered = retriever.search("multiply x y", filter_similarity=0.5, count=0,
                                bm25_scale=0.5, rag_scale=0.5)
    assert [m.filename for m in filtered] == ["math_utils.py"]

    capped = retriever.search("multiply x y", filter_similarity=0.0, count=1,
                              bm25_scale=0.5, rag_scale=0.5)
    assert len(capped) == 1

def test_non_verbose_search_returns_each_file_once(temp_repo):
    retriever = make_retriever(temp_repo)
    store = retriever.index_codebase(pattern="**/*.py", chunk_size=20, overlap_size=5)
    assert len(store.dense_records) > 2

    flat = retriever.search("multiply", filter_similarity=0.0, count=0,
                            bm25_scale=0.5, rag_scale=0.5)
    names = [m.filename for m in flat]
    assert len(names) == len(set(names)) == 2

    detailed = retriever.search("multiply", filter_similarity=0.0, count=0,
                                bm25_scale=0.5, rag_scale=0.5, verbose=True)
    assert len(detailed) == len(store.dense_records)
    assert detailed[0].score >= detailed[-1].score

def test_overlap_validated_before_any_read(temp_repo):
    embedder = FakeEmbedder()
    retriever = make_retriever(temp_repo, embedder=embedder)

    with pytest.raises(ConfigurationError):
        retriever.build_index([temp_repo / "does_not_exist.py"], chunk_size=50, overlap_size=50)
    with pytest.raises(ConfigurationError):
        retriever.index_codebase(pattern="**/*.py", chunk_size=50, overlap_size=50)

    assert embedder.calls == []
    assert not retriever.store_path.exists()

def test_unreadable_file_aborts_build(temp_repo):
    retriever = make_retriever(temp_repo)
    with pytest.raises(OSError):
        retriever.build_index([temp_repo / "hello.py", temp_repo / "missing.py"],
                              chunk_size=0, overlap_size=0)

def test_provider_failure_aborts_scan(temp_repo):
    retriever = make_retriever(temp_repo, embedder=FakeEmbedder(fail_after=1))
    with pytest.raises(EmbeddingError):
        retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)
    assert not retriever.store_path.exists()

def test_provider_failure_with_workers_aborts_scan(temp_repo):
    retriever = make_retriever(temp_repo, embedder=FakeEmbedder(fail_after=1), scan={"max_workers": 4})
    with pytest.raises(EmbeddingError):
        retriever.index_codebase(pattern="**/*.py", chunk_size=8, overlap_size=2)
    assert not retriever.store_path.exists()

def test_parallel_scan_matches_sequential(temp_repo):
    sequential = make_retriever(temp_repo).build_index(
        sorted(temp_repo.glob("*.py")), chunk_size=12, overlap_size=3)
    parallel = make_retriever(temp_repo, scan={"max_workers": 4}).build_index(
        sorted(temp_repo.glob("*.py")), chunk_size=12, overlap_size=3)

    assert parallel.dense_records == sequential.dense_records
    assert parallel.sparse_records == sequential.sparse_records

def test_search_missing_store_returns_empty(temp_repo):
    embedder = FakeEmbedder()
    retriever = make_retriever(temp_repo, embedder=embedder)
    assert retriever.search("anything", filter_similarity=0.0) == []
    assert embedder.calls == []

def test_search_corrupt_store_returns_empty(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.store_path.write_text("{not json")
    assert retriever.search("anything", filter_similarity=0.0) == []

def test_search_store_with_invalid_utf8_returns_empty(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.store_path.write_bytes(b"\xff\xfe{garbage")
    assert retriever.search("anything", filter_similarity=0.0) == []

def test_query_embedding_failure_returns_empty(temp_repo):
    make_retriever(temp_repo).index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)
    retriever = make_retriever(temp_repo, embedder=FakeEmbedder(fail_after=0))
    assert retriever.search("multiply", filter_similarity=0.0) == []

def test_search_parameter_validation(temp_repo):
    retriever = make_retriever(temp_repo)
    with pytest.raises(ConfigurationError):
        retriever.search("   ")
    with pytest.raises(ConfigurationError):
        retriever.search("multiply", filter_similarity=1.5)
    with pytest.raises(ConfigurationError):
        retriever.search("multiply", count=-1)

def test_scan_skips_provider_call_logs(temp_repo):
    log_file = temp_repo / "llm_logs" / "embeddings" / "20240101_000000_000000_success_abc123.json"
    log_file.parent.mkdir(parents=True)
    log_file.write_text("{\"component\": \"embeddings\"}")

    retriever = make_retriever(temp_repo)
    store = retriever.index_codebase(pattern="**/*", chunk_size=0, overlap_size=0)
    assert {r.filename for r in store.sparse_records} == {"hello.py", "math_utils.py"}

def test_file_contents_rebuild_metadata_header(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0, embed_metadata=True)

    matches = retriever.search("multiply x y", filter_similarity=0.5, count=1,
                               bm25_scale=0.5, rag_scale=0.5, include_file_contents=True)
    assert len(matches) == 1
    content = matches[0].content
    assert content.startswith("File: math_utils.py\nLast Modified: ")
    assert "\nContent:\ndef add(a, b):" in content

def test_file_contents_skip_missing_file(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)
    (temp_repo / "math_utils.py").unlink()

    matches = retriever.search("multiply x y", filter_similarity=0.0, count=0,
                               bm25_scale=0.5, rag_scale=0.5, include_file_contents=True)
    by_name = {m.filename: m for m in matches}
    assert by_name["math_utils.py"].content is None
    assert by_name["hello.py"].content == "def greet():\n    return 'hello'\n"

def test_chunk_contents_are_slices_of_live_file(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=20, overlap_size=5)

    matches = retriever.search("multiply", filter_similarity=0.0, count=0, bm25_scale=0.5,
                               rag_scale=0.5, verbose=True, include_file_contents=True)
    for m in matches:
        data = (temp_repo / m.filename).read_bytes()
        assert m.content == data[m.chunk_offset:m.chunk_offset + m.chunk_length].decode("utf-8")

def test_empty_index(temp_repo):
    """Scanning a codebase with no matching files yields an empty store"""
    for f in temp_repo.glob("*.py"):
        f.unlink()

    retriever = make_retriever(temp_repo)
    store = retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)
    assert store.sparse_records == [] and store.dense_records == []
    assert retriever.search("test query", filter_similarity=0.0) == []

def test_fetch_context_includes_content(temp_repo):
    retriever = make_retriever(temp_repo)
    retriever.index_codebase(pattern="**/*.py", chunk_size=0, overlap_size=0)

    context = retriever.fetch_context("add numbers", top_n=1)
    assert len(context) == 1
    assert context[0].filename == "math_utils.py"
    assert "def add(a, b)" in context[0].content
