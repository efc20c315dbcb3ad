"""Retrieval layer for hybrid BM25 + vector search over codebase"""

from .orchestrator import HybridRetriever
from .ranker import ScoredMatch
from .vector_store import VectorStore

__all__ = ["HybridRetriever", "ScoredMatch", "VectorStore"]
