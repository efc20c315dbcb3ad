"""luckyshot: hybrid BM25 + embedding retrieval over a local codebase"""

__version__ = "0.1.0"
