# tests/conftest.py

import re
from typing import List, Optional

import pytest

from luckyshot.config import get_settings
from luckyshot.errors import EmbeddingError

VOCAB = [
    "def", "return", "greet", "hello", "add", "multiply", "a", "b", "x", "y",
    "function", "sayhello", "name", "numbers", "sum", "product",
]


class FakeEmbedder:
    """
    Deterministic bag-of-words embedder over VOCAB: one dimension per word,
    value = occurrence count (case-insensitive). Words outside VOCAB are ignored.
    """

    def __init__(self, fail_after: Optional[int] = None):
        self.calls: List[str] = []
        self.fail_after = fail_after

    def embed(self, text: str) -> List[float]:
        if self.fail_after is not None and len(self.calls) >= self.fail_after:
            raise EmbeddingError("provider unavailable")
        self.calls.append(text)
        words = re.findall(r"[a-z]+", text.lower())
        return [float(words.count(w)) for w in VOCAB]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fake_embedder():
    return FakeEmbedder()
