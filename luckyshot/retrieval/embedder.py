# luckyshot/retrieval/embedder.py

import threading
from typing import List, Optional, Protocol

from openai import OpenAI, OpenAIError

from luckyshot.config import Settings, get_settings
from luckyshot.errors import EmbeddingError
from luckyshot.retrieval.chunker import Chunk
from luckyshot.retrieval.vector_store import DenseEmbeddingRecord
from luckyshot.utils.llm_logger import get_llm_logger
from luckyshot.utils.rate_limiter import get_rate_limiter


class Embedder(Protocol):
    def embed(self, text: str) -> List[float]:
        ...


def prepend_metadata(filename: str, modified: int, size: int, content: str) -> str:
    """Wrap `content` in the File / Last Modified / Size header that gets embedded."""
    return f"File: {filename}\nLast Modified: {modified}\nSize: {size}\nContent:\n{content}"


class OpenAIEmbedder:
    """
    Embedding provider backed by the OpenAI embeddings endpoint.
    Failures raise EmbeddingError instead of returning a placeholder vector.
    """

    def __init__(self, settings: Optional[Settings] = None, client: Optional[OpenAI] = None):
        self.settings = settings or get_settings()
        embeddings_cfg = self.settings.retrieval["embeddings"]
        self.model = embeddings_cfg["model"]
        self.rate_limiter = get_rate_limiter(self.model, int(embeddings_cfg["requests_per_minute"]))

        if client is None:
            if not self.settings.openai_api_key:
                raise EmbeddingError("OpenAI API key not configured")
            client = OpenAI(api_key=self.settings.openai_api_key)
        self.client = client
        self.logger = get_llm_logger(self.settings.llm_log_dir) if self.settings.log_provider_calls else None

    def embed(self, text: str) -> List[float]:
        if self.rate_limiter is not None:
            self.rate_limiter.wait_if_needed()

        try:
            resp = self.client.embeddings.create(model=self.model, input=text)
        except OpenAIError as e:
            self._log(text, None, str(e))
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        if not resp.data:
            self._log(text, None, "empty response")
            raise EmbeddingError("Embedding response contained no data")

        vector = list(resp.data[0].embedding)
        self._log(text, len(vector), None)
        return vector

    def _log(self, text: str, dims: Optional[int], error: Optional[str]) -> None:
        if self.logger is None:
            return
        self.logger.log_interaction(
            component="embeddings",
            model=self.model,
            messages=[{"role": "user", "content": text}],
            response={"dimensions": dims} if dims is not None else None,
            error=error,
        )


class DenseEmbeddingAdapter:
    """
    Turns chunks into DenseEmbeddingRecords through an Embedder, checking that
    the provider keeps a fixed dimensionality.
    """

    def __init__(self, embedder: Embedder):
        self.embedder = embedder
        self.dimensions: Optional[int] = None
        self._lock = threading.Lock()

    def embed_text(self, text: str) -> List[float]:
        vector = self.embedder.embed(text)
        if not vector:
            raise EmbeddingError("Embedding provider returned an empty vector")
        with self._lock:
            if self.dimensions is None:
                self.dimensions = len(vector)
            elif len(vector) != self.dimensions:
                raise EmbeddingError(
                    f"Embedding dimension changed from {self.dimensions} to {len(vector)}"
                )
        return vector

    def embed_chunk(
        self,
        chunk: Chunk,
        last_modified: int,
        file_size: int,
        embed_metadata: bool,
    ) -> DenseEmbeddingRecord:
        text = chunk.text
        if embed_metadata:
            text = prepend_metadata(chunk.filename, last_modified, file_size, text)
        return DenseEmbeddingRecord(
            filename=chunk.filename,
            vector=self.embed_text(text),
            last_modified=last_modified,
            chunk_offset=chunk.byte_offset,
            chunk_length=chunk.byte_length,
            is_full_file=chunk.is_full_file,
            has_metadata=embed_metadata,
        )
