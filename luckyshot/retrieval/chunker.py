# luckyshot/retrieval/chunker.py

from dataclasses import dataclass
from typing import List, Tuple

from luckyshot.errors import ConfigurationError


@dataclass(frozen=True)
class Chunk:
    filename: str
    byte_offset: int
    byte_length: int
    is_full_file: bool
    text: str


def validate_chunking(chunk_size: int, overlap_size: int) -> None:
    """
    Reject chunking parameters that cannot make progress.
    `chunk_size == 0` means one chunk per file and ignores the overlap.
    """
    if chunk_size < 0 or overlap_size < 0:
        raise ConfigurationError("chunk_size and overlap_size must not be negative")
    if chunk_size > 0 and overlap_size >= chunk_size:
        raise ConfigurationError("overlap_size must be less than chunk_size")


def _is_boundary(data: bytes, i: int) -> bool:
    # UTF-8 continuation bytes look like 0b10xxxxxx
    return i <= 0 or i >= len(data) or (data[i] & 0xC0) != 0x80


def _floor_boundary(data: bytes, i: int) -> int:
    while not _is_boundary(data, i):
        i -= 1
    return i


def _ceil_boundary(data: bytes, i: int) -> int:
    while not _is_boundary(data, i):
        i += 1
    return i


def create_chunks(content: bytes, chunk_size: int, overlap_size: int) -> List[Tuple[int, bytes]]:
    """
    Split `content` into (byte_offset, piece) pairs.

    With chunk_size == 0 the whole content is one chunk. Otherwise chunks of
    at most `chunk_size` bytes start every `chunk_size - overlap_size` bytes;
    the last chunk may be shorter. Cut points never fall inside a UTF-8
    sequence.
    """
    validate_chunking(chunk_size, overlap_size)
    n = len(content)
    if n == 0:
        return []
    if chunk_size == 0:
        return [(0, content)]

    chunks: List[Tuple[int, bytes]] = []
    step = chunk_size - overlap_size
    offset = 0
    while offset < n:
        end = min(offset + chunk_size, n)
        clipped = _floor_boundary(content, end)
        end = clipped if clipped > offset else _ceil_boundary(content, end)
        chunks.append((offset, content[offset:end]))

        if end == n:
            break

        next_offset = _floor_boundary(content, offset + step)
        if next_offset <= offset:
            next_offset = _ceil_boundary(content, offset + step)
        offset = next_offset

    return chunks


def chunk_document(filename: str, data: bytes, chunk_size: int, overlap_size: int) -> List[Chunk]:
    """
    Chunk the UTF-8 bytes of one file. `filename` is the name recorded in
    each Chunk (relative to the project root).
    """
    return [
        Chunk(
            filename=filename,
            byte_offset=offset,
            byte_length=len(piece),
            is_full_file=chunk_size == 0,
            text=piece.decode("utf-8"),
        )
        for offset, piece in create_chunks(data, chunk_size, overlap_size)
    ]
