"""Chunking decisions and bounded reads over a shared source stream."""

from dataclasses import dataclass
from typing import BinaryIO, List, Tuple


@dataclass(frozen=True)
class ChunkPlan:
    """
    How a file of ``file_size`` bytes is cut into chunks.

    Attributes:
        file_size: Declared size of the file
        chunk_size: Chunking threshold and chunk length
        count: Number of chunk slots (0 when no chunking is needed)
    """
    file_size: int
    chunk_size: int
    count: int

    @property
    def needs_chunking(self) -> bool:
        return self.count > 0

    def offset(self, index: int) -> int:
        return index * self.chunk_size

    def planned_size(self, index: int) -> int:
        """Bytes chunk ``index`` is expected to carry (the last slot may be 0)."""
        remaining = self.file_size - self.offset(index)
        return max(0, min(self.chunk_size, remaining))

    def ranges(self) -> List[Tuple[int, int]]:
        """(offset, planned size) of every slot carrying data."""
        return [
            (self.offset(i), self.planned_size(i))
            for i in range(self.count)
            if self.planned_size(i) > 0
        ]


def plan_chunks(file_size: int, chunk_size: int) -> ChunkPlan:
    """
    Decide whether and how to chunk a file.

    No chunking when chunk_size <= 0 or the file fits in one chunk.
    Otherwise the slot count is file_size // chunk_size + 1; when the size
    is an exact multiple the final slot is empty and is skipped.
    """
    if chunk_size <= 0 or file_size <= chunk_size:
        return ChunkPlan(file_size=file_size, chunk_size=chunk_size, count=0)
    return ChunkPlan(file_size=file_size, chunk_size=chunk_size, count=file_size // chunk_size + 1)


class BoundedReader:
    """
    File-like view handing out at most ``limit`` bytes of ``reader``.

    Consecutive BoundedReaders over the same reader see consecutive slices.
    Closing it does not close the underlying stream.
    """

    def __init__(self, reader: BinaryIO, limit: int):
        """
        Initialize the bounded reader.

        Args:
            reader: Shared source stream
            limit: Maximum number of bytes to read from it
        """
        self._reader = reader
        self._remaining = limit
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b''
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining

        data = self._reader.read(size)
        if data:
            self._remaining -= len(data)
            self.bytes_read += len(data)
        return data

    def close(self) -> None:
        """Does nothing; the source stream is owned by the caller."""
