"""Chunk manifest wire format (serialization, gzip, load)."""

from dataclasses import dataclass, field
from typing import List, Optional
import gzip
import json
import logging
import zlib

logger = logging.getLogger(__name__)


class ManifestDecodeError(ValueError):
    """Raised when manifest bytes can't be decoded into a ChunkManifest."""
    pass


@dataclass(frozen=True)
class ChunkInfo:
    """
    One uploaded chunk of a large file.

    Attributes:
        fid: File ID the chunk is stored under
        offset: Byte offset of the chunk within the logical file
        size: Chunk size as reported by the volume server
    """
    fid: str
    offset: int
    size: int

    def to_dict(self) -> dict:
        return {'fid': self.fid, 'offset': self.offset, 'size': self.size}

    @classmethod
    def from_dict(cls, obj: dict) -> 'ChunkInfo':
        return cls(
            fid=obj.get('fid') or '',
            offset=int(obj.get('offset') or 0),
            size=int(obj.get('size') or 0),
        )


@dataclass
class ChunkManifest:
    """
    List of chunks making up a large file.

    Stored as the body of the file's top-level file ID. On the wire every
    field is omitted when empty: {"name", "mime", "size", "chunks"}.
    """
    name: str = ''
    mime: str = ''
    size: int = 0
    chunks: List[ChunkInfo] = field(default_factory=list)

    def to_dict(self) -> dict:
        obj = {}
        if self.name:
            obj['name'] = self.name
        if self.mime:
            obj['mime'] = self.mime
        if self.size:
            obj['size'] = self.size
        if self.chunks:
            obj['chunks'] = [chunk.to_dict() for chunk in self.chunks]
        return obj

    def to_json(self) -> bytes:
        """Serialize to JSON bytes."""
        return json.dumps(self.to_dict(), separators=(',', ':')).encode('utf-8')

    @classmethod
    def from_json(cls, data: bytes) -> 'ChunkManifest':
        """
        Deserialize from JSON bytes.

        Chunks come back sorted by offset; the wire order is not guaranteed.

        Raises:
            ManifestDecodeError: If data is not a JSON object of the expected shape
        """
        try:
            obj = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ManifestDecodeError(f"Invalid manifest JSON: {e}") from e

        if not isinstance(obj, dict):
            raise ManifestDecodeError(f"Manifest must be a JSON object, got {type(obj).__name__}")

        try:
            chunks = [ChunkInfo.from_dict(c) for c in (obj.get('chunks') or [])]
            manifest = cls(
                name=obj.get('name') or '',
                mime=obj.get('mime') or '',
                size=int(obj.get('size') or 0),
                chunks=chunks,
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ManifestDecodeError(f"Malformed manifest: {e}") from e

        manifest.chunks.sort(key=lambda c: c.offset)
        return manifest

    @property
    def chunk_bytes(self) -> int:
        """Sum of the reported chunk sizes."""
        return sum(chunk.size for chunk in self.chunks)

    def size_mismatch(self) -> Optional[int]:
        """Difference between declared size and chunk sizes, or None if they agree."""
        diff = self.size - self.chunk_bytes
        return diff if diff else None


def ungzip_data(data: bytes) -> bytes:
    """
    Decompress gzip data.

    Raises:
        ManifestDecodeError: If data is not valid gzip
    """
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise ManifestDecodeError(f"Invalid gzip data: {e}") from e


def load_manifest(data: bytes, is_gzipped: bool = False) -> ChunkManifest:
    """
    Decode a stored chunk manifest.

    Args:
        data: Raw manifest body as read from the cluster
        is_gzipped: True when the body is gzip-compressed

    Returns:
        ChunkManifest with chunks sorted ascending by offset

    Raises:
        ManifestDecodeError: If data can't be decoded
    """
    if is_gzipped:
        data = ungzip_data(data)

    manifest = ChunkManifest.from_json(data)
    logger.debug(f"Loaded manifest [name={manifest.name}, chunks={len(manifest.chunks)}]")
    return manifest
