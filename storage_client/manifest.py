"""Builds, persists and loads chunk manifests."""

import io
from typing import List, Tuple

from common.constants import MANIFEST_CONTENT_TYPE, PARAM_CHUNK_MANIFEST, PARAM_TIMESTAMP
from common.logging_config import get_logger
from common.protocol import ChunkInfo, ChunkManifest, ManifestDecodeError
from common.protocol import load_manifest as decode_manifest
from common.types import FilePart, base_name
from storage_client.exceptions import ManifestError
from storage_client.http_client import HTTPClient, parse_upload_result
from storage_client.utils import make_url

logger = get_logger(__name__)


def build_manifest(file_part: FilePart, chunk_size: int, uploaded: List[Tuple[str, int]]) -> ChunkManifest:
    """
    Describe a chunked file.

    Args:
        file_part: The file that was chunked
        chunk_size: Chunk length used; chunk i starts at i * chunk_size
        uploaded: (fid, reported size) of each chunk, in upload order

    Returns:
        ChunkManifest named after the file's base name
    """
    return ChunkManifest(
        name=base_name(file_part.file_name),
        mime=file_part.mime_type,
        size=file_part.file_size,
        chunks=[
            ChunkInfo(fid=fid, offset=index * chunk_size, size=size)
            for index, (fid, size) in enumerate(uploaded)
        ],
    )


async def persist_manifest(http: HTTPClient, scheme: str, file_part: FilePart, manifest: ChunkManifest) -> None:
    """
    Store a manifest under the file's top-level file ID.

    Raises:
        UploadError: If the volume server rejected the manifest or replied with an error
        TransportError: If the request failed
    """
    params = {}
    if file_part.mod_time:
        params[PARAM_TIMESTAMP] = str(file_part.mod_time)
    params[PARAM_CHUNK_MANIFEST] = 'true'

    url = make_url(scheme, file_part.server, file_part.file_id, params)
    body, status_code = await http.upload(url, manifest.name, io.BytesIO(manifest.to_json()), MANIFEST_CONTENT_TYPE)
    parse_upload_result(url, body, status_code)

    logger.info(f"Manifest stored [fid={file_part.file_id}, chunks={len(manifest.chunks)}]")


def load_manifest(data: bytes, is_gzipped: bool = False, strict: bool = False) -> ChunkManifest:
    """
    Decode a stored manifest.

    A declared size that disagrees with the sum of chunk sizes is logged;
    with ``strict`` it is an error.

    Raises:
        ManifestError: If the data can't be decoded, or on a size mismatch when strict
    """
    try:
        manifest = decode_manifest(data, is_gzipped)
    except ManifestDecodeError as e:
        raise ManifestError(str(e)) from e

    mismatch = manifest.size_mismatch()
    if mismatch is not None:
        message = (
            f"Manifest size mismatch [name={manifest.name}, "
            f"declared={manifest.size}, chunks={manifest.chunk_bytes}]"
        )
        if strict:
            raise ManifestError(message)
        logger.warning(message)

    return manifest
