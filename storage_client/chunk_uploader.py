"""Uploads one chunk of a large file under its own file ID."""

from typing import Tuple

from common.constants import CHUNK_CONTENT_TYPE, PARAM_COUNT
from common.logging_config import get_logger
from common.types import FilePart
from storage_client.chunk_planner import BoundedReader
from storage_client.exceptions import UploadError
from storage_client.http_client import HTTPClient, parse_upload_result
from storage_client.master import MasterClient
from storage_client.schemas.master import AssignResult
from storage_client.utils import build_args, make_url

logger = get_logger(__name__)


class ChunkUploader:
    """Assigns a file ID for a chunk and streams the chunk's bytes to it."""

    def __init__(self, http: HTTPClient, master: MasterClient, scheme: str, chunk_size: int):
        self.http = http
        self.master = master
        self.scheme = scheme
        self.chunk_size = chunk_size

    async def upload_chunk(self, file_part: FilePart, chunk_name: str) -> Tuple[AssignResult, str, int]:
        """
        Upload the next ``chunk_size`` bytes of ``file_part.reader``.

        Args:
            file_part: File being chunked; its reader is positioned at the chunk start
            chunk_name: Name sent with the chunk (e.g. 'movie.mp4_3')

        Returns:
            Tuple of (assign_result, chunk_fid, size reported by the volume server)

        Raises:
            AssignmentError: If no file ID could be assigned
            UploadError: If the volume server rejected the chunk
            TransportError: If a request failed
        """
        assign = await self.master.assign(
            build_args(collection=file_part.collection, ttl=file_part.ttl, **{PARAM_COUNT: '1'})
        )

        url = make_url(self.scheme, assign.url, assign.file_id)
        body, status_code = await self.http.upload(
            url, chunk_name, BoundedReader(file_part.reader, self.chunk_size), CHUNK_CONTENT_TYPE,
        )

        try:
            result = parse_upload_result(url, body, status_code)
        except UploadError as e:
            logger.error(f"Chunk upload rejected [fid={assign.file_id}, name={chunk_name}]: {e}")
            raise

        logger.debug(f"Chunk uploaded [fid={assign.file_id}, name={chunk_name}, size={result.size}]")
        return assign, assign.file_id, result.size
