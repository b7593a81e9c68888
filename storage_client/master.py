"""Client for master server endpoints (assign, submit, grow, vacuum, status)."""

from typing import Any, Dict, Mapping, Optional

from common.constants import (
    ASSIGN_PATH,
    CLUSTER_STATUS_PATH,
    GROW_PATH,
    PARAM_COUNT,
    PARAM_DATA_CENTER,
    PARAM_GARBAGE_THRESHOLD,
    PARAM_REPLICATION,
    STATUS_PATH,
    SUBMIT_PATH,
    VACUUM_PATH,
)
from common.logging_config import get_logger
from common.types import FilePart, base_name
from storage_client.exceptions import AssignmentError, TransportError
from storage_client.http_client import HTTPClient, parse_response
from storage_client.schemas.master import AssignResult, ClusterStatus, SystemStatus
from storage_client.schemas.volume import SubmitResult
from storage_client.utils import build_args, make_url

logger = get_logger(__name__)


def _check_status(operation: str, url: str, status_code: int) -> None:
    if status_code >= 400:
        raise TransportError(operation, url, f"unexpected status {status_code}", status_code=status_code)


class MasterClient:
    """Issues requests against the master server."""

    def __init__(self, http: HTTPClient, scheme: str, master: str):
        self.http = http
        self.scheme = scheme
        self.master = master

    def _url(self, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return make_url(self.scheme, self.master, path, params)

    async def assign(self, args: Optional[Mapping[str, Any]] = None) -> AssignResult:
        """
        Reserve one or more new file IDs.

        Args:
            args: Form args (count, collection, ttl, replication, ...)

        Returns:
            AssignResult with the file ID and its owning server

        Raises:
            AssignmentError: If the master assigned nothing or reported an error
            TransportError: If the master can't be reached or replies garbage
        """
        url = self._url(ASSIGN_PATH)
        body, _ = await self.http.post_form(url, build_args(args))
        result = parse_response(AssignResult, body, 'Assign', url)

        if result.error:
            logger.error(f"Assign failed: {result.error}")
            raise AssignmentError(result.error)
        if result.count <= 0:
            logger.error(f"Assign returned no file IDs [count={result.count}]")
            raise AssignmentError(f"Assign returned count {result.count}")

        logger.debug(f"Assigned [fid={result.file_id}, url={result.url}, count={result.count}]")
        return result

    async def submit(self, file_part: FilePart, args: Optional[Mapping[str, Any]] = None) -> SubmitResult:
        """
        Upload a file straight to the master, which assigns and stores it.

        The file part's reader is closed afterwards.

        Raises:
            UploadError: If reading the content failed
            TransportError: If the request failed or the reply can't be decoded
        """
        params = build_args(args, collection=file_part.collection, ttl=file_part.ttl)
        url = self._url(SUBMIT_PATH, params)
        try:
            body, _ = await self.http.upload(
                url, base_name(file_part.file_name), file_part.reader, file_part.mime_type, file_part.is_gzipped,
            )
        finally:
            file_part.close()

        result = parse_response(SubmitResult, body, 'Submit', url)
        logger.info(f"Submitted [fid={result.file_id}, name={result.file_name}, size={result.size}]")
        return result

    async def grow(
        self,
        count: int = 0,
        collection: str = '',
        replication: str = '',
        data_center: str = '',
    ) -> None:
        """Pre-allocate volumes; empty/zero arguments are left out."""
        args: Dict[str, Any] = {}
        if count > 0:
            args[PARAM_COUNT] = str(count)
        args = build_args(args, collection=collection, **{PARAM_REPLICATION: replication, PARAM_DATA_CENTER: data_center})
        await self.grow_args(args)

    async def grow_args(self, args: Optional[Mapping[str, Any]] = None) -> None:
        url = self._url(GROW_PATH)
        _, status_code = await self.http.get(url, params=dict(args or {}))
        _check_status('Grow', url, status_code)
        logger.info(f"Volumes grown [args={dict(args or {})}]")

    async def gc(self, threshold: float) -> None:
        """Ask the master to vacuum volumes whose garbage ratio exceeds ``threshold``."""
        url = self._url(VACUUM_PATH)
        _, status_code = await self.http.get(url, params={PARAM_GARBAGE_THRESHOLD: repr(float(threshold))})
        _check_status('GC', url, status_code)
        logger.info(f"Vacuum requested [threshold={threshold}]")

    async def status(self) -> SystemStatus:
        url = self._url(STATUS_PATH)
        body, status_code = await self.http.get(url)
        _check_status('Status', url, status_code)
        return parse_response(SystemStatus, body, 'Status', url)

    async def cluster_status(self) -> ClusterStatus:
        url = self._url(CLUSTER_STATUS_PATH)
        body, status_code = await self.http.get(url)
        _check_status('ClusterStatus', url, status_code)
        return parse_response(ClusterStatus, body, 'ClusterStatus', url)
