"""Concurrent upload of several files under one assignment."""

import asyncio
from typing import List

from common.constants import PARAM_COUNT
from common.logging_config import get_logger
from common.types import FilePart
from storage_client.exceptions import AssignmentError, StorageClientError
from storage_client.master import MasterClient
from storage_client.schemas.master import AssignResult
from storage_client.schemas.volume import SubmitResult
from storage_client.uploader import FileUploader
from storage_client.utils import build_args

logger = get_logger(__name__)


class BatchUploader:
    """
    Uploads a list of files concurrently.

    One assign call reserves ``len(files)`` IDs: file 0 gets the assigned
    fid and file i > 0 gets ``{fid}_{i}``, all on the assigned server.
    Results come back in input order, one slot per file, and a failing
    file only marks its own slot.
    """

    def __init__(self, master: MasterClient, uploader: FileUploader):
        self.master = master
        self.uploader = uploader

    async def upload_batch(self, files: List[FilePart], collection: str = '', ttl: str = '') -> List[SubmitResult]:
        """
        Upload every file part.

        Args:
            files: File parts to upload; each reader is closed afterwards
            collection: Target collection for every file
            ttl: Time to live for every file

        Returns:
            One SubmitResult per input file, same order

        Raises:
            AssignmentError: If the assignment failed; ``results`` holds
                every slot marked with the error
        """
        results = [SubmitResult(file_name=file.file_name) for file in files]
        if not files:
            return results

        try:
            assign = await self.master.assign(
                build_args(collection=collection, ttl=ttl, **{PARAM_COUNT: str(len(files))})
            )
        except StorageClientError as e:
            for result in results:
                result.error = str(e)
            for file in files:
                file.close()
            logger.error(f"Batch assign failed [files={len(files)}]: {e}")
            raise AssignmentError(str(e), results=results) from e

        await asyncio.gather(*(
            self._upload_one(index, file, assign, collection, results)
            for index, file in enumerate(files)
        ))

        failed = sum(1 for result in results if result.error)
        logger.info(f"Batch uploaded [files={len(files)}, failed={failed}, fid={assign.file_id}]")
        return results

    async def _upload_one(
        self,
        index: int,
        file: FilePart,
        assign: AssignResult,
        collection: str,
        results: List[SubmitResult],
    ) -> None:
        file.file_id = assign.file_id if index == 0 else f"{assign.file_id}_{index}"
        file.server = assign.url
        file.collection = collection

        result = results[index]
        try:
            await self.uploader.upload_file_part(file)
        except Exception as e:
            logger.error(f"Batch file failed [index={index}, fid={file.file_id}]: {e}")
            result.error = str(e)

        result.size = file.file_size
        result.file_id = file.file_id
        result.file_url = f"{assign.public_url}/{file.file_id}"
