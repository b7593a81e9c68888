"""Async HTTP transport for master and volume server requests."""

import asyncio
import inspect
import mimetypes
import uuid
from typing import Any, AsyncIterator, Awaitable, Callable, Mapping, Optional, Tuple, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from common.constants import (
    DELETE_OK_STATUSES,
    PARAM_RECURSIVE,
    STREAM_PIECE_SIZE_BYTES,
    UPLOAD_PIPE_DEPTH,
)
from common.logging_config import get_logger
from storage_client.exceptions import DeleteError, TransportError, UploadError
from storage_client.schemas.common import ErrorResponse
from storage_client.schemas.volume import UploadResult
from storage_client.utils import normalize_name, parse_content_disposition

logger = get_logger(__name__)

ModelT = TypeVar('ModelT')

BodyConsumer = Callable[[AsyncIterator[bytes]], Union[Awaitable[Any], Any]]

_PIPE_EOF = object()


def parse_response(model: Type[ModelT], body: bytes, operation: str, url: str) -> ModelT:
    """
    Decode a JSON response body into a pydantic model.

    Raises:
        TransportError: If the body is not valid JSON for the model
    """
    try:
        return model.model_validate_json(body)
    except ValidationError as e:
        preview = body[:200].decode('utf-8', errors='replace')
        raise TransportError(operation, url, f"result JSON unmarshal error: {e.error_count()} error(s), json: {preview}") from e


async def _drain_pipe(pipe: asyncio.Queue) -> AsyncIterator[bytes]:
    """Live request body: yields pieces until the encoder signals EOF."""
    while True:
        piece = await pipe.get()
        if piece is _PIPE_EOF:
            return
        yield piece


class HTTPClient:
    """
    Thin async wrapper around httpx.AsyncClient.

    Every transport failure is re-raised as TransportError carrying the
    operation and target URL. There are no retries; callers decide.
    """

    def __init__(self, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize HTTP client.

        Args:
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.session = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        operation: Optional[str] = None,
    ) -> Tuple[bytes, int]:
        """
        Issue a request and read the whole response.

        Returns:
            Tuple of (response_body, status_code)

        Raises:
            TransportError: On network failure or timeout
        """
        operation = operation or method
        logger.debug(f"Making request: {method} {url}")

        try:
            response = await self.session.request(method, url, params=params, data=data, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(operation, url, f"request timed out ({type(e).__name__})") from e
        except httpx.HTTPError as e:
            raise TransportError(operation, url, str(e) or type(e).__name__) from e

        logger.debug(f"Response received: {method} {url} status={response.status_code}")
        return response.content, response.status_code

    async def get(self, url: str, params: Optional[Mapping[str, Any]] = None) -> Tuple[bytes, int]:
        return await self.request('GET', url, params=params, operation='Get')

    async def post_form(self, url: str, data: Optional[Mapping[str, Any]] = None) -> Tuple[bytes, int]:
        return await self.request('POST', url, data=dict(data or {}), operation='Post')

    async def upload(
        self,
        url: str,
        file_name: str,
        reader,
        mime_type: str = '',
        is_gzipped: bool = False,
    ) -> Tuple[bytes, int]:
        """
        Stream ``reader`` to ``url`` as a single-part multipart body.

        The multipart framing is produced by an encoder task writing into a
        bounded in-memory pipe; the outgoing request reads its body from the
        same pipe, so encoding and sending overlap. If the encoder fails its
        error is reported in preference to the transport's.

        Args:
            url: Full upload URL
            file_name: Name sent in Content-Disposition (normalized)
            reader: Binary stream to read content from
            mime_type: Content type; guessed from file_name if empty
            is_gzipped: Mark the part as gzip-encoded

        Returns:
            Tuple of (response_body, status_code)

        Raises:
            UploadError: If reading/encoding the content failed
            TransportError: If the request itself failed
        """
        boundary = uuid.uuid4().hex
        pipe: asyncio.Queue = asyncio.Queue(maxsize=UPLOAD_PIPE_DEPTH)
        encoder = asyncio.create_task(
            self._encode_multipart(pipe, boundary, file_name, reader, mime_type, is_gzipped)
        )

        response = None
        transport_error = None
        try:
            response = await self.session.post(
                url,
                content=_drain_pipe(pipe),
                headers={'Content-Type': f'multipart/form-data; boundary={boundary}'},
            )
        except Exception as e:
            transport_error = e
        finally:
            if not encoder.done():
                encoder.cancel()

        encode_outcome = (await asyncio.gather(encoder, return_exceptions=True))[0]
        if isinstance(encode_outcome, Exception):
            logger.error(f"Multipart encoding failed for {url}: {encode_outcome}")
            raise UploadError(f"Upload {url}: encoding failed: {encode_outcome}") from encode_outcome

        if transport_error is not None:
            if not isinstance(transport_error, httpx.HTTPError):
                raise transport_error
            if isinstance(transport_error, httpx.TimeoutException):
                raise TransportError('Upload', url, 'request timed out') from transport_error
            raise TransportError('Upload', url, str(transport_error) or type(transport_error).__name__) from transport_error

        logger.debug(f"Upload finished: {url} status={response.status_code}")
        return response.content, response.status_code

    async def _encode_multipart(
        self,
        pipe: asyncio.Queue,
        boundary: str,
        file_name: str,
        reader,
        mime_type: str,
        is_gzipped: bool,
    ) -> None:
        """Write multipart framing and content into the pipe, then EOF."""
        if not mime_type:
            mime_type = mimetypes.guess_type(file_name)[0] or ''

        header = (
            f'--{boundary}\r\n'
            f'Content-Disposition: form-data; name="file"; filename="{normalize_name(file_name)}"\r\n'
        )
        if mime_type:
            header += f'Content-Type: {mime_type}\r\n'
        if is_gzipped:
            header += 'Content-Encoding: gzip\r\n'
        header += '\r\n'

        try:
            await pipe.put(header.encode('utf-8'))
            while True:
                piece = reader.read(STREAM_PIECE_SIZE_BYTES)
                if not piece:
                    break
                await pipe.put(piece)
            await pipe.put(f'\r\n--{boundary}--\r\n'.encode('utf-8'))
        except Exception:
            await pipe.put(_PIPE_EOF)
            raise

        await pipe.put(_PIPE_EOF)

    async def delete(self, url: str, recursive: bool = False) -> int:
        """
        Delete a resource.

        200, 202 and 404 all count as success; a missing resource is
        already deleted.

        Returns:
            Response status code

        Raises:
            DeleteError: If the server refused the delete
            TransportError: On network failure or timeout
        """
        params = {PARAM_RECURSIVE: 'true'} if recursive else None
        body, status_code = await self.request('DELETE', url, params=params, operation='Delete')

        if status_code in DELETE_OK_STATUSES:
            return status_code

        try:
            error = ErrorResponse.model_validate_json(body).error
        except ValidationError:
            error = ''

        if error:
            raise DeleteError(f"Delete {url}: {error}")
        raise DeleteError(f"Delete {url}. Got response but can not parse (status {status_code}).")

    async def download(self, url: str, consumer: BodyConsumer) -> str:
        """
        Stream a file to ``consumer``.

        Args:
            url: Full file URL
            consumer: Called with an async iterator over the body; awaited if it returns an awaitable

        Returns:
            Filename from Content-Disposition, or '' if the server sent none

        Raises:
            TransportError: On non-200 status, network failure or timeout
        """
        try:
            async with self.session.stream('GET', url) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise TransportError(
                        'Download', url, f"unexpected status {response.status_code}",
                        status_code=response.status_code,
                    )

                filename = parse_content_disposition(response.headers.get('Content-Disposition'))

                result = consumer(response.aiter_bytes())
                if inspect.isawaitable(result):
                    await result

                return filename
        except httpx.TimeoutException as e:
            raise TransportError('Download', url, 'request timed out') from e
        except httpx.HTTPError as e:
            raise TransportError('Download', url, str(e) or type(e).__name__) from e


def parse_upload_result(url: str, body: bytes, status_code: int) -> UploadResult:
    """
    Check a volume server's reply to an upload.

    Raises:
        UploadError: If the status is not 2xx or the reply carries an error
        TransportError: If a 2xx reply is not valid JSON
    """
    if not 200 <= status_code < 300:
        try:
            error = UploadResult.model_validate_json(body).error
        except ValidationError:
            error = ''
        raise UploadError(f"Upload {url}: {error or f'unexpected status {status_code}'}")

    result = parse_response(UploadResult, body, 'Upload', url)
    if result.error:
        raise UploadError(f"Upload {url}: {result.error}")
    return result
