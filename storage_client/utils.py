"""Utility helper functions for the storage client."""

import re
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

from common.constants import PARAM_COLLECTION, PARAM_TTL
from storage_client.exceptions import InvalidFileIDError

_INVALID_NAME_CHARS = re.compile(r'[^A-Za-z0-9._-]')


def make_url(scheme: str, host: str, path: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a full URL from its parts.

    Args:
        scheme: URL scheme (e.g., 'http')
        host: Server address (host:port), with or without a scheme prefix
        path: Request path; a file ID is accepted without a leading slash
        params: Optional query parameters; list values become repeated keys

    Returns:
        Full URL string
    """
    if '://' not in host:
        host = f"{scheme}://{host}"
    if not path.startswith('/'):
        path = '/' + path

    url = host.rstrip('/') + path
    if params:
        url += '?' + urlencode(params, doseq=True)
    return url


def build_args(
    args: Optional[Mapping[str, Any]] = None,
    collection: str = '',
    ttl: str = '',
    **extra: Any
) -> Dict[str, Any]:
    """
    Copy request args, setting collection/ttl/extra values that are non-empty.

    Args:
        args: Base args (not modified)
        collection: Collection name, skipped if empty
        ttl: Time to live, skipped if empty
        **extra: Further values, skipped if None or ''

    Returns:
        New args dictionary
    """
    result: Dict[str, Any] = dict(args or {})
    if collection:
        result[PARAM_COLLECTION] = collection
    if ttl:
        result[PARAM_TTL] = ttl
    for key, value in extra.items():
        if value is not None and value != '':
            result[key] = value
    return result


def normalize_name(name: str) -> str:
    """
    Strip characters that are unsafe in a multipart filename.

    Only letters, digits, '.', '-' and '_' are kept.
    """
    return _INVALID_NAME_CHARS.sub('', name)


def split_file_id(file_id: str) -> Tuple[str, str]:
    """
    Split a file ID into (volume ID, file key).

    The delimiter is ',' if the ID contains one, otherwise '/'.

    Raises:
        InvalidFileIDError: If the ID does not have exactly two parts
    """
    delimiter = ',' if ',' in file_id else '/'
    parts = file_id.split(delimiter)
    if len(parts) != 2:
        raise InvalidFileIDError(f"Invalid fileID {file_id}")
    return parts[0], parts[1]


def parse_content_disposition(header: Optional[str]) -> str:
    """
    Extract the filename from a Content-Disposition header.

    Handles both 'filename="a.txt"' and 'inline; filename="a.txt"'.

    Returns:
        Filename without quotes, or '' if the header carries none
    """
    if not header:
        return ''

    for item in header.split(';'):
        item = item.strip()
        if item.lower().startswith('filename='):
            return item[len('filename='):].strip('"')
    return ''
