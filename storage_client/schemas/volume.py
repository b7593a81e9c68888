"""Pydantic schemas for volume server and submit responses."""

from pydantic import Field

from storage_client.schemas.common import WireModel


class UploadResult(WireModel):
    """Response of an upload to a volume server, e.g. {"name":"a.tar.gz","size":82565628}."""
    name: str = ''
    size: int = 0
    error: str = ''


class SubmitResult(WireModel):
    """Outcome of one submitted or batch-uploaded file."""
    file_name: str = Field('', alias='fileName')
    file_url: str = Field('', alias='fileUrl')
    file_id: str = Field('', alias='fid')
    size: int = 0
    error: str = ''
