"""Common schemas used across master and volume endpoints."""

from pydantic import BaseModel, ConfigDict


class WireModel(BaseModel):
    """Base for cluster JSON responses: camelCase aliases, unknown keys ignored."""
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class ErrorResponse(WireModel):
    """Error body any endpoint may return."""
    error: str = ''
