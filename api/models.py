"""
API request and response models.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from catalog.errors import MalformedInput


class JSONBody(BaseModel):
    """Base for request bodies decoded from raw JSON."""

    @classmethod
    def from_json(cls, body: bytes):
        """
        Decode and validate a raw request body.

        Raises:
            MalformedInput: If the body is not JSON or has wrongly typed fields
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise MalformedInput("invalid JSON") from e


class BookPayload(JSONBody):
    """Create or partial-update body for a book. Unknown fields are ignored."""
    title: Optional[StrictStr] = Field(None, description="Book title")
    author: Optional[StrictStr] = Field(None, description="Book author")
    year: Optional[StrictInt] = Field(None, description="Publication year; 0 means unset")


class TokenRequest(JSONBody):
    """Credentials exchanged for a bearer token."""
    username: Optional[StrictStr] = Field("", description="Username")
    password: Optional[StrictStr] = Field("", description="Password")


class TokenResponse(BaseModel):
    """Issued bearer token."""
    token: str = Field(..., description="Opaque 16-hex-character token")


class PingResponse(BaseModel):
    """Liveness response."""
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    books: int = Field(..., description="Number of stored books")
