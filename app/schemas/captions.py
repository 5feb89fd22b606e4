"""
Caption request/response schemas.
"""

from pydantic import Field

from app.schemas.style import CamelModel


class CaptionRequest(CamelModel):
    """Image to caption, base64-encoded."""

    image_base64: str = Field(..., min_length=1, description="Base64 image bytes, no data: prefix")
    mime_type: str = Field(default="image/jpeg", pattern=r"^image/[A-Za-z0-9.+-]+$")


class CaptionResult(CamelModel):
    """Description and suggested caption returned by the model."""

    description: str
    suggested_caption: str
    personalized: bool = False
