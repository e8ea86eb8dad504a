"""
Display-time models for the safe render pipeline.
"""

from typing import Optional

from pydantic import BaseModel, Field


class StoredAttachment(BaseModel):
    """Attachment as known to the storage collaborator."""

    id: str = Field(description="Storage identifier")
    filename: str = Field(description="Stored filename, used for CID matching")
    content_type: Optional[str] = Field(None, description="MIME type")
    url: Optional[str] = Field(
        None, description="Resolved URL; falls back to the configured template"
    )


class RenderedBody(BaseModel):
    """Render-ready HTML plus the inline/isolated rendering decision."""

    html: str = Field(description="Sanitized, enriched HTML fragment")
    is_simple: bool = Field(description="True when the body can be rendered inline")
