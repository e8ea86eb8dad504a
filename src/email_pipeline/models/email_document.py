"""
Email document models - decoded input and canonical record after ingestion.

DecodedEmail is what the MIME decoding collaborator hands to the pipeline.
NormalizedEmail is the canonical record produced by the normalizer and handed
to persistence; it is immutable once built.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

DEFAULT_SUBJECT = "(No Subject)"
DEFAULT_ATTACHMENT_FILENAME = "attachment"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class EmailAddress(BaseModel):
    """Single mailbox from an address header."""

    address: str = Field("", description="Email address (may be empty for groups)")
    name: Optional[str] = Field(None, description="Display name")


class DecodedAttachment(BaseModel):
    """Attachment as delivered by the MIME decoder, content included."""

    filename: Optional[str] = Field(None, description="Original filename")
    content: bytes = Field(b"", description="Decoded attachment payload")
    content_type: Optional[str] = Field(None, description="MIME type")
    size: Optional[int] = Field(None, description="Reported size in bytes")
    content_id: Optional[str] = Field(None, description="Content-ID for inline images")
    disposition: Optional[str] = Field(None, description="attachment | inline")


class DecodedEmail(BaseModel):
    """
    Structural email produced by the MIME decoding collaborator.

    Header names in `headers` are expected lower-case; values may be strings,
    lists, datetimes or any other object the decoder produced.
    """

    subject: Optional[str] = None
    from_: List[EmailAddress] = Field(default_factory=list, alias="from")
    reply_to: List[EmailAddress] = Field(default_factory=list)
    to: List[EmailAddress] = Field(default_factory=list)
    cc: List[EmailAddress] = Field(default_factory=list)
    bcc: List[EmailAddress] = Field(default_factory=list)

    text: Optional[str] = Field(None, description="Plain text body")
    html: Optional[str] = Field(None, description="HTML body")
    attachments: List[DecodedAttachment] = Field(default_factory=list)

    message_id: Optional[str] = None
    in_reply_to: Optional[str] = None
    references: Union[str, List[Optional[str]], None] = None
    date: Optional[datetime] = None
    priority: Optional[str] = None

    headers: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}


class ParsedAttachment(BaseModel):
    """Attachment kept on the canonical record (non-empty content only)."""

    filename: str = DEFAULT_ATTACHMENT_FILENAME
    content: bytes
    content_type: str = DEFAULT_CONTENT_TYPE
    size: int

    model_config = {"frozen": True}


class NormalizedEmail(BaseModel):
    """
    Canonical email record after ingestion.

    Output of the normalizer and input to persistence. `body_html` is the raw
    HTML as received (sanitization happens at display time) while
    `body_html_stripped` is its full-text projection for search indexing.
    """

    subject: str = DEFAULT_SUBJECT
    from_address: str = Field("", alias="from", description="Sender address, never None")
    from_name: Optional[str] = None
    reply_to: Optional[str] = None
    to: List[str] = Field(default_factory=list)
    cc: List[str] = Field(default_factory=list)
    bcc: List[str] = Field(default_factory=list)

    body: str = Field("", description="Cleaned plain text body")
    body_html: Optional[str] = Field(None, description="Raw HTML body, not sanitized")
    body_html_stripped: str = Field("", description="Plain projection of body_html")

    message_id: Optional[str] = None
    in_reply_to: Optional[str] = None
    references: List[str] = Field(default_factory=list)
    attachments: List[ParsedAttachment] = Field(default_factory=list)

    date: Optional[datetime] = None
    priority: Optional[str] = None
    received_date: Optional[datetime] = None
    original_to: Optional[str] = Field(
        None, description="Recipient before forwarding (X-Original-To)"
    )
    email_client: Optional[str] = Field(None, description="X-Mailer or User-Agent")

    headers: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "subject": "Where is my order?",
                "from": "customer@example.com",
                "from_name": "Jane Customer",
                "to": ["support@company.com"],
                "body": "Hi, order #A1B2C3 has not arrived yet.",
                "body_html": None,
                "body_html_stripped": "",
                "references": [],
                "headers": {"x-mailer": "Apple Mail (2.3731)"},
            }
        },
    }
