# Data models for the email content pipeline

from .email_document import (
    DEFAULT_ATTACHMENT_FILENAME,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_SUBJECT,
    DecodedAttachment,
    DecodedEmail,
    EmailAddress,
    NormalizedEmail,
    ParsedAttachment,
)
from .rendering import RenderedBody, StoredAttachment

__all__ = [
    "DEFAULT_ATTACHMENT_FILENAME",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_SUBJECT",
    "DecodedAttachment",
    "DecodedEmail",
    "EmailAddress",
    "NormalizedEmail",
    "ParsedAttachment",
    "RenderedBody",
    "StoredAttachment",
]
