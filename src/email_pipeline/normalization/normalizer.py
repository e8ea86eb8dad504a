"""
Email normalizer.

Builds the canonical NormalizedEmail record from a decoded structural email.
Every field that cannot be extracted falls back to a documented default
instead of failing the whole message.
"""

from datetime import datetime
from typing import Any, List, Mapping, Optional, Union

import structlog

from ..canonicalization.html_converter import strip_html
from ..canonicalization.text_normalizer import clean_email_body
from ..models.email_document import (
    DEFAULT_ATTACHMENT_FILENAME,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_SUBJECT,
    DecodedAttachment,
    DecodedEmail,
    EmailAddress,
    NormalizedEmail,
    ParsedAttachment,
)
from .headers import derive_priority, first_string, get_header, serialize_headers

logger = structlog.get_logger(__name__)


def _first_address(addresses: List[EmailAddress]) -> Optional[str]:
    if addresses:
        return addresses[0].address or None
    return None


def _first_name(addresses: List[EmailAddress]) -> Optional[str]:
    if addresses:
        return addresses[0].name or None
    return None


def _all_addresses(addresses: List[EmailAddress]) -> List[str]:
    return [entry.address for entry in addresses if entry.address]


def _normalize_references(references: Union[str, List[Optional[str]], None]) -> List[str]:
    if not references:
        return []
    if isinstance(references, str):
        return [references]
    return [ref for ref in references if ref]


def _normalize_attachments(attachments: List[DecodedAttachment]) -> List[ParsedAttachment]:
    kept: List[ParsedAttachment] = []
    for attachment in attachments:
        if not attachment.content:
            continue
        kept.append(
            ParsedAttachment(
                filename=attachment.filename or DEFAULT_ATTACHMENT_FILENAME,
                content=attachment.content,
                content_type=attachment.content_type or DEFAULT_CONTENT_TYPE,
                size=attachment.size or len(attachment.content),
            )
        )
    return kept


def _email_client(headers: Mapping[str, Any]) -> Optional[str]:
    x_mailer = first_string(get_header(headers, "x-mailer"))
    if x_mailer:
        return x_mailer
    return first_string(get_header(headers, "user-agent")) or None


def normalize_email(
    decoded: Union[DecodedEmail, Mapping[str, Any]],
    received_at: Optional[datetime] = None,
) -> NormalizedEmail:
    """
    Normalize a decoded email into the canonical record.

    Args:
        decoded: Decoded structural email (model or equivalent mapping)
        received_at: When the transport received the message, if known.
            Used as `date` fallback; the pipeline never reads the clock.

    Returns:
        Immutable NormalizedEmail
    """
    if not isinstance(decoded, DecodedEmail):
        decoded = DecodedEmail.model_validate(decoded)

    headers = decoded.headers
    body_html = decoded.html or None
    attachments = _normalize_attachments(decoded.attachments)

    record = NormalizedEmail(
        subject=decoded.subject or DEFAULT_SUBJECT,
        from_address=_first_address(decoded.from_) or "",
        from_name=_first_name(decoded.from_),
        reply_to=_first_address(decoded.reply_to),
        to=_all_addresses(decoded.to),
        cc=_all_addresses(decoded.cc),
        bcc=_all_addresses(decoded.bcc),
        body=clean_email_body(decoded.text or ""),
        body_html=body_html,
        body_html_stripped=strip_html(body_html),
        message_id=decoded.message_id or None,
        in_reply_to=decoded.in_reply_to or None,
        references=_normalize_references(decoded.references),
        attachments=attachments,
        date=decoded.date or received_at,
        priority=decoded.priority or derive_priority(headers),
        received_date=received_at or decoded.date,
        original_to=first_string(get_header(headers, "x-original-to")),
        email_client=_email_client(headers),
        headers=serialize_headers(headers),
    )

    logger.debug(
        "email_normalized",
        message_id=record.message_id,
        has_html=body_html is not None,
        body_length=len(record.body),
        attachments_count=len(attachments),
        dropped_attachments=len(decoded.attachments) - len(attachments),
    )

    return record
