"""
MIME decoder for raw RFC 5322 messages.

Default decoding collaborator for the normalizer: turns raw message bytes into
a DecodedEmail using the standard library email package. Decoding is lenient;
unreadable fields come back empty instead of raising.
"""

import mimetypes
from datetime import datetime
from email import message_from_bytes
from email.message import Message
from email.utils import getaddresses, parsedate_to_datetime
from typing import Any, Dict, List, Optional, Tuple

import structlog

from ..canonicalization.html_converter import html_to_text
from ..models.email_document import DecodedAttachment, DecodedEmail, EmailAddress
from .mime_utils import decode_header_value, decode_payload, is_attachment, walk_message_parts

logger = structlog.get_logger(__name__)


def _header_str(msg: Message, name: str) -> Optional[str]:
    value = msg.get(name)
    if value is None:
        return None
    return str(value).strip() or None


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def extract_addresses(msg: Message, header_name: str) -> List[EmailAddress]:
    """
    Parse every mailbox of an address header, in order.

    Args:
        msg: Parsed message
        header_name: e.g. "To", "Cc"

    Returns:
        List of EmailAddress (duplicates retained)
    """
    values = [decode_header_value(value) for value in msg.get_all(header_name, [])]
    addresses = []
    for name, address in getaddresses(values):
        if not address and not name:
            continue
        addresses.append(EmailAddress(address=address.strip(), name=name.strip() or None))
    return addresses


def extract_headers(msg: Message) -> Dict[str, Any]:
    """
    Build a lower-cased header map; repeated headers become lists.

    The Date header is stored as a datetime when it parses.
    """
    headers: Dict[str, Any] = {}
    for key, value in msg.items():
        name = key.lower()
        decoded = decode_header_value(value)
        if name in headers:
            existing = headers[name]
            if not isinstance(existing, list):
                existing = [existing]
            existing.append(decoded)
            headers[name] = existing
        else:
            headers[name] = decoded

    date = _parse_date(headers.get("date") if isinstance(headers.get("date"), str) else None)
    if date is not None:
        headers["date"] = date
    return headers


def _inline_filename(part: Message) -> Optional[str]:
    content_id = (_header_str(part, "Content-ID") or "").strip("<>")
    if not content_id:
        return None
    extension = mimetypes.guess_extension(part.get_content_type()) or ""
    return f"{content_id}{extension}"


def _build_attachment(part: Message) -> DecodedAttachment:
    payload = part.get_payload(decode=True) or b""
    filename = part.get_filename()
    return DecodedAttachment(
        filename=decode_header_value(filename) if filename else _inline_filename(part),
        content=payload,
        content_type=part.get_content_type(),
        size=len(payload),
        content_id=(_header_str(part, "Content-ID") or "").strip("<>") or None,
        disposition=part.get_content_disposition(),
    )


def extract_body(msg: Message) -> Tuple[Optional[str], Optional[str], List[DecodedAttachment]]:
    """
    Extract plain text body, HTML body and attachments.

    All text/plain parts are joined; the first text/html part is used.

    Args:
        msg: Parsed message

    Returns:
        Tuple of (text, html, attachments)
    """
    text_parts: List[str] = []
    html_body: Optional[str] = None
    attachments: List[DecodedAttachment] = []

    for part in walk_message_parts(msg):
        if is_attachment(part):
            attachments.append(_build_attachment(part))
            continue

        content_type = part.get_content_type()
        if content_type not in ("text/plain", "text/html"):
            continue

        text = decode_payload(part)
        if content_type == "text/plain":
            text_parts.append(text)
        elif html_body is None and text.strip():
            html_body = text

    text_body = "\n".join(text_parts) if text_parts else None
    return text_body, html_body, attachments


def decode_mime(raw: bytes) -> DecodedEmail:
    """
    Decode raw message bytes into a DecodedEmail.

    When a message only has an HTML part, a plain text rendition is derived
    from it so the cleaned body is never empty by accident.

    Args:
        raw: Raw RFC 5322 message bytes

    Returns:
        DecodedEmail ready for normalize_email()
    """
    msg = message_from_bytes(raw)

    text_body, html_body, attachments = extract_body(msg)
    if text_body is None and html_body:
        text_body = html_to_text(html_body)

    references: List[str] = []
    for value in msg.get_all("References", []):
        references.extend(ref for ref in str(value).split() if ref)

    subject = msg.get("Subject")

    decoded = DecodedEmail(
        subject=decode_header_value(subject) if subject is not None else None,
        from_=extract_addresses(msg, "From"),
        reply_to=extract_addresses(msg, "Reply-To"),
        to=extract_addresses(msg, "To"),
        cc=extract_addresses(msg, "Cc"),
        bcc=extract_addresses(msg, "Bcc"),
        text=text_body,
        html=html_body,
        attachments=attachments,
        message_id=_header_str(msg, "Message-ID"),
        in_reply_to=_header_str(msg, "In-Reply-To"),
        references=references,
        date=_parse_date(_header_str(msg, "Date")),
        headers=extract_headers(msg),
    )

    logger.debug(
        "mime_decoded",
        raw_size_bytes=len(raw),
        has_text=text_body is not None,
        has_html=html_body is not None,
        attachments_count=len(attachments),
    )

    return decoded
