"""
MIME utility functions for handling multipart email messages.
"""

from email.errors import HeaderParseError
from email.header import decode_header, make_header
from email.message import Message
from typing import Any, Iterator

import charset_normalizer


def walk_message_parts(msg: Message) -> Iterator[Message]:
    """
    Walk through all leaf parts of a (potentially multipart) message.

    Args:
        msg: Email message

    Yields:
        Individual non-multipart parts
    """
    for part in msg.walk():
        if not part.is_multipart():
            yield part


def decode_payload(part: Message) -> str:
    """
    Decode message part payload handling various encodings.

    Tries the declared charset, then charset-normalizer detection, then
    UTF-8 with replacement characters.

    Args:
        part: Message part to decode

    Returns:
        Decoded string content ("" if the part has no payload)
    """
    payload = part.get_payload(decode=True)
    if not payload:
        return ""

    charset = part.get_content_charset()
    if charset:
        try:
            return payload.decode(charset)
        except (UnicodeDecodeError, LookupError):
            pass

    detected = charset_normalizer.from_bytes(payload).best()
    if detected:
        return str(detected)

    return payload.decode("utf-8", errors="replace")


def decode_header_value(value: Any) -> str:
    """
    Decode RFC 2047 encoded-words in a header value.

    Falls back to the raw value when the encoding is broken.
    """
    if value is None:
        return ""
    raw = str(value)
    try:
        return str(make_header(decode_header(raw)))
    except (HeaderParseError, LookupError, UnicodeDecodeError, ValueError):
        return raw


def is_attachment(part: Message) -> bool:
    """
    Determine if message part is an attachment (regular or inline).

    Args:
        part: Message part to check

    Returns:
        True for attachment dispositions, named parts and non-text parts
        referenced by Content-ID
    """
    disposition = (part.get_content_disposition() or "").lower()
    if disposition == "attachment" or part.get_filename():
        return True
    return bool(part.get("Content-ID")) and part.get_content_maintype() != "text"
