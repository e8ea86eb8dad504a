# Email parsing module

from .mime_decoder import decode_mime, extract_addresses, extract_body, extract_headers
from .mime_utils import decode_header_value, decode_payload, is_attachment, walk_message_parts

__all__ = [
    "decode_mime",
    "extract_addresses",
    "extract_body",
    "extract_headers",
    "decode_header_value",
    "decode_payload",
    "is_attachment",
    "walk_message_parts",
]
