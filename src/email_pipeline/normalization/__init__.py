# Ingestion-time normalization and classification

from .classification import extract_identifiers, is_auto_generated
from .headers import derive_priority, get_header, serialize_headers
from .normalizer import normalize_email

__all__ = [
    "derive_priority",
    "extract_identifiers",
    "get_header",
    "is_auto_generated",
    "normalize_email",
    "serialize_headers",
]
