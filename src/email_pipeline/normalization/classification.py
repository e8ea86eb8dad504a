"""
Rule-based classification of normalized emails.

Both functions are deterministic and are recomputed on demand; their results
are not persisted on the canonical record.
"""

import re
from typing import Any, List, Mapping, Union

from ..models.email_document import DecodedEmail, NormalizedEmail
from .headers import first_string, get_header

# Precedence values that mark bulk mail ("list" is not bulk)
BULK_PRECEDENCE_VALUES = frozenset({"bulk", "junk"})

# Order numbers: #12345, Order #12345, Order: 12345
ORDER_NUMBER_PATTERN = re.compile(r"(order|#)\s*[:#]?\s*([A-Z0-9]{4,})", re.IGNORECASE)
# Tracking numbers: 1Z999AA10123456784 (UPS) and similar carrier formats
TRACKING_NUMBER_PATTERN = re.compile(r"\b([A-Z0-9]{10,})\b")

IDENTIFIER_PATTERNS = [ORDER_NUMBER_PATTERN, TRACKING_NUMBER_PATTERN]


def is_auto_generated(
    source: Union[NormalizedEmail, DecodedEmail, Mapping[str, Any]]
) -> bool:
    """
    Check if an email is bulk mail (Precedence: bulk or junk).

    Args:
        source: Normalized record, decoded email, or a raw header mapping

    Returns:
        True only for bulk/junk precedence
    """
    headers = source.headers if hasattr(source, "headers") else source
    precedence = first_string(get_header(headers, "precedence"))
    if not precedence:
        return False
    return precedence.lower() in BULK_PRECEDENCE_VALUES


def extract_identifiers(body: str) -> List[str]:
    """
    Extract order numbers, tracking numbers and similar IDs from body text.

    Duplicates are removed; callers must not rely on the order.

    Args:
        body: Cleaned body text

    Returns:
        List of unique matched identifiers
    """
    if not body:
        return []

    identifiers: List[str] = []
    for pattern in IDENTIFIER_PATTERNS:
        identifiers.extend(match.group(0) for match in pattern.finditer(body))

    return list(dict.fromkeys(identifiers))
