"""
Header map helpers shared by the normalizer and classifiers.
"""

import re
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Union

HeaderValue = Union[str, List[str]]

_X_PRIORITY_RE = re.compile(r"^\s*(\d)")

# (header, raw value -> priority) rows, checked in order
PRIORITY_HEADERS = [
    ("x-priority", None),
    ("x-msmail-priority", {"high": "high", "normal": "normal", "low": "low"}),
    ("importance", {"high": "high", "normal": "normal", "low": "low"}),
]


def get_header(headers: Optional[Mapping[str, Any]], name: str) -> Any:
    """
    Look up a header by name, case-insensitively.

    Returns:
        The raw header value, or None if absent
    """
    if not headers:
        return None

    wanted = name.lower()
    if wanted in headers:
        return headers[wanted]
    for key, value in headers.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    return None


def first_string(value: Any) -> Optional[str]:
    """Return value if it is a string, the first string of a list, else None."""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, str):
                return item
    return None


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def serialize_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, HeaderValue]:
    """
    Re-serialize a decoded header map for storage.

    Strings are kept, dates become ISO-8601 strings, lists become lists of
    strings and any other value is stringified. None values are dropped.

    Args:
        headers: Decoded header map

    Returns:
        Map of header name to string or list of strings
    """
    serialized: Dict[str, HeaderValue] = {}
    if not headers:
        return serialized

    for key, value in headers.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            serialized[str(key)] = [_stringify(item) for item in value if item is not None]
        else:
            serialized[str(key)] = _stringify(value)

    return serialized


def derive_priority(headers: Optional[Mapping[str, Any]]) -> Optional[str]:
    """
    Derive "high" / "normal" / "low" from priority headers.

    X-Priority 1-2 is high, 3 normal, 4-5 low. X-MSMail-Priority and
    Importance are read by name.
    """
    for name, mapping in PRIORITY_HEADERS:
        value = first_string(get_header(headers, name))
        if not value:
            continue
        if mapping is None:
            match = _X_PRIORITY_RE.match(value)
            if not match:
                continue
            level = int(match.group(1))
            if level in (1, 2):
                return "high"
            if level in (4, 5):
                return "low"
            return "normal"
        priority = mapping.get(value.strip().lower())
        if priority:
            return priority
    return None
