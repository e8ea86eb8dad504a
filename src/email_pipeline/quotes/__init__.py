# Compose-time quote extraction

from .quote_extractor import (
    QUOTE_SELECTORS,
    QUOTE_TEXT_PATTERNS,
    extract_quotes,
    has_quotes,
)

__all__ = [
    "QUOTE_SELECTORS",
    "QUOTE_TEXT_PATTERNS",
    "extract_quotes",
    "has_quotes",
]
