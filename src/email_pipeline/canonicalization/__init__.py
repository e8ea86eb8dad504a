# Text canonicalization module

from .html_converter import ENTITY_MAP, html_to_text, strip_html
from .text_normalizer import LINE_PATTERNS, clean_email_body

__all__ = [
    "ENTITY_MAP",
    "LINE_PATTERNS",
    "clean_email_body",
    "html_to_text",
    "strip_html",
]
