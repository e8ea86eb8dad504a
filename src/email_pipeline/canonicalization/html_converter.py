"""
HTML to text conversion module.

strip_html() produces the full-text projection stored alongside every HTML body
for search indexing. html_to_text() produces a readable plain text rendition
(via html2text) for messages that arrive without a text/plain part.
"""

import re
from typing import Optional

import html2text

# (opener, closer) pairs of elements removed with their content
_CONTENT_ELEMENTS = [
    (re.compile(r"<script\b", re.IGNORECASE), re.compile(r"</script>", re.IGNORECASE)),
    (re.compile(r"<style\b", re.IGNORECASE), re.compile(r"</style>", re.IGNORECASE)),
]
_WHITESPACE_RE = re.compile(r"\s+")

ENTITY_MAP = {
    "&nbsp;": " ",
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&apos;": "'",
}
# Single alternation so each entity is decoded exactly once ("&amp;lt;" -> "&lt;")
_ENTITY_RE = re.compile("|".join(re.escape(entity) for entity in ENTITY_MAP))


def _remove_elements(text: str, opener: re.Pattern, closer: re.Pattern) -> str:
    # An opener without a closer ends removal: no later opener has one either
    parts = []
    pos = 0
    while True:
        start = opener.search(text, pos)
        if start is None:
            break
        end = closer.search(text, start.end())
        if end is None:
            break
        parts.append(text[pos:start.start()])
        pos = end.end()
    parts.append(text[pos:])
    return "".join(parts)


def _replace_tags(text: str) -> str:
    # Equivalent to re.sub(r"<[^>]+>", " ", text) in a single forward scan
    parts = []
    pos = 0
    search_from = 0
    while True:
        start = text.find("<", search_from)
        if start == -1:
            break
        end = text.find(">", start + 1)
        if end == -1:
            break
        if end == start + 1:
            # "<>" is not a tag
            search_from = end
            continue
        parts.append(text[pos:start])
        parts.append(" ")
        pos = search_from = end + 1
    parts.append(text[pos:])
    return "".join(parts)


def strip_html(html: Optional[str]) -> str:
    """
    Strip markup from HTML for full-text search indexing.

    Args:
        html: HTML content (None allowed)

    Returns:
        Whitespace-collapsed plain text, "" for empty input
    """
    if not html:
        return ""

    text = html
    for opener, closer in _CONTENT_ELEMENTS:
        text = _remove_elements(text, opener, closer)
    text = _replace_tags(text)
    text = _ENTITY_RE.sub(lambda match: ENTITY_MAP[match.group(0)], text)
    text = _WHITESPACE_RE.sub(" ", text)

    return text.strip()


def html_to_text(html: Optional[str], preserve_links: bool = False) -> str:
    """
    Convert HTML email body to readable plain text.

    Uses html2text library to preserve structure while removing formatting.

    Args:
        html: HTML content
        preserve_links: Whether to keep links as markdown [text](url)

    Returns:
        Plain text representation
    """
    if not html:
        return ""

    h = html2text.HTML2Text()
    h.ignore_links = not preserve_links
    h.ignore_images = True
    h.ignore_emphasis = True
    h.body_width = 0  # Don't wrap lines
    h.unicode_snob = True  # Use unicode instead of ASCII replacements

    try:
        text = h.handle(html)
        return text.strip()
    except Exception:
        # html2text chokes on some broken markup; the projection never fails
        return strip_html(html)
