"""
Email quote extractor.

Detects and removes quoted/forwarded history from email HTML so replies do not
duplicate earlier messages. Each call parses its own BeautifulSoup tree and
discards it on return.

Detection runs three checks in order:
1. Known mail client quote containers (CSS selectors)
2. A bare <blockquote> left as the last top-level element
3. Text sentinels ("On ... wrote:", "From: ", ...) whose nearest block
   ancestor is removed
"""

import re
from typing import List, Optional

import structlog
from bs4 import BeautifulSoup, NavigableString, ParserRejectedMarkup, Tag
from bs4.element import PreformattedString

logger = structlog.get_logger(__name__)

# Quote containers produced by known mail clients
QUOTE_SELECTORS = [
    ".gmail_quote_container",
    ".gmail_quote",
    ".OutlookQuote",
    ".email-quote",
    ".quoted-text",
    ".quote",
    '[class*="quote"]',
    '[class*="Quote"]',
]

BLOCKQUOTE_FALLBACK_TAG = "blockquote"

# Text found in reply/forward headers
QUOTE_TEXT_PATTERNS = [
    re.compile(r"On .* wrote:", re.IGNORECASE),
    re.compile(r"-----Original Message-----", re.IGNORECASE),
    re.compile(r"Sent: ", re.IGNORECASE),
    re.compile(r"From: ", re.IGNORECASE),
]

BLOCK_TAGS = frozenset({"div", "p", "blockquote", "section"})


def _parse(html: str) -> Optional[BeautifulSoup]:
    try:
        return BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as e:
        logger.warning("quote_extraction_parse_failed", error=str(e))
        return None


def _find_selector_quotes(root: BeautifulSoup) -> List[Tag]:
    found: List[Tag] = []
    seen = set()
    for selector in QUOTE_SELECTORS:
        for element in root.select(selector):
            if id(element) not in seen:
                seen.add(id(element))
                found.append(element)
    return found


def _find_trailing_blockquote(root: BeautifulSoup) -> Optional[Tag]:
    last_element = None
    for child in root.contents:
        if isinstance(child, Tag):
            last_element = child
    if last_element is not None and last_element.name == BLOCKQUOTE_FALLBACK_TAG:
        return last_element
    return None


def _find_parent_block(node: NavigableString) -> Optional[Tag]:
    for parent in node.parents:
        if parent.name in BLOCK_TAGS:
            return parent
    return None


def _is_quote_text(text: str) -> bool:
    return any(pattern.search(text) for pattern in QUOTE_TEXT_PATTERNS)


def _find_text_node_quotes(root: BeautifulSoup, first_only: bool = False) -> List[Tag]:
    blocks: List[Tag] = []
    seen = set()
    for node in root.find_all(string=True):
        # Comments, CDATA and doctypes are not document text
        if isinstance(node, PreformattedString):
            continue
        if not _is_quote_text(str(node)):
            continue

        block = _find_parent_block(node)
        if block is None or id(block) in seen:
            continue

        seen.add(id(block))
        blocks.append(block)
        if first_only:
            break
    return blocks


def _removal_pass(root: BeautifulSoup) -> int:
    removed = 0

    for element in _find_selector_quotes(root):
        element.extract()
        removed += 1

    trailing = _find_trailing_blockquote(root)
    if trailing is not None:
        trailing.extract()
        removed += 1

    # Marked during the walk, removed after it
    for element in _find_text_node_quotes(root):
        element.extract()
        removed += 1

    return removed


def extract_quotes(html: Optional[str]) -> str:
    """
    Remove quotes from email HTML and return the cleaned HTML.

    Passes repeat until nothing more is removed, so applying the function
    to its own output is a no-op. When no quote is found the input string is
    returned unchanged.

    Args:
        html: HTML fragment

    Returns:
        HTML fragment without quoted history
    """
    if not html:
        return ""

    root = _parse(html)
    if root is None:
        return html

    total_removed = 0
    while True:
        removed = _removal_pass(root)
        if not removed:
            break
        total_removed += removed

    if not total_removed:
        return html

    logger.debug("quotes_extracted", removed_elements=total_removed)
    return str(root)


def has_quotes(html: Optional[str]) -> bool:
    """
    Check if HTML content contains any quotes.

    Runs the same checks as extract_quotes() without modifying anything and
    returns on the first hit.

    Args:
        html: HTML fragment

    Returns:
        True if extract_quotes() would remove something
    """
    if not html:
        return False

    root = _parse(html)
    if root is None:
        return False

    for selector in QUOTE_SELECTORS:
        if root.select_one(selector) is not None:
            return True

    if _find_trailing_blockquote(root) is not None:
        return True

    return bool(_find_text_node_quotes(root, first_only=True))
