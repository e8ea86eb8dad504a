"""
Allow-list HTML sanitization for stored email bodies.

Executable and embedding elements are dropped together with their content,
then bleach applies the tag/attribute/protocol allow-list. Output is always a
fragment, never a full document.
"""

import bleach
import structlog
from bleach.css_sanitizer import ALLOWED_CSS_PROPERTIES, CSSSanitizer
from bs4 import BeautifulSoup, Comment, ParserRejectedMarkup

logger = structlog.get_logger(__name__)

# Removed together with their whole subtree
REMOVE_WITH_CONTENT = [
    "script",
    "noscript",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "form",
    "input",
    "button",
    "select",
    "textarea",
    "template",
    "svg",
    "math",
    "base",
    "meta",
    "link",
    "title",
]

ALLOWED_TAGS = frozenset(
    [
        "a",
        "abbr",
        "address",
        "article",
        "aside",
        "b",
        "bdi",
        "bdo",
        "big",
        "blockquote",
        "br",
        "caption",
        "center",
        "cite",
        "code",
        "col",
        "colgroup",
        "dd",
        "del",
        "details",
        "dfn",
        "div",
        "dl",
        "dt",
        "em",
        "figcaption",
        "figure",
        "font",
        "footer",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "header",
        "hr",
        "i",
        "img",
        "ins",
        "kbd",
        "li",
        "mark",
        "ol",
        "p",
        "pre",
        "q",
        "s",
        "section",
        "small",
        "span",
        "strike",
        "strong",
        "sub",
        "summary",
        "sup",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "time",
        "tr",
        "tt",
        "u",
        "ul",
        "var",
        "wbr",
    ]
)
STYLE_TAG = "style"

ALLOWED_ATTRIBUTES = frozenset(
    [
        "align",
        "alt",
        "bgcolor",
        "border",
        "cellpadding",
        "cellspacing",
        "color",
        "colspan",
        "dir",
        "face",
        "height",
        "href",
        "lang",
        "rowspan",
        "size",
        "span",
        "src",
        "start",
        "title",
        "valign",
        "width",
        # Needed for embedded CSS, link targets and language-* code blocks
        "target",
        "style",
        "loading",
        "class",
    ]
)

# Relative URLs (resolved attachment routes) have no scheme and are kept
ALLOWED_PROTOCOLS = frozenset(["http", "https", "mailto", "tel", "cid"])


def _allow_attribute(tag: str, name: str, value: str) -> bool:
    if name.startswith("data-") or name.startswith("on"):
        return False
    return name in ALLOWED_ATTRIBUTES


def _drop_dangerous_elements(html: str) -> str:
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as e:
        # bleach still strips the tags; only their text would survive
        logger.warning("sanitizer_preparse_failed", error=str(e))
        return html

    # extract(), not decompose(): matches can be nested inside each other
    for element in soup.find_all(REMOVE_WITH_CONTENT):
        element.extract()
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    return str(soup)


def sanitize_html(html: str, allow_style: bool = True) -> str:
    """
    Sanitize an HTML fragment against the email allow-list.

    Args:
        html: Untrusted HTML
        allow_style: Whether <style> elements are kept (email CSS)

    Returns:
        Sanitized HTML fragment ("" for empty input)
    """
    if not html:
        return ""

    tags = ALLOWED_TAGS | {STYLE_TAG} if allow_style else ALLOWED_TAGS

    return bleach.clean(
        _drop_dangerous_elements(html),
        tags=tags,
        attributes=_allow_attribute,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
        css_sanitizer=CSSSanitizer(allowed_css_properties=ALLOWED_CSS_PROPERTIES),
    )
