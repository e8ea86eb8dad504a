"""
Safe render pipeline for stored message bodies.

Turns a stored (possibly attacker-influenced) HTML body into markup that is
safe to show an agent:

a. cid: references resolved to attachment URLs
b. allow-list sanitization
c. tracking pixel removal
d. lazy/async loading on remaining images
e. language-tagged code blocks highlighted, Markdown blocks rendered
f. fragment serialization

is_simple_html() decides between inline and isolated rendering and is always
computed on the original HTML, independently of what sanitization removes.
"""

import html as html_module
import re
from typing import Any, Callable, Iterable, Mapping, Optional, Union
from urllib.parse import quote

import structlog
from bs4 import BeautifulSoup, Tag

from ..config import settings
from ..models.rendering import RenderedBody, StoredAttachment
from .highlighting import EMPTY_GRAMMAR_REGISTRY, GrammarRegistry, highlight_code, render_markdown
from .sanitizer import sanitize_html

logger = structlog.get_logger(__name__)

AttachmentUrlResolver = Callable[[StoredAttachment], str]

# Inline images are stored under "<cid>.<ext>"
CID_FILENAME_PATTERN = re.compile(r"^(.+)\.(png|jpg|jpeg|gif|webp)$", re.IGNORECASE)

TRACKING_PATH_SEGMENTS = ["/api/track/"]

SIMPLE_HTML_MAX_LENGTH = 1000

# Markers that require iframe isolation, checked in order
COMPLEXITY_PATTERNS = [
    (re.compile(r"<table", re.IGNORECASE), "table"),
    (re.compile(r"<style", re.IGNORECASE), "style_element"),
    (re.compile(r"<iframe", re.IGNORECASE), "iframe"),
    (re.compile(r"<form", re.IGNORECASE), "form"),
    (re.compile(r"<script", re.IGNORECASE), "script"),
    (re.compile(r"style=[\"'][^\"']*background", re.IGNORECASE), "inline_background"),
    (re.compile(r"gmail_quote", re.IGNORECASE), "gmail_quote"),
]

_LANGUAGE_CLASS_RE = re.compile(r"language-(\w+)")
_DIMENSION_RE = re.compile(r"^\s*(\d+)")


def _as_attachment(attachment: Union[StoredAttachment, Mapping[str, Any]]) -> StoredAttachment:
    if isinstance(attachment, StoredAttachment):
        return attachment
    return StoredAttachment.model_validate(attachment)


def _attachment_url(
    attachment: StoredAttachment, resolver: Optional[AttachmentUrlResolver]
) -> str:
    if attachment.url:
        return attachment.url
    if resolver is not None:
        return resolver(attachment)
    return settings.attachment_url_template.format(id=quote(attachment.id, safe=""))


def resolve_cid_references(
    html: str,
    attachments: Iterable[Union[StoredAttachment, Mapping[str, Any]]],
    attachment_url: Optional[AttachmentUrlResolver] = None,
) -> str:
    """
    Replace cid: references with attachment URLs.

    An attachment named "<cid>.<image-ext>" replaces every literal
    "cid:<cid>" occurrence in the HTML.

    Args:
        html: HTML body
        attachments: Stored attachments of the message
        attachment_url: Optional resolver used when an attachment has no URL

    Returns:
        HTML with resolvable image URLs
    """
    for attachment in attachments:
        attachment = _as_attachment(attachment)
        match = CID_FILENAME_PATTERN.match(attachment.filename or "")
        if not match:
            continue
        cid = match.group(1)
        html = html.replace(f"cid:{cid}", _attachment_url(attachment, attachment_url))
    return html


def _declared_dimension(value: Any) -> Optional[int]:
    if isinstance(value, list):
        value = " ".join(value)
    match = _DIMENSION_RE.match(value or "")
    return int(match.group(1)) if match else None


def _is_tracking_pixel(img: Tag) -> bool:
    src = img.get("src") or ""
    if any(segment in src for segment in TRACKING_PATH_SEGMENTS):
        return True
    return _declared_dimension(img.get("width")) == 1 and _declared_dimension(img.get("height")) == 1


def _process_images(soup: BeautifulSoup) -> int:
    removed = 0
    for img in soup.find_all("img"):
        if _is_tracking_pixel(img):
            img.extract()
            removed += 1
        else:
            img["loading"] = "lazy"
            img["decoding"] = "async"
    return removed


def _fragment_nodes(markup: str) -> list:
    return list(BeautifulSoup(markup, "html.parser").contents)


def _process_code_blocks(soup: BeautifulSoup, grammars: GrammarRegistry) -> int:
    enhanced = 0
    for code in soup.select('pre > code[class*="language-"]'):
        pre = code.parent
        if pre is None:
            continue

        class_attr = code.get("class") or []
        if isinstance(class_attr, list):
            class_attr = " ".join(class_attr)
        lang_match = _LANGUAGE_CLASS_RE.search(class_attr)
        if not lang_match:
            continue

        lang = lang_match.group(1)
        text_content = code.get_text()

        try:
            if lang == "markdown":
                wrapper = soup.new_tag("div")
                wrapper["class"] = "rendered-markdown"
                for node in _fragment_nodes(render_markdown(text_content)):
                    wrapper.append(node)
                pre.replace_with(wrapper)
                enhanced += 1
            elif lang in grammars:
                highlighted = highlight_code(text_content, grammars[lang])
                code.clear()
                for node in _fragment_nodes(highlighted):
                    code.append(node)
                pre["class"] = f"language-{lang}"
                enhanced += 1
        except Exception as e:
            # Enrichment is optional; the block stays as sanitized plain code
            logger.warning("code_block_enhancement_failed", language=lang, error=str(e))

    return enhanced


def plain_text_to_html(body: Optional[str]) -> str:
    """Escape a plain text body and convert newlines to <br>."""
    if not body:
        return ""
    text = body.replace("\r\n", "\n").replace("\r", "\n")
    return html_module.escape(text).replace("\n", "<br>")


def render_message_body(
    body: Optional[str],
    body_html: Optional[str],
    attachments: Optional[Iterable[Union[StoredAttachment, Mapping[str, Any]]]] = None,
    grammars: Optional[GrammarRegistry] = None,
    attachment_url: Optional[AttachmentUrlResolver] = None,
) -> str:
    """
    Get sanitized HTML for a message body.

    Prefers HTML if available, otherwise converts plain text to HTML.

    Args:
        body: Stored plain text body
        body_html: Stored HTML body (None if the message had none)
        attachments: Stored attachments, used for cid: resolution
        grammars: Highlighting grammar registry (no highlighting if None)
        attachment_url: Resolver for attachments without a URL

    Returns:
        Render-ready HTML fragment
    """
    if not body_html:
        return plain_text_to_html(body)

    grammars = EMPTY_GRAMMAR_REGISTRY if grammars is None else grammars

    html = body_html
    if attachments:
        html = resolve_cid_references(html, attachments, attachment_url)

    sanitized = sanitize_html(html)

    soup = BeautifulSoup(sanitized, "html.parser")
    tracking_removed = _process_images(soup)
    code_blocks = _process_code_blocks(soup, grammars)

    logger.debug(
        "message_body_rendered",
        input_length=len(body_html),
        output_length=len(sanitized),
        tracking_pixels_removed=tracking_removed,
        code_blocks_enhanced=code_blocks,
    )

    return str(soup)


def is_simple_html(html: Optional[str], max_length: int = SIMPLE_HTML_MAX_LENGTH) -> bool:
    """
    Check if HTML is simple enough to render inline (no iframe needed).

    Simple HTML = basic formatting only, no complex layouts or embedded content.

    Args:
        html: Original (unsanitized) HTML
        max_length: Longer bodies are always treated as complex

    Returns:
        True for inline rendering, False for isolated rendering
    """
    if not html:
        return True

    for pattern, _ in COMPLEXITY_PATTERNS:
        if pattern.search(html):
            return False

    return len(html) <= max_length


def render_message(
    body: Optional[str],
    body_html: Optional[str],
    attachments: Optional[Iterable[Union[StoredAttachment, Mapping[str, Any]]]] = None,
    grammars: Optional[GrammarRegistry] = None,
    attachment_url: Optional[AttachmentUrlResolver] = None,
) -> RenderedBody:
    """
    Render a stored message for display.

    Returns:
        RenderedBody with the sanitized HTML and the inline/isolated decision
    """
    return RenderedBody(
        html=render_message_body(body, body_html, attachments, grammars, attachment_url),
        is_simple=is_simple_html(body_html),
    )
