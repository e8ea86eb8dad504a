# Display-time safe rendering

from .highlighting import (
    EMPTY_GRAMMAR_REGISTRY,
    build_grammar_registry,
    default_grammar_registry,
    highlight_code,
    render_markdown,
)
from .render import (
    COMPLEXITY_PATTERNS,
    is_simple_html,
    plain_text_to_html,
    render_message,
    render_message_body,
    resolve_cid_references,
)
from .sanitizer import sanitize_html

__all__ = [
    "COMPLEXITY_PATTERNS",
    "EMPTY_GRAMMAR_REGISTRY",
    "build_grammar_registry",
    "default_grammar_registry",
    "highlight_code",
    "is_simple_html",
    "plain_text_to_html",
    "render_markdown",
    "render_message",
    "render_message_body",
    "resolve_cid_references",
    "sanitize_html",
]
