"""
Code block enrichment: syntax-highlighting grammar registry and Markdown.

The grammar registry is an immutable mapping of language tag to Pygments lexer.
It is built explicitly (normally once at startup) and passed into the render
pipeline as a parameter.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Iterable, Mapping

import markdown
import structlog
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from ..config import settings
from .sanitizer import sanitize_html

logger = structlog.get_logger(__name__)

GrammarRegistry = Mapping[str, Lexer]

EMPTY_GRAMMAR_REGISTRY: GrammarRegistry = MappingProxyType({})

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists"]


def build_grammar_registry(languages: Iterable[str]) -> GrammarRegistry:
    """
    Build a read-only language -> lexer table.

    Unknown language tags are logged and skipped.

    Args:
        languages: Language tags as they appear in `language-X` classes

    Returns:
        Immutable mapping of language tag to Pygments lexer
    """
    grammars = {}
    for language in languages:
        try:
            grammars[language] = get_lexer_by_name(language, stripnl=False, ensurenl=False)
        except ClassNotFound:
            logger.warning("unknown_highlight_language", language=language)
    return MappingProxyType(grammars)


@lru_cache(maxsize=1)
def default_grammar_registry() -> GrammarRegistry:
    """Registry for the configured highlight languages, built once per process."""
    return build_grammar_registry(settings.highlight_languages)


def highlight_code(code: str, lexer: Lexer) -> str:
    """Return highlighted markup (class-tagged spans) for a code block's text."""
    return highlight(code, lexer, HtmlFormatter(nowrap=True))


def render_markdown(text: str) -> str:
    """Render Markdown to HTML and sanitize it (no <style> elements)."""
    rendered = markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    return sanitize_html(rendered, allow_style=False)
