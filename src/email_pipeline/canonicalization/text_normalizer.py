"""
Plain text body cleaning.

Strips quoted history and signatures from inbound plain text bodies at
ingestion time. Line sentinels are kept in an ordered table of
(pattern, action, description) so new mail client quirks only add rows.
"""

import re
from typing import List, Optional

import structlog

logger = structlog.get_logger(__name__)

# Actions a sentinel line can trigger
SIGNATURE = "signature"  # drop this line and everything after it
QUOTE = "quote"  # drop this line, mark the quote state
REPLY_HEADER = "reply_header"  # stop processing, drop this line and the rest

# Evaluated in order against the right-trimmed line; first match wins
LINE_PATTERNS = [
    (re.compile(r"^--\s*$"), SIGNATURE, "Standard signature delimiter"),
    (re.compile(r"^_{3,}$"), SIGNATURE, "Underscore signature delimiter"),
    (re.compile(r"^Sent from my", re.IGNORECASE), SIGNATURE, "Mobile device signatures"),
    (re.compile(r"^>"), QUOTE, "Quoted lines"),
    (re.compile(r"^On .* wrote:$", re.IGNORECASE), REPLY_HEADER, "English reply header"),
]


def _match_action(line: str) -> Optional[str]:
    for pattern, action, _ in LINE_PATTERNS:
        if pattern.match(line):
            return action
    return None


def _clean_pass(text: str) -> str:
    cleaned_lines: List[str] = []
    in_signature = False
    in_quote = False

    for line in text.split("\n"):
        line = line.rstrip()

        # Skip blank lines before the first kept line
        if not line and not cleaned_lines:
            continue

        if in_signature:
            continue

        action = _match_action(line)
        if action == SIGNATURE:
            in_signature = True
            continue
        if action == QUOTE:
            in_quote = True
            continue
        if action == REPLY_HEADER:
            break

        # First non-quoted line after a quote block is kept as normal content
        if in_quote:
            in_quote = False

        cleaned_lines.append(line)

    while cleaned_lines and not cleaned_lines[-1].strip():
        cleaned_lines.pop()

    return "\n".join(cleaned_lines).strip()


def clean_email_body(text: Optional[str]) -> str:
    """
    Remove quoted text, reply headers and signatures from a plain text body.

    Steps:
    1. Normalize line endings to \\n
    2. Single forward pass over lines:
       - signature delimiters ("--", "___", "Sent from my ...") drop the rest
       - lines starting with ">" are dropped
       - an "On ... wrote:" line ends the body
       - leading blank lines are skipped
    3. Trim trailing blank lines and surrounding whitespace

    The pass is repeated until stable, so that trimming cannot surface a new
    sentinel (e.g. "  --" becoming "--") on a later call.

    Args:
        text: Raw plain text body

    Returns:
        Cleaned body ("" when everything was quoted or signature)
    """
    if not text:
        return ""

    text = text.replace("\r\n", "\n").replace("\r", "\n")

    cleaned = _clean_pass(text)
    while True:
        again = _clean_pass(cleaned)
        if again == cleaned:
            break
        cleaned = again

    if not cleaned and text.strip():
        logger.debug("body_cleaned_to_empty", original_length=len(text))

    return cleaned
