"""
Text sanitization and validation.

Live job pages change their markup often. When a selector drifts, the text it
picks up is frequently a style block, a generated class name or a markup
fragment instead of real data. ``sanitize`` strips that noise and
``is_valid_text`` rejects candidates that still look like it.
"""

import html
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Number of cleaning passes before giving up on reaching a fixed point
MAX_PASSES = 8

STYLE_BLOCK_RE = re.compile(r'<(style|script|noscript)\b[^>]*>.*?</\1\s*>', re.IGNORECASE | re.DOTALL)
RULE_BLOCK_RE = re.compile(r'(?:[.#@]?[\w-]+(?:[.#:][\w()-]+)*\s*)?\{[^{}]*\}')
DECLARATION_RE = re.compile(r'(?<![\w-])-?[a-z]+(?:-[a-z]+)*\s*:\s*[^;:{}<>\n]{1,80};')
GENERATED_CLASS_RE = re.compile(r'\b(?:(?:css|jsx)-[a-z0-9]+|(?:sc|emotion|styled)-[a-z0-9]{4,})\b', re.IGNORECASE)
TAG_RE = re.compile(r'<[^>]*>')
OBJECT_ARTIFACT_RE = re.compile(r'\[object\s+Object\]', re.IGNORECASE)
WHITESPACE_RE = re.compile(r'\s+')

HTML_TAGS = r'(?:div|span|a|p|ul|ol|li|h[1-6]|section|article|img|button|svg|input|label|main|nav|header|footer)'
BARE_SELECTOR_RE = re.compile(
    rf'^{HTML_TAGS}?(?:[.#][\w-]+)+$'
    rf'|^{HTML_TAGS}(?:\s*[>+~]\s*{HTML_TAGS})+$'
    r'|^[\w.#-]+::?(?:hover|focus|active|before|after|first-child|last-child)$'
)
BARE_LENGTH_RE = re.compile(r'^\d+(?:\.\d+)?\s*(?:px|em|rem|vh|vw|pt|%)\b', re.IGNORECASE)

# Vocabulary that only shows up in style sheets or markup
STYLE_VOCABULARY_RE = re.compile(
    r'-(?:webkit|moz|ms|o)-'
    r'|\b(?:rgba?|hsla?|calc|var|url)\s*\('
    r'|!important'
    r'|@(?:media|keyframes|font-face|import)\b'
    r'|\b(?:display|position|margin|padding|border|width|height|color|background|font|'
    r'font-size|font-weight|font-family|line-height|text-align|z-index|overflow|flex|'
    r'grid|opacity|transform|transition|cursor)\s*:'
    r'|\b(?:inline-block|flex-direction|justify-content|align-items|box-sizing|'
    r'border-radius|z-index)\b'
    r'|\b\d+(?:\.\d+)?(?:px|rem|em|vh|vw)\b'
    r'|\b[a-z-]+\s*:\s*[^\s;]+\s*;',
    re.IGNORECASE
)
BRACKET_RE = re.compile(r'[{}\[\]<>]')
NUMERIC_RE = re.compile(r'^[\d\s.,+-]+$')


def _clean_pass(text: str) -> str:
    text = html.unescape(text)
    text = STYLE_BLOCK_RE.sub(' ', text)
    text = RULE_BLOCK_RE.sub(' ', text)
    text = DECLARATION_RE.sub(' ', text)
    text = GENERATED_CLASS_RE.sub(' ', text)
    text = TAG_RE.sub(' ', text)
    text = OBJECT_ARTIFACT_RE.sub(' ', text)
    text = text.replace('\u00a0', ' ')
    return WHITESPACE_RE.sub(' ', text).strip()


def sanitize(text: Optional[str]) -> Optional[str]:
    """
    Strip structural noise from a raw text value.

    Returns the cleaned string, or None when nothing usable is left or the
    remainder still looks like a selector, a style rule or a length unit.
    Cleaning is repeated until the text stops changing, so
    ``sanitize(sanitize(x)) == sanitize(x)``.
    """
    if text is None:
        return None

    cleaned = str(text)
    for _ in range(MAX_PASSES):
        next_pass = _clean_pass(cleaned)
        if next_pass == cleaned:
            break
        cleaned = next_pass
    else:
        logger.debug(f"[sanitizer] No fixed point after {MAX_PASSES} passes: {cleaned[:60]!r}")
        return None

    if not cleaned:
        return None
    if cleaned[0] in '.#':
        return None
    if '{' in cleaned or '}' in cleaned:
        return None
    if BARE_SELECTOR_RE.match(cleaned):
        return None
    if BARE_LENGTH_RE.match(cleaned):
        return None
    return cleaned


def is_valid_text(text: Optional[str]) -> bool:
    """Reject strings that carry style/markup vocabulary, pure numbers or fewer than 2 characters."""
    if not text:
        return False
    value = str(text).strip()
    if len(value) < 2:
        return False
    if NUMERIC_RE.match(value):
        return False
    if BRACKET_RE.search(value):
        return False
    if STYLE_VOCABULARY_RE.search(value):
        return False
    return True


def clean_html_text(markup: Optional[str]) -> str:
    """Render markup as plain text with script/style content removed and whitespace collapsed."""
    if not markup:
        return ''
    soup = BeautifulSoup(markup, 'lxml')
    for tag in soup(['script', 'style', 'noscript', 'iframe']):
        tag.decompose()
    return WHITESPACE_RE.sub(' ', soup.get_text(' ')).strip()
