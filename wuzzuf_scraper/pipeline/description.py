"""
Job description extraction and cleaning.

Detail pages mix the description with related-job lists, view/applicant
stats and inline styles. The description is rebuilt from the substantive
paragraphs and lists of a working copy of the page with that noise removed.
"""

import copy
import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from ..core.text_sanitizer import GENERATED_CLASS_RE, clean_html_text
from .fields import ExtractionContext, FieldCandidate

logger = logging.getLogger(__name__)

DESCRIPTION_SELECTORS = [
    '[data-qa="job-description"]',
    'div[class*="job-description"]',
    'section[class*="description"]',
    '.job-description',
    'div[class*="description"]',
]

NOISE_SELECTORS = [
    'script', 'style', 'noscript', 'iframe', 'svg', 'form', 'nav', 'header', 'footer',
    '[class*="related"]', '[class*="similar"]', '[class*="stats"]',
]
NOISE_HEADING_RE = re.compile(r'similar jobs|related jobs|other jobs|jobs you may like', re.IGNORECASE)
NOISE_TEXT_RE = re.compile(r'\bViewed\b|Not Selected|\bApplicants?\b', re.IGNORECASE)

HEADING_TAGS = ['h2', 'h3', 'h4', 'h5']
BLOCK_TAGS = ['p', 'ul', 'ol']
MIN_BLOCK_CHARS = 20
MIN_CONTAINER_HTML = 50

# Attributes that carry styling or generated tokens rather than content
STRIPPED_ATTRIBUTES = ('class', 'style', 'id')


def _remove_noise(soup: BeautifulSoup):
    for selector in NOISE_SELECTORS:
        for tag in soup.select(selector):
            if not tag.decomposed:
                tag.decompose()

    for heading in soup.find_all(HEADING_TAGS):
        if heading.decomposed:
            continue
        if not NOISE_HEADING_RE.search(heading.get_text(' ', strip=True)):
            continue
        section = heading.find_parent(['section', 'aside'])
        if section is not None:
            section.decompose()
            continue
        # No enclosing section: drop everything up to the next heading
        for sibling in list(heading.find_next_siblings()):
            if sibling.name in HEADING_TAGS:
                break
            sibling.decompose()
        heading.decompose()

    # Stats lists ("12 Applicants", "Viewed 40") are lists whose items are all noise
    for lst in soup.find_all(['ul', 'ol']):
        if lst.decomposed:
            continue
        items = lst.find_all('li')
        if items and all(NOISE_TEXT_RE.search(li.get_text(' ', strip=True)) for li in items):
            lst.decompose()


def clean_description_html(markup: Optional[str]) -> Optional[str]:
    """Strip style/script markup and generated class/attribute tokens from description HTML."""
    if not markup or not markup.strip():
        return None
    soup = BeautifulSoup(markup, 'lxml')
    for tag in soup(['script', 'style', 'noscript', 'iframe']):
        tag.decompose()
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            if attr in STRIPPED_ATTRIBUTES or attr.startswith('data-'):
                del tag.attrs[attr]

    body = soup.body or soup
    cleaned = ''.join(str(child) for child in body.children)
    cleaned = GENERATED_CLASS_RE.sub('', cleaned).strip()
    return cleaned or None


def description_from_container(ctx: ExtractionContext, rules=None) -> Optional[FieldCandidate]:
    """A known description container with a meaningful amount of markup."""
    for selector in DESCRIPTION_SELECTORS:
        container = ctx.soup.select_one(selector)
        if container is None:
            continue
        markup = container.decode_contents().strip()
        if len(markup) > MIN_CONTAINER_HTML and len(clean_html_text(markup)) > MIN_BLOCK_CHARS:
            return FieldCandidate(markup, source='dom', raw_snippet=selector)
    return None


def description_from_blocks(ctx: ExtractionContext, rules=None) -> Optional[FieldCandidate]:
    """Paragraphs and lists with substantive text, collected from a de-noised copy of the page."""
    working = copy.copy(ctx.soup)
    _remove_noise(working)

    root = working.select_one('main, article, [role="main"]') or working.body or working
    blocks: List[Tag] = []
    collected = set()
    for block in root.find_all(BLOCK_TAGS):
        if any(id(parent) in collected for parent in block.parents):
            continue
        text = block.get_text(' ', strip=True)
        if len(text) <= MIN_BLOCK_CHARS or NOISE_TEXT_RE.search(text):
            continue
        blocks.append(block)
        collected.add(id(block))

    if not blocks:
        return None
    markup = ''.join(str(block) for block in blocks)
    return FieldCandidate(markup, source='heuristic', raw_snippet=f"{len(blocks)} blocks")
