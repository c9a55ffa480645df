"""
Heuristic extractor.

Each field has an ordered list of strategies. A strategy is a plain function
``(ctx, rules) -> FieldCandidate | None`` that only reads the parsed page.
``HeuristicExtractor`` walks the list for a field until a strategy yields a
candidate that passes the field's validator.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..core.dates import RELATIVE_DATE_RE
from ..core.text_sanitizer import is_valid_text
from ..core.urls import normalize_url
from .description import description_from_blocks, description_from_container
from .fields import ExtractionContext, FieldCandidate
from .jsonld import dedupe_parts
from .labels import (
    CATEGORY_PATH_RE,
    COMPANY_CAREERS_RE,
    JOB_TYPE_LABELS,
    career_level_label_for_href,
    job_type_label_for_href,
)

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r'\s+')

TITLE_SELECTORS = [
    'h1.css-f9uh36',
    'h1[data-qa="job-title"]',
    'h1[class*="title"]',
    '[class*="job-title"] h1',
    'h1.job-title',
]

COMPANY_SELECTORS = [
    'div.css-d7j1kk a',
    '[data-qa="company-name"]',
    'div[class*="company"] a',
    '[class*="company-name"]',
]

SALARY_SELECTORS = [
    '[data-qa="salary"]',
    'div[class*="salary"]',
    'span[class*="salary"]',
]
SALARY_PATTERN_RE = re.compile(
    r'\d[\d,.]*\s*(?:-|to)\s*\d[\d,.]*\s*(?:EGP|USD|SAR|AED|EUR|GBP|KWD|QAR)'
    r'(?:\s*(?:/|per)\s*(?:month|year|hour|week))?',
    re.IGNORECASE
)

DATE_SELECTORS = [
    '[data-qa="posted-date"]',
    'time',
    'span[class*="date"]',
    'div[class*="job-date"]',
]

SKILL_SELECTORS = [
    'a[data-qa="skill-tag"]',
    'span[data-qa="skill-tag"]',
    '[data-qa="skills"] a',
]
SKILLS_HEADING_RE = re.compile(r'^\s*skills(?:\s+and\s+tools)?\s*:?\s*$', re.IGNORECASE)
MAX_SKILL_CHARS = 40

LOGO_SELECTORS = [
    'img[data-qa="company-logo"]',
    'img[class*="logo"]',
    'img[alt*="logo" i]',
]
PLACEHOLDER_IMAGE_RE = re.compile(r'placeholder|default|blank|avatar|spacer', re.IGNORECASE)

CAREER_LEVEL_LABEL_RE = re.compile(r'^\s*career\s+level\s*:?\s*$', re.IGNORECASE)
SALARY_LABEL_RE = re.compile(r'^\s*salary\s*:?\s*$', re.IGNORECASE)

# Location candidates
LOCATION_SELECTORS = [
    '[data-qa="job-location"]',
    'span.css-5wys0k',
]
LOCATION_MIN_CHARS = 2
LOCATION_MAX_CHARS = 80
NON_LOCATION_PHRASES = (
    'other jobs', 'browse', 'apply', 'sign in', 'sign up', 'log in', 'login',
    'similar jobs', 'save', 'share', 'report', 'jobs in',
)
LOCATION_NOISE_RE = re.compile(r'\s*\b(?:Posted|Viewed|Block\w*)\b.*$', re.IGNORECASE)
POSTED_MARKER_RE = re.compile(r'\bPosted\b|\bago\b')
DASH_SPLIT_RE = re.compile(r'\s+[-–—|]\s+|^\s*[-–—|]\s*|\s*[-–—|]\s*$')
TITLE_LOCATION_RE = re.compile(
    r'(?:(?!\s[-–—|]\s).)*\bin\s+((?:(?!\s[-–—|]\s).)+?)\s+[-–—]\s.*\bApply\b',
    re.IGNORECASE
)
LOCATION_BRACKETS = set('{}[]<>')
META_LOCATION_KEYS = (
    ('locality', 'addressLocality'),
    ('region', 'addressRegion'),
    ('country-name', 'addressCountry'),
)
SKIPPED_TEXT_PARENTS = {'script', 'style', 'noscript', 'title', 'head', 'template', 'option'}
# How far above the company link to look for the header block
COMPANY_BLOCK_DEPTH = 3


@dataclass
class MatchRules:
    """Keyword rules used when deciding whether a text fragment is a location."""
    location_keywords: Tuple[str, ...] = ('remote', 'hybrid')
    case_sensitive: bool = False

    def has_location_keyword(self, text: str) -> bool:
        if not text:
            return False
        haystack = text if self.case_sensitive else text.lower()
        for keyword in self.location_keywords:
            needle = keyword if self.case_sensitive else keyword.lower()
            if re.search(rf'\b{re.escape(needle)}\b', haystack):
                return True
        return False


def _text(el: Optional[Tag]) -> str:
    if el is None:
        return ''
    return WHITESPACE_RE.sub(' ', el.get_text(' ', strip=True)).strip()


def _href_path(href: Optional[str]) -> str:
    if not href:
        return ''
    try:
        return urlparse(href.replace('&amp;', '&')).path
    except ValueError:
        return ''


def _text_nodes(soup: BeautifulSoup, skip_parents: Iterable[str] = ()) -> Iterable[str]:
    skipped = SKIPPED_TEXT_PARENTS | set(skip_parents)
    for node in soup.find_all(string=True):
        parent = node.parent
        if parent is None or parent.name in skipped:
            continue
        text = WHITESPACE_RE.sub(' ', str(node)).strip()
        if text:
            yield text


def _value_after_label(soup: BeautifulSoup, label_re: re.Pattern) -> Optional[str]:
    """Text of the element following a label such as "Salary:"."""
    for label in soup.find_all(string=label_re):
        el = label.parent
        if el is None:
            continue
        sibling = el.find_next_sibling()
        value = _text(sibling)
        if value:
            return value
        # Label and value share a parent: "<div><span>Salary:</span> 5,000 EGP</div>"
        parent_text = _text(el.parent)
        remainder = parent_text.replace(_text(el), '', 1).strip(' :')
        if remainder:
            return remainder
    return None


def _dedupe_ci(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        key = value.lower()
        if value and key not in seen:
            seen.add(key)
            result.append(value)
    return result


def _careers_links(soup: BeautifulSoup) -> List[Tag]:
    return [a for a in soup.find_all('a', href=True) if COMPANY_CAREERS_RE.search(a['href'])]


def _company_link(soup: BeautifulSoup) -> Optional[Tag]:
    """The posting's own company link. Later careers links belong to similar-job cards."""
    links = _careers_links(soup)
    return links[0] if links else None


# -- title -------------------------------------------------------------------

def title_from_selectors(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for selector in TITLE_SELECTORS:
        for el in ctx.soup.select(selector):
            title = _text(el)
            if title:
                return FieldCandidate(title, source='dom', raw_snippet=selector)
    return None


def title_from_first_heading(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    heading = ctx.soup.find('h1') or ctx.soup.find('h2')
    title = _text(heading)
    return FieldCandidate(title, source='heuristic', raw_snippet=heading.name) if title else None


# -- company -----------------------------------------------------------------

def company_from_careers_link(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    link = _company_link(ctx.soup)
    if link is None:
        return None
    name = _text(link).rstrip(' -–—').strip()
    if 2 <= len(name) < 100:
        return FieldCandidate(name, source='dom', raw_snippet=link['href'][:200])
    return None


def company_from_selectors(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for selector in COMPANY_SELECTORS:
        el = ctx.soup.select_one(selector)
        name = _text(el).rstrip(' -').strip()
        if 2 <= len(name) < 100:
            return FieldCandidate(name, source='heuristic', raw_snippet=selector)
    return None


# -- location ----------------------------------------------------------------

def accept_location(text: Optional[str]) -> Optional[str]:
    """Apply the shared location shape checks. Returns the trimmed location or None."""
    if not text:
        return None
    value = WHITESPACE_RE.sub(' ', text).strip(' ,-|–—')
    if not LOCATION_MIN_CHARS <= len(value) <= LOCATION_MAX_CHARS:
        return None
    if LOCATION_BRACKETS & set(value):
        return None
    lowered = value.lower()
    if any(phrase in lowered for phrase in NON_LOCATION_PHRASES):
        return None
    if not is_valid_text(value):
        return None
    return value


def _holds_careers_link(el: Tag) -> bool:
    if el.name == 'a' and COMPANY_CAREERS_RE.search(el.get('href', '')):
        return True
    return bool(_careers_links(el))


def _company_adjacent_text(soup: BeautifulSoup) -> Optional[str]:
    """
    Text next to the posting's company link, with the company name removed.

    Only the first careers link belongs to the posting; later ones sit in
    similar-job cards for other companies and are never read. The walk goes
    up at most COMPANY_BLOCK_DEPTH levels and stops at any block that holds
    another careers link.
    """
    link = _company_link(soup)
    if link is None:
        return None
    name = _text(link)

    node = link
    for _ in range(COMPANY_BLOCK_DEPTH):
        node = node.parent
        if node is None or node.name in ('body', 'html', '[document]'):
            return None
        if any(other is not link for other in _careers_links(node)):
            return None

        text = _text(node)
        if name:
            text = text.replace(name, '', 1)
        if text.strip(' -–—|'):
            return LOCATION_NOISE_RE.sub('', text).strip() or None

        # Header block holds nothing but the link: "<div><a>Acme -</a></div><span>Cairo</span>"
        sibling = node.find_next_sibling()
        if sibling is not None and not _holds_careers_link(sibling):
            text = LOCATION_NOISE_RE.sub('', _text(sibling)).strip()
            if text:
                return text
    return None


def location_from_metadata(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    parts = []
    for meta_key, itemprop in META_LOCATION_KEYS:
        el = (
            ctx.soup.find('meta', attrs={'property': f'og:{meta_key}'})
            or ctx.soup.find('meta', attrs={'name': meta_key})
            or ctx.soup.find(attrs={'itemprop': itemprop})
        )
        if el is None:
            continue
        parts.append(el.get('content') or _text(el))
    location = accept_location(', '.join(dedupe_parts(parts)))
    return FieldCandidate(location, source='meta') if location else None


def location_from_selectors(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for selector in LOCATION_SELECTORS:
        location = accept_location(_text(ctx.soup.select_one(selector)))
        if location:
            return FieldCandidate(location, source='dom', raw_snippet=selector)
    return None


def location_from_page_title(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    if ctx.soup.title is None:
        return None
    match = TITLE_LOCATION_RE.match(_text(ctx.soup.title))
    location = accept_location(match.group(1)) if match else None
    return FieldCandidate(location, source='meta', raw_snippet=match.group(0)[:200]) if location else None


def location_near_company(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    text = _company_adjacent_text(ctx.soup)
    if not text:
        return None
    for segment in DASH_SPLIT_RE.split(text):
        if ',' in segment or rules.has_location_keyword(segment):
            location = accept_location(segment)
            if location:
                return FieldCandidate(location, source='dom', raw_snippet=text[:200])
    return None


def location_from_text_nodes(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for text in _text_nodes(ctx.soup, skip_parents=('h1', 'h2', 'h3')):
        if len(text) > LOCATION_MAX_CHARS:
            continue
        if POSTED_MARKER_RE.search(text):
            continue
        if ',' in text or rules.has_location_keyword(text):
            location = accept_location(text)
            if location:
                return FieldCandidate(location, source='heuristic', raw_snippet=text)
    return None


def location_dash_suffix(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    text = _company_adjacent_text(ctx.soup)
    if not text:
        return None
    segments = [s for s in DASH_SPLIT_RE.split(text) if s and s.strip()]
    if not segments:
        return None
    location = accept_location(segments[-1])
    return FieldCandidate(location, source='heuristic', raw_snippet=text[:200]) if location else None


# -- salary ------------------------------------------------------------------

def salary_from_selectors(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for selector in SALARY_SELECTORS:
        salary = _text(ctx.soup.select_one(selector))
        if salary:
            return FieldCandidate(salary, source='dom', raw_snippet=selector)
    return None


def salary_from_label(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    salary = _value_after_label(ctx.soup, SALARY_LABEL_RE)
    return FieldCandidate(salary, source='heuristic') if salary else None


def salary_from_pattern(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for text in _text_nodes(ctx.soup):
        match = SALARY_PATTERN_RE.search(text)
        if match:
            return FieldCandidate(match.group(0), source='regex', raw_snippet=text[:200])
    return None


# -- job type ----------------------------------------------------------------

def job_type_from_links(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    labels = []
    for link in ctx.soup.find_all('a', href=True):
        label = job_type_label_for_href(_href_path(link['href']))
        if label and label not in labels:
            labels.append(label)
    return FieldCandidate(' / '.join(labels), source='dom') if labels else None


def job_type_from_text(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    canonical = {label.lower(): label for label in JOB_TYPE_LABELS}
    labels = []
    for text in _text_nodes(ctx.soup):
        label = canonical.get(text.lower())
        if label and label not in labels:
            labels.append(label)
    return FieldCandidate(' / '.join(labels), source='heuristic') if labels else None


# -- job categories ----------------------------------------------------------

def categories_from_links(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    categories = []
    for link in ctx.soup.find_all('a', href=True):
        path = _href_path(link['href'])
        if not CATEGORY_PATH_RE.search(path):
            continue
        if job_type_label_for_href(path) or career_level_label_for_href(path):
            continue
        text = _text(link).strip(' ,-')
        if text and text not in categories and is_valid_text(text):
            categories.append(text)
    return FieldCandidate(categories, source='dom') if categories else None


# -- career level ------------------------------------------------------------

def career_level_from_links(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for link in ctx.soup.find_all('a', href=True):
        label = career_level_label_for_href(_href_path(link['href']))
        if not label:
            continue
        text = _text(link)
        level = text if 0 < len(text) < 50 else label
        return FieldCandidate(level, source='dom', raw_snippet=link['href'][:200])
    return None


def career_level_from_text(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    level = _value_after_label(ctx.soup, CAREER_LEVEL_LABEL_RE)
    if not level:
        level = _text(ctx.soup.select_one('span[class*="career"]'))
    if level and len(level) < 50:
        return FieldCandidate(level, source='heuristic')
    return None


# -- skills ------------------------------------------------------------------

def skills_from_tags(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    skills = []
    for selector in SKILL_SELECTORS:
        skills.extend(_text(el) for el in ctx.soup.select(selector))
    skills = _dedupe_ci(s for s in skills if s and is_valid_text(s))
    return FieldCandidate(skills, source='dom') if skills else None


def skills_under_heading(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for label in ctx.soup.find_all(string=SKILLS_HEADING_RE):
        heading = label.parent
        if heading is None or heading.parent is None:
            continue
        heading_text = _text(heading).lower().strip(' :')
        container = heading.find_next_sibling() or heading.parent
        skills = []
        for el in container.find_all(['a', 'span', 'li']):
            if el is heading or heading in el.parents:
                continue
            # Only the innermost element carries the skill text
            if el.find(['a', 'span', 'li']):
                continue
            text = _text(el)
            if not text or len(text) > MAX_SKILL_CHARS:
                continue
            if text.lower().strip(' :') == heading_text:
                continue
            if is_valid_text(text):
                skills.append(text)
        skills = _dedupe_ci(skills)
        if skills:
            return FieldCandidate(skills, source='heuristic', raw_snippet=heading_text)
    return None


# -- date posted -------------------------------------------------------------

def date_from_markers(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for selector in DATE_SELECTORS:
        for el in ctx.soup.select(selector):
            text = _text(el)
            relative = RELATIVE_DATE_RE.search(text)
            if relative:
                return FieldCandidate(relative.group(0), source='dom', raw_snippet=text[:200])
            if el.name == 'time' and el.get('datetime'):
                return FieldCandidate(el['datetime'].strip(), source='dom', raw_snippet=str(el)[:200])
    return None


def date_from_relative_phrase(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for text in _text_nodes(ctx.soup):
        match = RELATIVE_DATE_RE.search(text)
        if match:
            return FieldCandidate(match.group(0), source='regex', raw_snippet=text[:200])
    return None


# -- company logo ------------------------------------------------------------

def _image_url(img: Tag, base: str) -> Optional[str]:
    candidates = [img.get('src'), img.get('data-src')]
    srcset = img.get('srcset') or img.get('data-srcset')
    if srcset:
        candidates.append(srcset.split(',')[0].strip().split(' ')[0])
    for candidate in candidates:
        url = normalize_url(candidate, base)
        if url:
            return url
    return None


def logo_from_image(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    for selector in LOGO_SELECTORS:
        for img in ctx.soup.select(selector):
            url = _image_url(img, ctx.url)
            if url:
                return FieldCandidate(url, source='dom', raw_snippet=selector)
    return None


def logo_from_company_link(ctx: ExtractionContext, rules: MatchRules) -> Optional[FieldCandidate]:
    link = _company_link(ctx.soup)
    if link is None:
        return None
    for img in link.find_all('img'):
        url = _image_url(img, ctx.url)
        if url and not PLACEHOLDER_IMAGE_RE.search(url):
            return FieldCandidate(url, source='heuristic', raw_snippet=link['href'][:200])
    return None


Strategy = Callable[[ExtractionContext, MatchRules], Optional[FieldCandidate]]


def _has_items(value) -> bool:
    return bool(value)


def _is_url(value) -> bool:
    return isinstance(value, str) and value.startswith(('http://', 'https://'))


class HeuristicExtractor:
    """Runs the per-field fallback chains."""

    FIELD_STRATEGIES: Dict[str, List[Strategy]] = {
        'title': [title_from_selectors, title_from_first_heading],
        'company': [company_from_careers_link, company_from_selectors],
        'company_logo': [logo_from_image, logo_from_company_link],
        'location': [
            location_from_metadata,
            location_from_selectors,
            location_from_page_title,
            location_near_company,
            location_from_text_nodes,
            location_dash_suffix,
        ],
        'salary': [salary_from_selectors, salary_from_label, salary_from_pattern],
        'job_type': [job_type_from_links, job_type_from_text],
        'job_categories': [categories_from_links],
        'career_level': [career_level_from_links, career_level_from_text],
        'date_posted': [date_from_markers, date_from_relative_phrase],
        'skills': [skills_from_tags, skills_under_heading],
        'description_html': [description_from_container, description_from_blocks],
    }

    FIELD_VALIDATORS: Dict[str, Callable] = {
        'company_logo': _is_url,
        'job_categories': _has_items,
        'skills': _has_items,
        'description_html': _has_items,
    }

    def __init__(self, rules: Optional[MatchRules] = None):
        self.rules = rules or MatchRules()

    def validate(self, field_name: str, value) -> bool:
        validator = self.FIELD_VALIDATORS.get(field_name, is_valid_text)
        return validator(value)

    def extract_field(self, field_name: str, ctx: ExtractionContext) -> Optional[FieldCandidate]:
        """First candidate from the field's chain that passes validation."""
        for strategy in self.FIELD_STRATEGIES.get(field_name, []):
            candidate = strategy(ctx, self.rules)
            if candidate is None or not candidate.is_valid():
                continue
            if not self.validate(field_name, candidate.value):
                logger.debug(f"[heuristics] {strategy.__name__} rejected for {field_name}: {str(candidate.value)[:80]!r}")
                continue
            return candidate
        logger.debug(f"[heuristics] No candidate for {field_name} on {ctx.url}")
        return None

    def extract(self, ctx: ExtractionContext, skip: Iterable[str] = ()) -> Dict[str, FieldCandidate]:
        """Run every chain except the fields listed in ``skip``."""
        skipped = set(skip)
        fields = {}
        for field_name in self.FIELD_STRATEGIES:
            if field_name in skipped:
                continue
            candidate = self.extract_field(field_name, ctx)
            if candidate is not None:
                fields[field_name] = candidate
        return fields
