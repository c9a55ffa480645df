"""
Job-link discovery and pagination on search-result pages.
"""

import logging
import re
from typing import Collection, List, Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from bs4 import BeautifulSoup

from ..core.urls import JOB_DETAIL_SEGMENT, normalize_url, to_absolute

logger = logging.getLogger(__name__)

# Wuzzuf shows 15 jobs per search page
PAGE_SIZE = 15

# Markup variants where the job title heading wraps the detail link
SECONDARY_LINK_SELECTORS = [
    'h2 a[href]',
    '[class*="job-card"] a[href]',
    '[data-qa="job-title"] a[href]',
]
EXCLUDED_PATH_RE = re.compile(r'/jobs/careers/|/search/|/a/', re.IGNORECASE)

NEXT_PAGE_SELECTORS = [
    'a[aria-label="Next"]',
    'a[rel="next"]',
    'link[rel="next"]',
    'li.next a',
    'a.next',
]
NEXT_PAGE_TEXTS = {'›', '»', 'next', 'next ›', 'next »'}


def _is_link_target(href: Optional[str]) -> bool:
    if not href:
        return False
    href = href.strip()
    return bool(href) and not href.startswith('#') and 'javascript:' not in href.lower()


def find_job_links(soup: BeautifulSoup, base_url: str, exclude: Optional[Collection[str]] = None) -> List[str]:
    """
    Absolute, normalized job-detail URLs on a search page, in page order.

    Links in ``exclude`` (already enqueued or processed) are left out.
    """
    exclude = exclude or ()
    links: List[str] = []

    def add(href: Optional[str]):
        if not _is_link_target(href):
            return
        url = normalize_url(href, base_url)
        if url and url not in exclude and url not in links:
            links.append(url)

    for a in soup.select(f'a[href*="{JOB_DETAIL_SEGMENT}"]'):
        add(a.get('href'))

    for selector in SECONDARY_LINK_SELECTORS:
        for a in soup.select(selector):
            href = a.get('href')
            path = urlparse(href or '').path
            if '/jobs/' in path and not EXCLUDED_PATH_RE.search(path):
                add(href)

    return links


def _explicit_next_link(soup: BeautifulSoup, base_url: str) -> Optional[str]:
    for selector in NEXT_PAGE_SELECTORS:
        el = soup.select_one(selector)
        if el is not None and _is_link_target(el.get('href')):
            return to_absolute(el['href'], base_url)

    for a in soup.find_all('a', href=True):
        if a.get_text(strip=True).lower() in NEXT_PAGE_TEXTS and _is_link_target(a['href']):
            return to_absolute(a['href'], base_url)
    return None


def build_next_page_url(base_url: str) -> str:
    """Advance the ``start`` query parameter of ``base_url`` by one page of results."""
    parsed = urlparse(base_url)
    params = parse_qsl(parsed.query, keep_blank_values=True)
    current = 0
    for key, value in params:
        if key == 'start':
            try:
                current = int(value)
            except ValueError:
                current = 0
    params = [(key, value) for key, value in params if key != 'start']
    params.append(('start', str(current + PAGE_SIZE)))
    query = urlencode(params, safe='[]')
    return urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, query, ''))


def find_next_page_url(soup: BeautifulSoup, base_url: str, current_page: int) -> Optional[str]:
    """
    URL of the next search page.

    An explicit "next" control wins; otherwise the next URL is built by
    advancing the ``start`` parameter.
    """
    explicit = _explicit_next_link(soup, base_url)
    if explicit and explicit != base_url:
        logger.debug(f"[links] Next-page control on page {current_page}: {explicit}")
        return explicit
    return build_next_page_url(base_url)
