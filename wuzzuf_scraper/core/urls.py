"""
URL normalization and search-URL construction for wuzzuf.net.
"""

import logging
from typing import Optional
from urllib.parse import quote, urljoin, urlparse, urlunparse

logger = logging.getLogger(__name__)

SITE_ORIGIN = 'https://wuzzuf.net'
SEARCH_PATH = '/search/jobs/'

# Path segment shared by every job-detail page
JOB_DETAIL_SEGMENT = '/jobs/p/'

BLOCKED_SCHEMES = ('data:', 'javascript:', 'mailto:', 'tel:')


def to_absolute(href: Optional[str], base: str = SITE_ORIGIN) -> Optional[str]:
    """Resolve ``href`` against ``base`` keeping query and fragment. None when unusable."""
    if not href:
        return None
    href = href.replace('&amp;', '&').strip()
    if not href or href.lower().startswith(BLOCKED_SCHEMES):
        return None
    try:
        absolute = urljoin(base, href)
        parsed = urlparse(absolute)
    except ValueError as e:
        logger.debug(f"[urls] Unparseable URL {href!r}: {e}")
        return None
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        return None
    return absolute


def normalize_url(raw: Optional[str], base: str = SITE_ORIGIN) -> Optional[str]:
    """
    Normalize a URL for deduplication.

    - Decodes HTML-escaped ampersands
    - Resolves relative references against ``base``
    - Strips query string and fragment
    - Rejects data: URIs and unparseable strings
    """
    absolute = to_absolute(raw, base)
    if absolute is None:
        return None
    parsed = urlparse(absolute)
    return urlunparse((parsed.scheme, parsed.netloc, parsed.path, parsed.params, '', ''))


def _encode(value: str) -> str:
    return quote(str(value).strip(), safe='')


def build_search_url(
    keyword: str = '',
    location: str = '',
    category: str = '',
    career_level: str = '',
    job_type: str = '',
) -> str:
    """Build the search-results URL for the given filters."""
    base = f"{SITE_ORIGIN}{SEARCH_PATH}"
    params = []
    if keyword and keyword.strip():
        params.append(f"q={_encode(keyword)}")
    if location and location.strip():
        params.append(f"a0=Location&l0=0&l1=2&l2=4&filters[location][0]={_encode(location)}")
    if category and category.strip():
        params.append(f"filters[categories][0]={_encode(category)}")
    if career_level and career_level.strip():
        params.append(f"filters[career_level][0]={_encode(career_level)}")
    if job_type and job_type.strip():
        params.append(f"filters[job_type][0]={_encode(job_type)}")
    return f"{base}?{'&'.join(params)}" if params else base
