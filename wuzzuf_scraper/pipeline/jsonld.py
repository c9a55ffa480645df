"""
JSON-LD extractor.

Extracts job fields from an embedded Schema.org JobPosting block.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from .fields import FieldCandidate
from .labels import employment_type_label

logger = logging.getLogger(__name__)

SOURCE = 'jsonld'


def dedupe_parts(parts: List[Any]) -> List[str]:
    """Drop empty and case-insensitively repeated location parts, keeping order."""
    seen = set()
    result = []
    for part in parts:
        if part is None:
            continue
        text = str(part).strip()
        if not text or text.lower() in seen:
            continue
        seen.add(text.lower())
        result.append(text)
    return result


def _name_of(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get('name') or value.get('legalName')
    if isinstance(value, str):
        return value
    return None


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int):
        return f"{value:,}"
    return str(value).strip()


class JSONLDExtractor:
    """Extracts job data from JSON-LD structured data."""

    def find_job_posting(self, soup: BeautifulSoup) -> Optional[Dict]:
        """Return the first JobPosting item embedded in the page, if any."""
        for script in soup.find_all('script', type='application/ld+json'):
            raw = script.string or script.get_text()
            if not raw or not raw.strip():
                continue
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, TypeError) as e:
                logger.debug(f"[jsonld] Failed to parse JSON-LD: {e}")
                continue

            for item in self._flatten_jsonld(data):
                if self._is_job_posting(item):
                    return item
        return None

    def extract(self, soup: BeautifulSoup, url: str) -> Dict[str, FieldCandidate]:
        """
        Extract job fields from JSON-LD.

        Returns:
            Dictionary mapping field names to FieldCandidate objects
        """
        job_data = self.find_job_posting(soup)
        if job_data is None:
            return {}
        try:
            return self._extract_job_posting(job_data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"[jsonld] Malformed JobPosting on {url}: {e}")
            return {}

    def _flatten_jsonld(self, data: Any) -> List[Dict]:
        """Flatten JSON-LD structure to list of items."""
        items = []

        if isinstance(data, dict):
            if self._is_job_posting(data):
                items.append(data)
            elif '@graph' in data and isinstance(data['@graph'], list):
                items.extend([item for item in data['@graph'] if isinstance(item, dict)])
            elif 'itemListElement' in data and isinstance(data['itemListElement'], list):
                for element in data['itemListElement']:
                    if isinstance(element, dict) and isinstance(element.get('item'), dict):
                        items.append(element['item'])
        elif isinstance(data, list):
            for item in data:
                items.extend(self._flatten_jsonld(item))

        return items

    def _is_job_posting(self, item: Dict) -> bool:
        """Check if JSON-LD item is a JobPosting."""
        item_type = item.get('@type') or item.get('type') or ''
        if isinstance(item_type, str):
            return item_type == 'JobPosting'
        if isinstance(item_type, list):
            return 'JobPosting' in item_type
        return False

    def _candidate(self, value: Any) -> FieldCandidate:
        return FieldCandidate(value=value, source=SOURCE, raw_snippet=str(value)[:200])

    def _extract_job_posting(self, job_data: Dict) -> Dict[str, FieldCandidate]:
        """Extract fields from JobPosting JSON-LD."""
        fields = {}

        title = job_data.get('title') or job_data.get('name')
        if title:
            fields['title'] = self._candidate(str(title).strip())

        org = job_data.get('hiringOrganization')
        company = _name_of(org)
        if company:
            fields['company'] = self._candidate(str(company).strip())
        if isinstance(org, dict):
            logo = org.get('logo')
            if isinstance(logo, dict):
                logo = logo.get('url') or logo.get('contentUrl')
            if isinstance(logo, str) and logo.strip():
                fields['company_logo'] = self._candidate(logo.strip())

        if job_data.get('datePosted'):
            fields['date_posted'] = self._candidate(str(job_data['datePosted']).strip())

        if job_data.get('description'):
            fields['description_html'] = self._candidate(str(job_data['description']).strip())

        location = self._location(job_data)
        if location:
            fields['location'] = self._candidate(location)

        salary = self._salary(job_data.get('baseSalary'))
        if salary:
            fields['salary'] = self._candidate(salary)

        job_type = self._employment_type(job_data.get('employmentType'))
        if job_type:
            fields['job_type'] = self._candidate(job_type)

        return fields

    def _location(self, job_data: Dict) -> Optional[str]:
        loc = job_data.get('jobLocation')
        if isinstance(loc, list):
            loc = loc[0] if loc else None

        location = None
        if isinstance(loc, dict):
            addr = loc.get('address')
            if isinstance(addr, dict):
                parts = dedupe_parts([
                    addr.get('addressLocality'),
                    addr.get('addressRegion'),
                    _name_of(addr.get('addressCountry')),
                ])
                location = ', '.join(parts) if parts else None
            elif isinstance(addr, str):
                location = addr.strip()
            elif loc.get('name'):
                location = str(loc['name']).strip()
        elif isinstance(loc, str):
            location = loc.strip()

        if not location and str(job_data.get('jobLocationType', '')).upper() == 'TELECOMMUTE':
            location = 'Remote'
        return location or None

    def _salary(self, base_salary: Any) -> Optional[str]:
        if base_salary is None or base_salary == '':
            return None
        if not isinstance(base_salary, dict):
            return _format_number(base_salary)

        currency = base_salary.get('currency')
        value = base_salary.get('value')
        unit = None
        if isinstance(value, dict):
            unit = value.get('unitText')
            if value.get('value') not in (None, ''):
                amount = _format_number(value['value'])
            elif value.get('minValue') not in (None, '') and value.get('maxValue') not in (None, ''):
                amount = f"{_format_number(value['minValue'])} - {_format_number(value['maxValue'])}"
            elif value.get('minValue') not in (None, ''):
                amount = _format_number(value['minValue'])
            else:
                return None
        elif value not in (None, ''):
            amount = _format_number(value)
        else:
            return None

        salary = f"{amount} {currency}" if currency else amount
        if unit:
            salary = f"{salary} per {str(unit).lower()}"
        return salary

    def _employment_type(self, value: Any) -> Optional[str]:
        if not value:
            return None
        values = value if isinstance(value, list) else [value]
        labels = dedupe_parts([employment_type_label(v) for v in values if v])
        return ' / '.join(labels) if labels else None
