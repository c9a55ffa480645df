"""
Record assembler.

Turns an ExtractionResult into a JobRecord: sanitizes every text field,
applies the salary sentinel and runs the final validation gates.
"""

import logging
from typing import Iterable, List, Optional

from ..core.dates import is_within_age_limit
from ..core.text_sanitizer import is_valid_text, sanitize
from ..core.urls import normalize_url
from ..models import NOT_DISCLOSED, JobRecord
from .fields import ExtractionResult

logger = logging.getLogger(__name__)


def _sanitize_list(values: Optional[Iterable[str]], case_insensitive: bool = False) -> List[str]:
    seen = set()
    cleaned = []
    for value in values or []:
        text = sanitize(value)
        if not text:
            continue
        key = text.lower() if case_insensitive else text
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(text)
    return cleaned


class RecordAssembler:
    """Merges extractor output into a JobRecord and decides whether it is kept."""

    def __init__(self, max_job_age: str = 'all'):
        self.max_job_age = max_job_age

    def assemble(self, result: ExtractionResult) -> Optional[JobRecord]:
        """
        Build the output record for a detail page.

        Returns None when the record is discarded by one of the gates:
        1. title fails validation
        2. company present but fails validation
        3. title empty after sanitization
        4. posting older than the configured max age
        """
        url = result.url
        title = sanitize(result.value('title'))
        company = sanitize(result.value('company'))

        if not is_valid_text(title):
            logger.warning(f"[assembler] Discarding {url}: invalid title {str(result.value('title'))[:80]!r}")
            return None
        if company is not None and not is_valid_text(company):
            logger.warning(f"[assembler] Discarding job {title!r} ({url}): invalid company {company[:80]!r}")
            return None
        if not title:
            logger.warning(f"[assembler] Discarding {url}: empty title")
            return None

        date_posted = sanitize(result.value('date_posted'))
        if not is_within_age_limit(date_posted, self.max_job_age):
            logger.info(f"[assembler] Skipping job {title!r} - posted {date_posted} (outside age limit: {self.max_job_age})")
            return None

        record = JobRecord(
            title=title,
            company=company,
            company_logo=normalize_url(result.value('company_logo'), url),
            location=sanitize(result.value('location')),
            salary=sanitize(result.value('salary')) or NOT_DISCLOSED,
            job_type=sanitize(result.value('job_type')),
            job_categories=_sanitize_list(result.value('job_categories')),
            career_level=sanitize(result.value('career_level')),
            date_posted=date_posted,
            skills=_sanitize_list(result.value('skills'), case_insensitive=True),
            description_html=result.value('description_html'),
            description_text=result.value('description_text'),
            url=url,
        )

        if not record.company:
            logger.warning(f"[assembler] Missing company name for job: {record.title}")
        if not record.description_html:
            logger.warning(f"[assembler] Missing description for job: {record.title}")
        return record
