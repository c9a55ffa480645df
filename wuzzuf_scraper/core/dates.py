"""
Posting-date parsing and the max-age filter.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

RELATIVE_DATE_RE = re.compile(r'(\d+)\s*(minute|hour|day|week|month)s?\s*ago', re.IGNORECASE)

MAX_AGE_ALL = 'all'

# Accepted max-age values and their thresholds in days
MAX_AGE_DAYS = {
    '7 days': 7,
    '30 days': 30,
    '90 days': 90,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def parse_relative_or_absolute(text: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a posting date such as "3 hours ago", "2 weeks ago" or "2025-01-15".

    Relative phrases are resolved against ``now`` (UTC). Absolute dates
    without a timezone are taken as UTC. Returns None when unparseable.
    """
    if not text:
        return None
    now = now or _now()

    match = RELATIVE_DATE_RE.search(text)
    if match:
        amount = int(match.group(1))
        unit = match.group(2).lower()
        if unit == 'minute':
            return now - timedelta(minutes=amount)
        if unit == 'hour':
            return now - timedelta(hours=amount)
        if unit == 'day':
            return now - timedelta(days=amount)
        if unit == 'week':
            return now - timedelta(days=amount * 7)
        return now - relativedelta(months=amount)

    try:
        parsed = date_parser.parse(text.strip())
    except (ValueError, OverflowError, TypeError) as e:
        logger.debug(f"[dates] Could not parse date {text!r}: {e}")
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_within_age_limit(date_posted: Optional[str], max_age: Optional[str], now: Optional[datetime] = None) -> bool:
    """
    Decide whether a posting passes the configured max age.

    "all" always passes. Any other value needs a parseable date; the known
    thresholds (7, 30, 90 days) are enforced and unknown values pass every
    dated posting.
    """
    if not max_age or max_age == MAX_AGE_ALL:
        return True
    if not date_posted:
        return False

    now = now or _now()
    posted_at = parse_relative_or_absolute(date_posted, now=now)
    if posted_at is None:
        return False

    threshold = MAX_AGE_DAYS.get(max_age)
    if threshold is None:
        return True

    age_in_days = (now - posted_at).total_seconds() / 86400
    return age_in_days <= threshold
