"""
Canonical labels and the wuzzuf.net URL fragments that carry them.
"""

import re

# (URL fragment, canonical label) in the order they are reported
JOB_TYPE_FRAGMENTS = (
    ('full-time', 'Full Time'),
    ('part-time', 'Part Time'),
    ('freelance', 'Freelance'),
    ('remote', 'Remote'),
    ('internship', 'Internship'),
    ('work-from-home', 'Work From Home'),
    ('shift-based', 'Shift Based'),
)
JOB_TYPE_LABELS = tuple(label for _, label in JOB_TYPE_FRAGMENTS)

# schema.org employmentType values
EMPLOYMENT_TYPE_LABELS = {
    'FULL_TIME': 'Full Time',
    'PART_TIME': 'Part Time',
    'CONTRACTOR': 'Freelance',
    'TEMPORARY': 'Temporary',
    'INTERN': 'Internship',
    'VOLUNTEER': 'Volunteering',
    'PER_DIEM': 'Per Diem',
    'OTHER': 'Other',
}

CAREER_LEVEL_FRAGMENTS = (
    ('Entry-Level-Jobs', 'Entry Level'),
    ('Experienced-Jobs', 'Experienced (Non-Manager)'),
    ('Senior-Management-Jobs', 'Senior Management'),
    ('Manager-Jobs', 'Manager'),
    ('Student-Jobs', 'Student'),
)

CATEGORY_PATH_RE = re.compile(r'^/a/[^/?#]+-Jobs', re.IGNORECASE)
COMPANY_CAREERS_RE = re.compile(r'/jobs/careers/', re.IGNORECASE)


JOB_TYPE_PATTERNS = tuple(
    (re.compile(rf'/(?:a/)?{re.escape(fragment)}[\w-]*-jobs', re.IGNORECASE), label)
    for fragment, label in JOB_TYPE_FRAGMENTS
)


def job_type_label_for_href(href: str):
    """Canonical job-type label for a link target, or None."""
    for pattern, label in JOB_TYPE_PATTERNS:
        if pattern.search(href or ''):
            return label
    return None


def career_level_label_for_href(href: str):
    for fragment, label in CAREER_LEVEL_FRAGMENTS:
        if fragment.lower() in (href or '').lower():
            return label
    return None


def employment_type_label(value: str) -> str:
    key = str(value).strip().upper().replace('-', '_').replace(' ', '_')
    return EMPLOYMENT_TYPE_LABELS.get(key, str(value).strip())
