"""
Field candidates and per-page extraction state.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

# Confidence scores by extraction method
CONFIDENCE_SCORES = {
    'jsonld': 0.90,
    'meta': 0.80,
    'dom': 0.70,
    'heuristic': 0.60,
    'regex': 0.50,
}


@dataclass(frozen=True)
class ExtractionContext:
    """A parsed detail page and the URL it was fetched from."""
    soup: BeautifulSoup
    url: str


class FieldCandidate:
    """Value produced by one extraction strategy, tagged with where it came from."""

    def __init__(self, value: Any = None, source: Optional[str] = None,
                 confidence: Optional[float] = None, raw_snippet: Optional[str] = None):
        self.value = value
        self.source = source
        if confidence is None:
            confidence = CONFIDENCE_SCORES.get(source or '', 0.0)
        self.confidence = confidence
        self.raw_snippet = raw_snippet

    def is_valid(self) -> bool:
        """Check if candidate has a usable value."""
        if self.value is None:
            return False
        if isinstance(self.value, str) and not self.value.strip():
            return False
        if isinstance(self.value, (list, tuple)) and len(self.value) == 0:
            return False
        return True

    def __repr__(self) -> str:
        return f"FieldCandidate({self.value!r}, source={self.source!r})"


class ExtractionResult:
    """Accepted candidates for one page. The first accepted candidate for a field wins."""

    def __init__(self, url: str):
        self.url = url
        self.fields: Dict[str, FieldCandidate] = {}

    def set_field(self, field_name: str, candidate: FieldCandidate) -> bool:
        """Accept ``candidate`` unless the field is already set. Returns True if accepted."""
        if self.has_field(field_name) or not candidate.is_valid():
            return False
        self.fields[field_name] = candidate
        return True

    def has_field(self, field_name: str) -> bool:
        candidate = self.fields.get(field_name)
        return candidate is not None and candidate.is_valid()

    def get_field(self, field_name: str) -> Optional[FieldCandidate]:
        return self.fields.get(field_name)

    def value(self, field_name: str, default: Any = None) -> Any:
        candidate = self.fields.get(field_name)
        return candidate.value if candidate is not None else default

    def quality(self) -> Dict[str, bool]:
        """Which of the fields that matter most were found."""
        return {
            'title': self.has_field('title'),
            'company': self.has_field('company'),
            'location': self.has_field('location'),
            'description': self.has_field('description_html'),
            'date_posted': self.has_field('date_posted'),
        }
