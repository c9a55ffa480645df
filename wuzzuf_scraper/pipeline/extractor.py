"""
Main extraction orchestrator.

Implements a two-stage extraction pipeline with deterministic fallbacks:
1. JSON-LD JobPosting block (fields taken directly)
2. Per-field fallback chains (meta tags, DOM selectors, label heuristics, regex)
   for every field the structured data left unset

No stage performs I/O; everything runs against the already-parsed page.
"""

import logging
from typing import Optional

from ..core.text_sanitizer import clean_html_text
from .description import clean_description_html
from .fields import ExtractionContext, ExtractionResult, FieldCandidate
from .heuristics import HeuristicExtractor, MatchRules
from .jsonld import JSONLDExtractor

logger = logging.getLogger(__name__)


class Extractor:
    """Builds an ExtractionResult for one detail page."""

    def __init__(self, rules: Optional[MatchRules] = None):
        self.jsonld_extractor = JSONLDExtractor()
        self.heuristic_extractor = HeuristicExtractor(rules)

    def extract(self, ctx: ExtractionContext) -> ExtractionResult:
        result = ExtractionResult(ctx.url)

        # Stage 1: JSON-LD
        jsonld_fields = self.jsonld_extractor.extract(ctx.soup, ctx.url)
        for field_name, candidate in jsonld_fields.items():
            result.set_field(field_name, candidate)
        if result.has_field('title'):
            logger.info(f"[extractor] Extracted JSON-LD data: {result.value('title')}")
        else:
            logger.info(f"[extractor] No JSON-LD title on {ctx.url}, using HTML extraction")

        # Stage 2: fallback chains for whatever is still missing
        filled = [name for name in self.heuristic_extractor.FIELD_STRATEGIES if result.has_field(name)]
        for field_name, candidate in self.heuristic_extractor.extract(ctx, skip=filled).items():
            result.set_field(field_name, candidate)

        self._finish_description(result)
        logger.debug(f"[extractor] Extraction quality for {ctx.url}: {result.quality()}")
        return result

    def _finish_description(self, result: ExtractionResult):
        """Clean the description markup and derive its plain-text rendering."""
        candidate = result.get_field('description_html')
        if candidate is None:
            return
        cleaned = clean_description_html(candidate.value)
        if not cleaned:
            del result.fields['description_html']
            return
        candidate.value = cleaned
        text = clean_html_text(cleaned)
        if text:
            result.set_field('description_text', FieldCandidate(text, source=candidate.source))
