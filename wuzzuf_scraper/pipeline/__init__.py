"""
Detail-page extraction pipeline.

Structured data first, then per-field fallback chains, then sanitization and
validation gates in the record assembler.
"""

from .assembler import RecordAssembler
from .extractor import Extractor
from .fields import ExtractionContext, ExtractionResult, FieldCandidate
from .heuristics import HeuristicExtractor, MatchRules

__all__ = [
    'Extractor',
    'ExtractionContext',
    'ExtractionResult',
    'FieldCandidate',
    'HeuristicExtractor',
    'MatchRules',
    'RecordAssembler',
]
