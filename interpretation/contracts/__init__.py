"""
Contracts Module

This module defines the explicit interfaces and data transfer objects
that form the contracts between layers. All inter-layer communication
MUST use these contracts.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. Outcomes that are not errors (NotFound) are values, not exceptions
3. Recognized knowledge-base vocabulary is enumerated in one place
"""

from .base import (
    Classification, Error, ErrorCode, NotFound, NotFoundReason,
)
from .knowledge import (
    Combination, ContentPayload, FactorKey, PatternGroup, Predicate,
    SectionKey, PAYLOAD_FIELD, COMPONENTS_FIELD, COMBINATIONS_FIELD,
    CORE_FACT_FIELD, ATTRIBUTES_FIELD,
)
from .view import AnalysisSection, UserAnalysisView

__all__ = [
    'Classification', 'Error', 'ErrorCode', 'NotFound', 'NotFoundReason',
    'Combination', 'ContentPayload', 'FactorKey', 'PatternGroup', 'Predicate',
    'SectionKey', 'PAYLOAD_FIELD', 'COMPONENTS_FIELD', 'COMBINATIONS_FIELD',
    'CORE_FACT_FIELD', 'ATTRIBUTES_FIELD',
    'AnalysisSection', 'UserAnalysisView',
]
