"""
Saju Interpretation Engine

This package turns an already-computed saju classification (a pattern name
plus boolean factors) into a display-ready interpretation. Each layer
communicates only through explicit contracts, never through shared mutable
state.

LAYER STRUCTURE:
================

1. KNOWLEDGE LAYER (knowledge/)
   - Responsibility: Load the interpretation document once, type it
   - Allowed inputs: The JSON knowledge base on disk
   - Outputs: KnowledgeBase (immutable, process-wide)
   - MUST NOT: Be re-read per request or mutated after load

2. RESOLUTION LAYER (resolution/)
   - Responsibility: Select the first combination whose factor
     constraints are satisfied
   - Allowed inputs: KnowledgeBase, Classification
   - Outputs: ContentPayload or NotFound
   - MUST NOT: Touch display concerns

3. NORMALIZATION LAYER (normalization/)
   - Responsibility: Convert payload attributes into ordered sections,
     mask technical terms in every leaf string
   - Allowed inputs: ContentPayload
   - Outputs: UserAnalysisView
   - MUST NOT: Re-query the knowledge base

4. VIEW ASSEMBLY (engine.py)
   - Responsibility: Resolution then normalization, single entry point
   - Outputs: UserAnalysisView or NotFound

5. OBSERVABILITY (observability/) and API (api/)
   - Logging, counters, and the HTTP seam for the presentation layer

CONSTRAINTS ENFORCED:
=====================
- Immutability-first: All contract types are frozen
- Deterministic: Identical inputs always produce identical outputs
- Explicit outcomes: NotFound is data with a reason, never an exception
- Graceful degradation: malformed content renders as empty, never fails
"""

from .contracts.base import Classification, NotFound, NotFoundReason
from .contracts.view import AnalysisSection, UserAnalysisView
from .engine import EngineConfig, InterpretationEngine, get_analysis_view
from .knowledge import KnowledgeBase, KnowledgeBaseLoadError, load_knowledge_base

__all__ = [
    'Classification', 'NotFound', 'NotFoundReason',
    'AnalysisSection', 'UserAnalysisView',
    'EngineConfig', 'InterpretationEngine', 'get_analysis_view',
    'KnowledgeBase', 'KnowledgeBaseLoadError', 'load_knowledge_base',
]
