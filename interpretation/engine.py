"""
Engine Orchestration Module

This module provides the single entry point the presentation layer
calls: classification in, display-ready view (or NotFound) out.

DESIGN PRINCIPLES:
==================
1. Layers communicate ONLY through contracts
2. Resolution runs first; normalization runs only on a match
3. All outcomes are traceable through observability
4. No shared mutable state: the knowledge base is read-only and both
   steps are pure, so calls may run concurrently without locking
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union
import logging
import os
import time

from .contracts.base import Classification, NotFound
from .contracts.events import AuditEventType, AuditLogEntry
from .contracts.view import UserAnalysisView
from .knowledge import KnowledgeBase, KnowledgeConfig, get_knowledge_base, load_knowledge_base
from .normalization import ContentNormalizer, NormalizationConfig
from .observability import ObservabilityConfig, ObservabilityEngine
from .resolution import FactorScope, ResolverConfig, resolve, resolve_combination

logger = logging.getLogger(__name__)


def get_analysis_view(
    kb: KnowledgeBase,
    classification: Classification,
    normalizer: Optional[ContentNormalizer] = None,
    scope: FactorScope = FactorScope.GLOBAL
) -> Union[UserAnalysisView, NotFound]:
    """
    Resolve then normalize.

    NotFound from the resolver is returned as-is; the normalizer is never
    invoked for it.
    """
    payload = resolve(kb, classification, scope)
    if isinstance(payload, NotFound):
        return payload
    return (normalizer or ContentNormalizer()).normalize(payload)


@dataclass
class EngineConfig:
    """Unified configuration for the interpretation engine."""
    knowledge: KnowledgeConfig = None
    resolver: ResolverConfig = None
    normalization: NormalizationConfig = None
    observability: ObservabilityConfig = None

    def __post_init__(self):
        self.knowledge = self.knowledge or KnowledgeConfig()
        self.resolver = self.resolver or ResolverConfig()
        self.normalization = self.normalization or NormalizationConfig()
        self.observability = self.observability or ObservabilityConfig()

    @staticmethod
    def from_env() -> EngineConfig:
        """
        Build configuration from the environment.

        INTERPRETATION_KB_PATH       knowledge base document
        INTERPRETATION_FACTOR_SCOPE  'global' (default) or 'components'
        INTERPRETATION_SUBSTITUTE_TERMS  '1' to rephrase technical terms
        """
        scope = os.environ.get("INTERPRETATION_FACTOR_SCOPE", FactorScope.GLOBAL.value)
        return EngineConfig(
            knowledge=KnowledgeConfig.from_env(),
            resolver=ResolverConfig(factor_scope=FactorScope(scope.lower())),
            normalization=NormalizationConfig(
                substitute_terms=os.environ.get("INTERPRETATION_SUBSTITUTE_TERMS", "0") == "1"
            )
        )


class InterpretationEngine:
    """
    Interpretation engine bound to one knowledge base.

    LAYER FLOW:
    ===========
    1. Knowledge: loaded once (or handed in), never re-read
    2. Resolution: Classification -> ContentPayload | NotFound
    3. Normalization: ContentPayload -> UserAnalysisView
    4. Observability: records every outcome

    NO LAYER BYPASSES THIS FLOW.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        knowledge_base: Optional[KnowledgeBase] = None
    ):
        self._config = config or EngineConfig()
        self._observability = ObservabilityEngine(self._config.observability)
        self._normalizer = ContentNormalizer(mask=self._config.normalization.build_mask())

        if knowledge_base is None:
            knowledge_base = load_knowledge_base(self._config.knowledge.path)
            self._observability.collect_audit(AuditLogEntry.record(
                AuditEventType.KNOWLEDGE_BASE_LOADED,
                self._config.knowledge.path,
                patterns=len(knowledge_base.patterns)
            ))
        self._kb = knowledge_base

    @staticmethod
    def shared(config: Optional[EngineConfig] = None) -> InterpretationEngine:
        """Engine over the process-wide knowledge base."""
        config = config or EngineConfig.from_env()
        return InterpretationEngine(config, get_knowledge_base(config.knowledge.path))

    @property
    def knowledge_base(self) -> KnowledgeBase:
        return self._kb

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    # =========================================================================
    # VIEW INTERFACE
    # =========================================================================

    def get_analysis_view(self, classification: Classification) -> Union[UserAnalysisView, NotFound]:
        started = time.perf_counter()
        scope = self._config.resolver.factor_scope

        match = resolve_combination(self._kb, classification, scope)
        if isinstance(match, NotFound):
            self._record_not_found(match, classification)
            return match

        view = self._normalizer.normalize(match.payload)

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._observability.record_metric(
            "interpretations_resolved_total", 1, {"pattern": classification.pattern}
        )
        self._observability.record_metric("view_assembly_duration_ms", elapsed_ms)
        self._observability.collect_audit(AuditLogEntry.record(
            AuditEventType.INTERPRETATION_RESOLVED,
            classification.pattern,
            combination_index=match.index,
            sections=len(view.sections)
        ))
        logger.debug(
            "Resolved %s to combination %d", classification.pattern, match.index,
            extra={'pattern': classification.pattern, 'combination_index': match.index}
        )
        return view

    def get_principle_view(self, name: str) -> Union[UserAnalysisView, NotFound]:
        """Render a general-principle document of the knowledge base."""
        document = self._kb.principle(name)
        if document is None:
            not_found = NotFound.missing_principle(name)
            self._record_not_found(not_found, None)
            return not_found
        self._observability.collect_audit(AuditLogEntry.record(
            AuditEventType.PRINCIPLE_RENDERED, name
        ))
        return self._normalizer.principle_view(name, document)

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _record_not_found(self, not_found: NotFound, classification: Optional[Classification]):
        self._observability.record_metric(
            "interpretations_not_found_total", 1,
            {"pattern": not_found.pattern, "reason": not_found.reason.value}
        )
        self._observability.collect_audit(AuditLogEntry.record(
            AuditEventType.INTERPRETATION_NOT_FOUND,
            not_found.pattern,
            reason=not_found.reason.value
        ))
        error = not_found.to_error()
        factors = classification.factor_map() if classification else {}
        logger.warning(
            "%s (factors=%s)", error.message, factors,
            extra={
                'pattern': not_found.pattern,
                'reason': not_found.reason.value,
                'error_code': error.code.name,
            }
        )
