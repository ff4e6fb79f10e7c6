"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.
No behavior, no side effects, no dependencies.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Mapping, Optional, Tuple
from enum import Enum, auto


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes for deterministic error handling.
    Every outcome that is not a rendered view is enumerated here.
    """
    # Knowledge base errors (startup-fatal)
    KNOWLEDGE_BASE_MISSING = auto()
    KNOWLEDGE_BASE_INVALID_JSON = auto()
    KNOWLEDGE_BASE_MALFORMED = auto()

    # Resolution outcomes (surfaced as NotFound)
    UNKNOWN_PATTERN = auto()
    NO_MATCHING_COMBINATION = auto()
    UNKNOWN_PRINCIPLE = auto()

    # Content errors (absorbed, never surfaced)
    MALFORMED_PAYLOAD = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data, not exceptions - they can be stored and queried.
    """
    code: ErrorCode
    message: str
    timestamp: datetime
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @staticmethod
    def create(code: ErrorCode, message: str) -> Error:
        return Error(code=code, message=message, timestamp=datetime.now(timezone.utc))

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            timestamp=self.timestamp,
            context=self.context + ((key, value),)
        )


# =============================================================================
# CLASSIFICATION (Upstream input, opaque and already validated)
# =============================================================================

@dataclass(frozen=True)
class Classification:
    """
    Immutable classification produced upstream.

    `factors` is an open set of boolean conditions; not every key is
    checked by the resolver. Stored as sorted pairs so the value stays
    hashable and deterministic.
    """
    pattern: str
    factors: Tuple[Tuple[str, bool], ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.pattern or not isinstance(self.pattern, str):
            raise ValueError("Classification pattern must be a non-empty string")

    @staticmethod
    def create(pattern: str, factors: Optional[Mapping[str, bool]] = None) -> Classification:
        pairs = tuple(sorted((factors or {}).items()))
        return Classification(pattern=pattern, factors=pairs)

    def has_factor(self, key: str) -> bool:
        """True only when the factor is present with the value True."""
        for name, value in self.factors:
            if name == key:
                return value is True
        return False

    def factor_map(self) -> dict:
        return dict(self.factors)


# =============================================================================
# RESOLUTION OUTCOME
# =============================================================================

class NotFoundReason(Enum):
    """Why no interpretation could be produced."""
    UNKNOWN_PATTERN = "unknown-pattern"
    NO_MATCH = "no-match"
    UNKNOWN_PRINCIPLE = "unknown-principle"

    @property
    def error_code(self) -> ErrorCode:
        if self is NotFoundReason.UNKNOWN_PATTERN:
            return ErrorCode.UNKNOWN_PATTERN
        if self is NotFoundReason.UNKNOWN_PRINCIPLE:
            return ErrorCode.UNKNOWN_PRINCIPLE
        return ErrorCode.NO_MATCHING_COMBINATION


@dataclass(frozen=True)
class NotFound:
    """
    First-class, non-exceptional outcome: no interpretation exists.
    The presentation layer renders an "analysis unavailable" state.
    """
    reason: NotFoundReason
    pattern: str
    message: str = ""

    @staticmethod
    def unknown_pattern(pattern: str) -> NotFound:
        return NotFound(
            reason=NotFoundReason.UNKNOWN_PATTERN,
            pattern=pattern,
            message=f"Pattern not found in knowledge base: {pattern}"
        )

    @staticmethod
    def no_match(pattern: str) -> NotFound:
        return NotFound(
            reason=NotFoundReason.NO_MATCH,
            pattern=pattern,
            message=f"No combination found for pattern {pattern}"
        )

    @staticmethod
    def missing_principle(name: str) -> NotFound:
        """A general-principle document lookup; `pattern` carries the document name."""
        return NotFound(
            reason=NotFoundReason.UNKNOWN_PRINCIPLE,
            pattern=name,
            message=f"Principle document not found in knowledge base: {name}"
        )

    def to_error(self) -> Error:
        return Error.create(self.reason.error_code, self.message).with_context(
            "pattern", self.pattern
        )
