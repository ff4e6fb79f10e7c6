"""
Knowledge Layer

RESPONSIBILITY: Load the interpretation document once and type it
ALLOWED INPUTS: The JSON knowledge base (file or already-decoded document)
OUTPUTS: KnowledgeBase (immutable, process-wide)

WHAT THIS LAYER MUST NOT DO:
============================
- Match classifications against combinations
- Interpret or mask content
- Re-read the document per request
- Expose any mutation path after load

BOUNDARY ENFORCEMENT:
=====================
Load failures are the one legitimate fatal condition of the system and
are raised as KnowledgeBaseLoadError at startup. Content laxity inside a
payload (odd attribute shapes) is preserved as-is for the normalization
layer to absorb.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
import json
import logging
import os
import threading

from ..contracts.base import Error, ErrorCode
from ..contracts.knowledge import (
    COMBINATIONS_FIELD, COMPONENTS_FIELD, PAYLOAD_FIELD, EMPTY_MAPPING,
    Combination, ContentPayload, PatternGroup, freeze,
)

logger = logging.getLogger(__name__)


class KnowledgeBaseLoadError(Exception):
    """Startup-fatal failure to load or type the knowledge base."""

    def __init__(self, error: Error):
        super().__init__(error.message)
        self.error = error

    @property
    def code(self) -> ErrorCode:
        return self.error.code


def _malformed(message: str, **context: Any) -> KnowledgeBaseLoadError:
    error = Error.create(ErrorCode.KNOWLEDGE_BASE_MALFORMED, message)
    for key, value in context.items():
        error = error.with_context(key, str(value))
    return KnowledgeBaseLoadError(error)


# =============================================================================
# KNOWLEDGE BASE
# =============================================================================

@dataclass(frozen=True)
class KnowledgeBase:
    """
    Immutable knowledge base.

    `patterns` maps pattern name to its group. `principles` holds the
    top-level documents that are not pattern groups (general "how"/"why"
    explanations), frozen as read-only mappings.
    """
    patterns: Mapping[str, PatternGroup] = field(default_factory=lambda: EMPTY_MAPPING)
    principles: Mapping[str, Any] = field(default_factory=lambda: EMPTY_MAPPING)

    def group(self, pattern: str) -> Optional[PatternGroup]:
        return self.patterns.get(pattern)

    def principle(self, name: str) -> Optional[Any]:
        return self.principles.get(name)

    @property
    def pattern_names(self) -> Tuple[str, ...]:
        return tuple(self.patterns.keys())

    @staticmethod
    def from_document(document: Mapping[str, Any]) -> KnowledgeBase:
        """
        Type an already-decoded document.

        Raises KnowledgeBaseLoadError if a pattern group is structurally
        unusable (combinations not a list, combination without payload).
        """
        if not isinstance(document, Mapping):
            raise _malformed("Knowledge base root must be an object")

        patterns: Dict[str, PatternGroup] = {}
        principles: Dict[str, Any] = {}

        for name, entry in document.items():
            if isinstance(entry, Mapping) and COMBINATIONS_FIELD in entry:
                patterns[name] = _parse_group(name, entry)
            else:
                principles[name] = freeze(entry)

        return KnowledgeBase(
            patterns=MappingProxyType(patterns),
            principles=MappingProxyType(principles)
        )


def _parse_group(name: str, entry: Mapping[str, Any]) -> PatternGroup:
    raw_combinations = entry[COMBINATIONS_FIELD]
    if not isinstance(raw_combinations, list):
        raise _malformed("Combinations must be a list", pattern=name)

    raw_components = entry.get(COMPONENTS_FIELD)
    components: Dict[str, str] = {}
    if isinstance(raw_components, Mapping):
        components = {
            key: value for key, value in raw_components.items()
            if isinstance(value, str)
        }

    combinations: List[Combination] = []
    for index, raw in enumerate(raw_combinations):
        combinations.append(_parse_combination(name, index, raw))

    return PatternGroup(
        name=name,
        components=MappingProxyType(components),
        combinations=tuple(combinations)
    )


def _parse_combination(pattern: str, index: int, raw: Any) -> Combination:
    if not isinstance(raw, Mapping):
        raise _malformed("Combination must be an object", pattern=pattern, index=index)

    payload = raw.get(PAYLOAD_FIELD)
    if not isinstance(payload, Mapping):
        raise _malformed(
            f"Combination has no '{PAYLOAD_FIELD}' payload object",
            pattern=pattern, index=index
        )

    # Non-string fields cannot be predicates; they are dropped here.
    fields = tuple(
        (key, value) for key, value in raw.items()
        if key != PAYLOAD_FIELD and isinstance(value, str)
    )

    return Combination(
        index=index,
        fields=fields,
        payload=ContentPayload.from_source(payload)
    )


# =============================================================================
# LOADING
# =============================================================================

DEFAULT_KNOWLEDGE_BASE_PATH = os.path.join("data", "gukguk_db.json")


@dataclass
class KnowledgeConfig:
    """Where the knowledge base document lives."""
    path: str = DEFAULT_KNOWLEDGE_BASE_PATH

    @staticmethod
    def from_env() -> KnowledgeConfig:
        return KnowledgeConfig(
            path=os.environ.get("INTERPRETATION_KB_PATH", DEFAULT_KNOWLEDGE_BASE_PATH)
        )


def load_knowledge_base(path: Union[str, Path]) -> KnowledgeBase:
    """Read and type the knowledge base document at `path`."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise KnowledgeBaseLoadError(
            Error.create(ErrorCode.KNOWLEDGE_BASE_MISSING, f"Knowledge base not found: {path}")
        ) from e
    except OSError as e:
        raise KnowledgeBaseLoadError(
            Error.create(ErrorCode.KNOWLEDGE_BASE_MISSING, f"Cannot read knowledge base {path}: {e}")
        ) from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise KnowledgeBaseLoadError(
            Error.create(ErrorCode.KNOWLEDGE_BASE_INVALID_JSON, f"Invalid JSON in {path}: {e}")
        ) from e

    kb = KnowledgeBase.from_document(document)
    logger.info(
        "Loaded knowledge base %s: %d patterns, %d principle documents",
        path, len(kb.patterns), len(kb.principles)
    )
    return kb


# Process-wide instance, initialized once
_instance: Optional[KnowledgeBase] = None
_instance_lock = threading.Lock()


def get_knowledge_base(path: Optional[Union[str, Path]] = None) -> KnowledgeBase:
    """
    Return the process-wide knowledge base, loading it on first call.

    `path` is only consulted on the first call; later calls return the
    already-loaded instance.
    """
    global _instance
    if _instance is not None:
        return _instance
    with _instance_lock:
        if _instance is None:
            if path is None:
                path = KnowledgeConfig.from_env().path
            _instance = load_knowledge_base(path)
    return _instance


def reset_knowledge_base() -> None:
    """Drop the process-wide instance (tests only)."""
    global _instance
    with _instance_lock:
        _instance = None


__all__ = [
    'KnowledgeBase', 'KnowledgeBaseLoadError', 'KnowledgeConfig',
    'load_knowledge_base', 'get_knowledge_base', 'reset_knowledge_base',
]
