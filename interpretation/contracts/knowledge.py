"""
Knowledge Base Contracts

Typed, immutable view of the interpretation document. The document itself
is not self-describing: its keys are domain vocabulary strings. Every key
the system recognizes is enumerated here and nowhere else.

SOURCE SHAPE:
=============
{
  "<pattern>": {
    "구성요소": {"<component>": "<description>", ...},
    "조합": [
      {"상신": "유", "구신": "무", ..., "내용": {"core_fact": "...", "attributes": {...}}},
      ...
    ]
  },
  "<principle document>": {...}
}
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple


# Reserved source keys
COMPONENTS_FIELD = "구성요소"
COMBINATIONS_FIELD = "조합"
PAYLOAD_FIELD = "내용"
CORE_FACT_FIELD = "core_fact"
ATTRIBUTES_FIELD = "attributes"

EMPTY_MAPPING: Mapping[str, Any] = MappingProxyType({})


def freeze(value: Any) -> Any:
    """Recursively convert decoded JSON into read-only containers."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(freeze(item) for item in value)
    return value


# =============================================================================
# VOCABULARY (Closed world)
# =============================================================================

class FactorKey(Enum):
    """
    Allow-list of factor keys the matcher evaluates.

    Combinations may carry arbitrary other keys; those are ignored rather
    than matched.
    """
    SUPPORTING_GOD = "상신"
    RESCUING_GOD = "구신"
    PATTERN_ADVERSE_GOD = "격기신"
    SUPPORTING_ADVERSE_GOD = "상신기신"
    RESCUING_ADVERSE_GOD = "구신기신"
    SIBLING = "비견"
    INDIRECT_RESOURCE = "편인"
    DIRECT_WEALTH = "정재"
    DIRECT_OFFICER = "정관"

    @classmethod
    def values(cls) -> Tuple[str, ...]:
        return tuple(member.value for member in cls)


class Predicate(Enum):
    """The two literal tokens a combination uses to constrain a factor."""
    PRESENT = "유"
    ABSENT = "무"

    @classmethod
    def parse(cls, token: Any) -> Optional[Predicate]:
        """Return the predicate for a token, or None if it is not one."""
        for member in cls:
            if member.value == token:
                return member
        return None


class SectionKey(Enum):
    """
    Canonical narrative sections. Declaration order IS render order:
    start, strengths/weaknesses, relationships, core trial, branching point.
    """
    START = "영웅의_시작점"
    DNA = "영웅의_DNA_분석"
    RELATIONSHIPS = "인간관계_및_귀인_분석"
    CORE_TRIAL = "핵심_시련_및_극복_과제"
    BRANCHING_POINT = "분기점_(성공과_실패의_갈림길)"

    @property
    def source_keys(self) -> Tuple[str, ...]:
        """Attribute keys accepted for this section, preferred first."""
        if self is SectionKey.BRANCHING_POINT:
            return (self.value, "분기점")
        return (self.value,)


# =============================================================================
# KNOWLEDGE BASE RECORDS
# =============================================================================

@dataclass(frozen=True)
class ContentPayload:
    """
    The content attached to a combination.

    `attributes` stays heterogeneous: section values may be records,
    strings, or anything else the document holds. The normalizer decides
    what renders.
    """
    core_fact: str
    attributes: Mapping[str, Any] = field(default_factory=lambda: EMPTY_MAPPING)

    @staticmethod
    def from_source(raw: Mapping[str, Any]) -> ContentPayload:
        core_fact = raw.get(CORE_FACT_FIELD)
        attributes = raw.get(ATTRIBUTES_FIELD)
        return ContentPayload(
            core_fact=core_fact if isinstance(core_fact, str) else "",
            attributes=freeze(attributes) if isinstance(attributes, Mapping) else EMPTY_MAPPING
        )


@dataclass(frozen=True)
class Combination:
    """
    Sparse set of factor predicates plus exactly one payload.

    `fields` holds every string-valued non-payload field in source order.
    Which of them count as constraints is decided by the resolver's
    allow-list.
    """
    index: int
    fields: Tuple[Tuple[str, str], ...]
    payload: ContentPayload

    def value_of(self, key: str) -> Optional[str]:
        for name, value in self.fields:
            if name == key:
                return value
        return None

    def constraints(self, allow_list: Tuple[str, ...]) -> Iterator[Tuple[str, Predicate]]:
        """Yield (key, predicate) for every allow-listed key carrying a predicate token."""
        for key in allow_list:
            predicate = Predicate.parse(self.value_of(key))
            if predicate is not None:
                yield key, predicate


@dataclass(frozen=True)
class PatternGroup:
    """Component glossary plus ordered combinations (first match wins)."""
    name: str
    components: Mapping[str, str] = field(default_factory=lambda: EMPTY_MAPPING)
    combinations: Tuple[Combination, ...] = field(default_factory=tuple)
