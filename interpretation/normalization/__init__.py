"""
Normalization Layer

RESPONSIBILITY: Convert a resolved payload into a display-ready view
ALLOWED INPUTS: ContentPayload (or a principle document)
OUTPUTS: UserAnalysisView (immutable)

WHAT THIS LAYER MUST NOT DO:
============================
- Query the knowledge base
- Raise on malformed content (degrade to empty content instead)
- Emit sections outside the canonical vocabulary
- Reorder canonical sections based on storage order

BOUNDARY ENFORCEMENT:
=====================
Sections always render start -> strengths/weaknesses -> relationships ->
core trial -> branching point, whatever order the payload stores them in.
Every leaf string passes through the configured TextTransform.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple
import logging

from ..contracts.base import ErrorCode
from ..contracts.knowledge import ContentPayload, SectionKey
from ..contracts.view import AnalysisSection, UserAnalysisView
from .masking import (
    DEFAULT_MASK, CompositeMask, ParentheticalMask, TermSubstitutionMask,
    TextTransform, mask_term,
)

logger = logging.getLogger(__name__)

# Content errors are absorbed; the log record carries the code.
_MALFORMED = {'error_code': ErrorCode.MALFORMED_PAYLOAD.name}


SECTION_TITLE_MAP: Mapping[str, str] = {
    "영웅의_시작점": "🌟 당신의 시작",
    "영웅의_DNA_분석": "🧬 타고난 강점과 약점",
    "인간관계_및_귀인_분석": "🤝 인간관계와 귀인",
    "핵심_시련_및_극복_과제": "⛰️ 반드시 넘어야 할 산",
    "분기점_(성공과_실패의_갈림길)": "🛤️ 당신의 미래 시나리오",
    "분기점": "🛤️ 당신의 미래 시나리오",
}

SEPARATOR = "_"


def section_title(key: str, title_map: Mapping[str, str] = SECTION_TITLE_MAP) -> str:
    return title_map.get(key) or key.replace(SEPARATOR, " ")


def format_sub_title(key: str) -> str:
    """
    Derive a sub-section title from an attribute key.

    Keeps the text before the first separator: "조력자_Ally" -> "조력자".
    This is a lossy heuristic over the key's shape, not a structural field.
    """
    return key.split(SEPARATOR, 1)[0].replace(SEPARATOR, " ")


@dataclass
class NormalizationConfig:
    """Configuration for the normalization layer."""
    mask: TextTransform = DEFAULT_MASK
    substitute_terms: bool = False

    def build_mask(self) -> TextTransform:
        if self.substitute_terms:
            return CompositeMask((TermSubstitutionMask(), self.mask))
        return self.mask


class ContentNormalizer:
    """
    Payload to view conversion.

    Stateless apart from its configuration; safe to share between threads.
    """

    def __init__(
        self,
        mask: Optional[TextTransform] = None,
        title_map: Optional[Mapping[str, str]] = None
    ):
        self._mask = mask or DEFAULT_MASK
        self._title_map = SECTION_TITLE_MAP if title_map is None else title_map

    @property
    def mask(self) -> TextTransform:
        return self._mask

    def normalize(self, payload: ContentPayload) -> UserAnalysisView:
        sections: List[AnalysisSection] = []

        for section_key in SectionKey:
            found = self._find_section(payload.attributes, section_key)
            if found is None:
                continue
            source_key, raw = found
            if not isinstance(raw, Mapping):
                logger.debug("Dropping section %s: expected a record, got %s",
                             source_key, type(raw).__name__, extra=_MALFORMED)
                continue
            sections.append(AnalysisSection(
                id=source_key,
                title=section_title(source_key, self._title_map),
                content=(),
                sub_sections=self.convert_attributes(raw)
            ))

        return UserAnalysisView(
            title=self._mask(payload.core_fact),
            sections=tuple(sections)
        )

    def convert_attributes(self, attributes: Mapping[str, Any]) -> Tuple[AnalysisSection, ...]:
        """One sub-section per attribute, in declared order."""
        return tuple(
            AnalysisSection(
                id=key,
                title=format_sub_title(key),
                content=self._leaf_content(key, value)
            )
            for key, value in attributes.items()
        )

    def principle_view(self, name: str, document: Any) -> UserAnalysisView:
        """
        Render a general-principle document.

        Top-level records become sections with sub-sections, strings and
        lists of strings become plain sections. Order follows the document.
        """
        title = self._mask(name.replace(SEPARATOR, " "))
        if isinstance(document, str):
            return UserAnalysisView(
                title=title,
                sections=(AnalysisSection(id=name, title=title, content=(self._mask(document),)),)
            )
        if not isinstance(document, Mapping):
            return UserAnalysisView(title=title)

        sections: List[AnalysisSection] = []
        for key, value in document.items():
            if isinstance(value, Mapping):
                sections.append(AnalysisSection(
                    id=key,
                    title=section_title(key, self._title_map),
                    content=(),
                    sub_sections=self.convert_attributes(value)
                ))
            else:
                content = self._leaf_content(key, value)
                if content:
                    sections.append(AnalysisSection(
                        id=key,
                        title=section_title(key, self._title_map),
                        content=content
                    ))
        return UserAnalysisView(title=title, sections=tuple(sections))

    # -------------------------------------------------------------------------

    @staticmethod
    def _find_section(attributes: Mapping[str, Any], section_key: SectionKey):
        for source_key in section_key.source_keys:
            if source_key in attributes:
                return source_key, attributes[source_key]
        return None

    def _leaf_content(self, key: str, value: Any) -> Tuple[str, ...]:
        if isinstance(value, str):
            return (self._mask(value),)
        if isinstance(value, Mapping):
            # Depth is capped at two: nested records inside a leaf record are dropped.
            return tuple(self._mask(v) for v in value.values() if isinstance(v, str))
        if isinstance(value, (list, tuple)):
            return tuple(self._mask(v) for v in value if isinstance(v, str))
        logger.debug("Attribute %s has unsupported shape %s", key, type(value).__name__,
                     extra=_MALFORMED)
        return ()


_default_normalizer = ContentNormalizer()


def normalize(payload: ContentPayload) -> UserAnalysisView:
    """Normalize with the default mask and title map."""
    return _default_normalizer.normalize(payload)


__all__ = [
    'ContentNormalizer', 'NormalizationConfig', 'SECTION_TITLE_MAP',
    'section_title', 'format_sub_title', 'normalize',
    'TextTransform', 'ParentheticalMask', 'TermSubstitutionMask', 'CompositeMask',
    'mask_term',
]
