"""
Term Masking

Display text in the knowledge base embeds technical saju terminology,
usually as parenthesized glossary annotations: "조력자(식신)". Masking
removes or rephrases those annotations before text reaches the user.

Masking is best-effort and approximate. Transforms are pluggable so that
stricter rules can replace the default without touching the resolver or
the normalizer.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterable, Mapping, Optional, Tuple
import re


class TextTransform(ABC):
    """A pure string-to-string transform applied to every leaf string."""

    @abstractmethod
    def apply(self, text: str) -> str:
        ...

    def __call__(self, text: Optional[str]) -> str:
        if not text or not isinstance(text, str):
            return ""
        return self.apply(text)


class ParentheticalMask(TextTransform):
    """
    Remove every parenthesized run of non-ASCII word characters, then trim.

    "상신(식신)의 존재" -> "상신의 존재". ASCII annotations such as "(A)" are
    kept. Removal repeats until nothing matches, so nested annotations like
    "(가(나))" disappear entirely and the transform is idempotent.
    """

    _ANNOTATION = re.compile(r"\([^\W\x00-\x7F]+\)")

    def apply(self, text: str) -> str:
        processed = text
        while True:
            processed, count = self._ANNOTATION.subn("", processed)
            if count == 0:
                break
        return processed.strip()


# Plain-language replacements for technical terms
DEFAULT_TERM_SUBSTITUTIONS: Mapping[str, str] = {
    "식신": "표현력",
    "편관": "카리스마/압박",
}


class TermSubstitutionMask(TextTransform):
    """
    Replace technical terms with plain-language phrases.
    Longer terms are replaced first so "상신기신" is not split by "상신".
    """

    def __init__(self, substitutions: Optional[Mapping[str, str]] = None):
        table = DEFAULT_TERM_SUBSTITUTIONS if substitutions is None else substitutions
        self._pairs: Tuple[Tuple[str, str], ...] = tuple(
            sorted(table.items(), key=lambda pair: (-len(pair[0]), pair[0]))
        )
        self._pattern = (
            re.compile("|".join(re.escape(term) for term, _ in self._pairs))
            if self._pairs else None
        )

    def apply(self, text: str) -> str:
        if self._pattern is None:
            return text.strip()
        lookup = dict(self._pairs)
        return self._pattern.sub(lambda m: lookup[m.group(0)], text).strip()


class CompositeMask(TextTransform):
    """Apply transforms left to right."""

    def __init__(self, transforms: Iterable[TextTransform]):
        self._transforms = tuple(transforms)

    def apply(self, text: str) -> str:
        for transform in self._transforms:
            text = transform(text)
        return text


DEFAULT_MASK: TextTransform = ParentheticalMask()


def mask_term(text: Optional[str]) -> str:
    """Default masking: strip parenthesized glossary annotations."""
    return DEFAULT_MASK(text)
