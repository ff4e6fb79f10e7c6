"""
User-Facing View Contracts

Render-agnostic output of the normalization layer. The presentation layer
consumes these and owns all layout and styling.
"""

from dataclasses import dataclass, field
from typing import Tuple, Union


@dataclass(frozen=True)
class AnalysisSection:
    """
    One narrative section or sub-section.
    Depth is bounded to two by construction: sections hold sub-sections,
    sub-sections hold none.
    """
    id: str
    title: str
    content: Union[str, Tuple[str, ...]] = ()
    sub_sections: Tuple["AnalysisSection", ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class UserAnalysisView:
    """Display-ready interpretation: a title and sections in canonical order."""
    title: str
    sections: Tuple[AnalysisSection, ...] = field(default_factory=tuple)

    def section(self, section_id: str):
        for section in self.sections:
            if section.id == section_id:
                return section
        return None
