"""
API Mapper
==========

Transforms views into JSON DTOs for the presentation layer.
Key names mirror the frontend's view model (`subSections`).
"""
from typing import Any, Dict

from ..contracts.base import NotFound
from ..contracts.view import AnalysisSection, UserAnalysisView


def map_view_to_dto(view: UserAnalysisView) -> Dict[str, Any]:
    return {
        "title": view.title,
        "sections": [_map_section(section) for section in view.sections]
    }


def _map_section(section: AnalysisSection) -> Dict[str, Any]:
    content = section.content if isinstance(section.content, str) else list(section.content)
    dto: Dict[str, Any] = {
        "id": section.id,
        "title": section.title,
        "content": content,
    }
    # Sub-sections never nest further, so leaves omit the key entirely.
    if section.sub_sections:
        dto["subSections"] = [_map_section(sub) for sub in section.sub_sections]
    return dto


def map_not_found_to_dto(not_found: NotFound) -> Dict[str, Any]:
    return {
        "reason": not_found.reason.value,
        "pattern": not_found.pattern,
        "message": not_found.message,
    }
