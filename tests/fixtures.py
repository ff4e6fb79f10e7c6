"""
Test Fixtures

Explicit knowledge-base documents for deterministic testing.
Documents use the real source vocabulary: 상신/구신 factor keys, 유/무
predicate tokens, 내용 payloads, canonical section keys.
"""

from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional

from interpretation.contracts.knowledge import SectionKey


SAMPLE_KB_PATH = Path(__file__).resolve().parent.parent / "data" / "gukguk_db.json"

PRESENT = "유"
ABSENT = "무"

START = SectionKey.START.value
DNA = SectionKey.DNA.value
RELATIONSHIPS = SectionKey.RELATIONSHIPS.value
CORE_TRIAL = SectionKey.CORE_TRIAL.value
BRANCHING_POINT = SectionKey.BRANCHING_POINT.value

CANONICAL_ORDER = [START, DNA, RELATIONSHIPS, CORE_TRIAL, BRANCHING_POINT]


def payload(core_fact: str, attributes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"core_fact": core_fact, "attributes": attributes or {}}


def combination(core_fact: str, predicates: Optional[Dict[str, str]] = None,
                attributes: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Source-shaped combination: predicate fields plus one 내용 payload."""
    combo: Dict[str, Any] = dict(predicates or {})
    combo["내용"] = payload(core_fact, attributes)
    return combo


def document(pattern: str, combinations: List[Dict[str, Any]],
             components: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    return {pattern: {"구성요소": components or {}, "조합": combinations}}


def example_document() -> Dict[str, Any]:
    """Pattern P1 with a single combination requiring the supporting god."""
    return document("P1", [
        combination(
            "A(참고)",
            {"상신": PRESENT},
            {START: {"intro": "Hello(한자)"}}
        )
    ])
