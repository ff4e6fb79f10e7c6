"""
Resolution Layer

RESPONSIBILITY: Select the single combination matching a classification
ALLOWED INPUTS: KnowledgeBase, Classification
OUTPUTS: ContentPayload or NotFound

WHAT THIS LAYER MUST NOT DO:
============================
- Touch display concerns (titles, masking, ordering of sections)
- Rank or score combinations (first match in stored order wins)
- Raise for normal "no interpretation" outcomes
- Mutate the knowledge base

MATCHING RULES:
===============
For every allow-listed factor key present in a combination:
- "유" requires classification.factors[key] is True
- "무" requires classification.factors[key] is not True
- Any other value imposes no constraint (tolerated, not an error)
Keys absent from the combination are wildcards.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from ..contracts.base import Classification, NotFound
from ..contracts.knowledge import Combination, ContentPayload, FactorKey, PatternGroup, Predicate
from ..knowledge import KnowledgeBase


# =============================================================================
# ALLOW-LIST POLICY
# =============================================================================

class FactorScope(Enum):
    """
    Which factor keys a pattern group's combinations are matched on.

    GLOBAL uses the fixed FactorKey vocabulary for every group.
    COMPONENTS uses the group's own component glossary keys and falls
    back to GLOBAL when the group declares none.
    """
    GLOBAL = "global"
    COMPONENTS = "components"


GLOBAL_ALLOW_LIST: Tuple[str, ...] = FactorKey.values()


def allow_list_for(group: PatternGroup, scope: FactorScope = FactorScope.GLOBAL) -> Tuple[str, ...]:
    if scope is FactorScope.COMPONENTS and group.components:
        return tuple(group.components.keys())
    return GLOBAL_ALLOW_LIST


@dataclass
class ResolverConfig:
    """Configuration for the resolution layer."""
    factor_scope: FactorScope = FactorScope.GLOBAL


# =============================================================================
# MATCHING
# =============================================================================

@dataclass(frozen=True)
class ConstraintCheck:
    """Outcome of evaluating one combination against a classification."""
    combination_index: int
    matched: bool
    failed_key: Optional[str] = None
    failed_predicate: Optional[Predicate] = None


def check_combination(
    combination: Combination,
    classification: Classification,
    allow_list: Tuple[str, ...] = GLOBAL_ALLOW_LIST
) -> ConstraintCheck:
    for key, predicate in combination.constraints(allow_list):
        has_factor = classification.has_factor(key)
        if predicate is Predicate.PRESENT and not has_factor:
            return ConstraintCheck(combination.index, False, key, predicate)
        if predicate is Predicate.ABSENT and has_factor:
            return ConstraintCheck(combination.index, False, key, predicate)
    return ConstraintCheck(combination.index, True)


def resolve_combination(
    kb: KnowledgeBase,
    classification: Classification,
    scope: FactorScope = FactorScope.GLOBAL
) -> Union[Combination, NotFound]:
    """Return the first satisfied combination of the classification's pattern."""
    group = kb.group(classification.pattern)
    if group is None:
        return NotFound.unknown_pattern(classification.pattern)

    allow_list = allow_list_for(group, scope)
    for combination in group.combinations:
        if check_combination(combination, classification, allow_list).matched:
            return combination

    return NotFound.no_match(classification.pattern)


def resolve(
    kb: KnowledgeBase,
    classification: Classification,
    scope: FactorScope = FactorScope.GLOBAL
) -> Union[ContentPayload, NotFound]:
    """
    Resolve a classification to its content payload.

    Pure function over the knowledge base and the classification.
    Returns NotFound(unknown-pattern) or NotFound(no-match) instead of
    raising.
    """
    match = resolve_combination(kb, classification, scope)
    if isinstance(match, NotFound):
        return match
    return match.payload


def explain(
    kb: KnowledgeBase,
    classification: Classification,
    scope: FactorScope = FactorScope.GLOBAL
) -> List[ConstraintCheck]:
    """
    Evaluate every combination of the pattern, in stored order.

    Diagnostic counterpart of resolve(): reports which constraint rejected
    each combination. Empty for unknown patterns.
    """
    group = kb.group(classification.pattern)
    if group is None:
        return []
    allow_list = allow_list_for(group, scope)
    return [
        check_combination(combination, classification, allow_list)
        for combination in group.combinations
    ]


__all__ = [
    'FactorScope', 'ResolverConfig', 'ConstraintCheck', 'GLOBAL_ALLOW_LIST',
    'allow_list_for', 'check_combination', 'resolve', 'resolve_combination', 'explain',
]
