"""
Property Tests for Resolution and Normalization
Verifies the resolver's matching invariants and the normalizer's ordering
invariant over generated knowledge-base documents.
"""

from hypothesis import given, strategies as st
from hypothesis.strategies import composite

from interpretation.contracts.base import Classification, NotFound, NotFoundReason
from interpretation.contracts.knowledge import ContentPayload, FactorKey, freeze
from interpretation.engine import get_analysis_view
from interpretation.knowledge import KnowledgeBase
from interpretation.normalization import ContentNormalizer, normalize
from interpretation.resolution import check_combination, resolve, resolve_combination

from ..fixtures import CANONICAL_ORDER, combination, document

# =============================================================================
# STRATEGIES (Generators)
# =============================================================================

FACTOR_KEYS = list(FactorKey.values())

factor_maps = st.dictionaries(st.sampled_from(FACTOR_KEYS), st.booleans())

predicate_maps = st.dictionaries(
    st.sampled_from(FACTOR_KEYS + ["기타", "비고"]),
    st.sampled_from(["유", "무", "강함", ""]),
    max_size=4
)


@composite
def knowledge_bases(draw, pattern="P1"):
    """Single-pattern knowledge base with uniquely identifiable payloads."""
    predicates = draw(st.lists(predicate_maps, min_size=1, max_size=6))
    combinations = [combination(f"fact-{i}", p) for i, p in enumerate(predicates)]
    return KnowledgeBase.from_document(document(pattern, combinations))


@composite
def classifications(draw, pattern="P1"):
    return Classification.create(pattern, draw(factor_maps))


@composite
def attribute_items(draw):
    """Canonical and extra section keys with record values, in random order."""
    canonical = draw(st.lists(st.sampled_from(CANONICAL_ORDER), unique=True))
    extra = draw(st.lists(st.sampled_from(["부록", "메모_Note", "분기"]), unique=True))
    keys = draw(st.permutations(canonical + extra))
    return [(key, {"k": f"text-{key}"}) for key in keys]


# =============================================================================
# PROPERTY TESTS
# =============================================================================

@given(knowledge_bases(), st.text(min_size=1).filter(lambda p: p != "P1"), factor_maps)
def test_unknown_pattern_never_normalizes(kb, pattern, factors):
    """Unknown patterns resolve to NotFound(unknown-pattern); no view is built."""

    class FailingNormalizer(ContentNormalizer):
        def normalize(self, payload):
            raise AssertionError("normalizer must not run for NotFound")

    classification = Classification.create(pattern, factors)
    result = get_analysis_view(kb, classification, normalizer=FailingNormalizer())
    assert isinstance(result, NotFound)
    assert result.reason == NotFoundReason.UNKNOWN_PATTERN


@given(knowledge_bases(), classifications())
def test_vacuous_combination_matches_everything(kb, classification):
    """Appending an unconstrained combination makes every classification resolve."""
    group = kb.group("P1")
    doc = document("P1", [
        combination(c.payload.core_fact, dict(c.fields)) for c in group.combinations
    ] + [combination("wildcard")])
    extended = KnowledgeBase.from_document(doc)

    assert isinstance(resolve(extended, classification), ContentPayload)


@given(knowledge_bases(), classifications())
def test_first_satisfied_combination_wins(kb, classification):
    """The selected combination is satisfied and no earlier one is."""
    checks = [check_combination(c, classification) for c in kb.group("P1").combinations]
    match = resolve_combination(kb, classification)

    if isinstance(match, NotFound):
        assert not any(check.matched for check in checks)
        assert match.reason == NotFoundReason.NO_MATCH
    else:
        assert checks[match.index].matched
        assert not any(check.matched for check in checks[:match.index])


@given(predicate_maps, predicate_maps, classifications())
def test_reordering_changes_output(first, second, classification):
    """When two combinations both match, stored order decides."""
    kb_ab = KnowledgeBase.from_document(document("P1", [
        combination("a", first), combination("b", second)
    ]))
    kb_ba = KnowledgeBase.from_document(document("P1", [
        combination("b", second), combination("a", first)
    ]))
    checks = [check_combination(c, classification) for c in kb_ab.group("P1").combinations]

    if all(check.matched for check in checks):
        assert resolve(kb_ab, classification).core_fact == "a"
        assert resolve(kb_ba, classification).core_fact == "b"


@given(knowledge_bases(), classifications())
def test_resolution_is_deterministic(kb, classification):
    assert resolve(kb, classification) == resolve(kb, classification)


@given(attribute_items())
def test_section_order_invariant_to_key_order(items):
    """Permuting attribute key order never changes section order."""
    forward = normalize(ContentPayload("t", freeze(dict(items))))
    backward = normalize(ContentPayload("t", freeze(dict(reversed(items)))))

    forward_ids = [s.id for s in forward.sections]
    assert forward_ids == [s.id for s in backward.sections]
    assert forward_ids == [key for key in CANONICAL_ORDER if key in dict(items)]
