"""
Normalization Layer Tests
=========================

Payload -> view conversion:
1. Canonical section order, independent of storage order
2. Non-canonical sections dropped
3. Malformed substructure degrades to empty content, never raises
4. Every leaf string is masked
"""

import logging

import pytest

from interpretation.contracts.knowledge import ContentPayload, freeze
from interpretation.contracts.view import AnalysisSection
from interpretation.knowledge import load_knowledge_base
from interpretation.normalization import (
    ContentNormalizer, NormalizationConfig, SECTION_TITLE_MAP,
    format_sub_title, normalize, section_title,
)
from interpretation.normalization.masking import CompositeMask, TextTransform

from .fixtures import (
    BRANCHING_POINT, CANONICAL_ORDER, CORE_TRIAL, DNA, RELATIONSHIPS, SAMPLE_KB_PATH, START,
)


def make_payload(core_fact="", attributes=None):
    return ContentPayload(core_fact=core_fact, attributes=freeze(attributes or {}))


class TestExamples:

    def test_single_section(self):
        view = normalize(make_payload("A(참고)", {START: {"intro": "Hello(한자)"}}))

        assert view.title == "A"
        assert len(view.sections) == 1
        section = view.sections[0]
        assert section.id == START
        assert section.title == SECTION_TITLE_MAP[START]
        assert section.content == ()
        assert section.sub_sections == (
            AnalysisSection(id="intro", title="intro", content=("Hello",)),
        )

    def test_nested_record_content(self):
        view = normalize(make_payload("t", {START: {"group": {"x": "v1(주)", "y": "v2"}}}))
        assert view.sections[0].sub_sections[0].content == ("v1", "v2")


class TestSectionOrdering:

    def test_canonical_order_regardless_of_storage_order(self):
        attributes = {key: {"k": key} for key in reversed(CANONICAL_ORDER)}
        view = normalize(make_payload("t", attributes))
        assert [s.id for s in view.sections] == CANONICAL_ORDER

    def test_missing_sections_are_skipped(self):
        view = normalize(make_payload("t", {CORE_TRIAL: {"k": "v"}, START: {"k": "v"}}))
        assert [s.id for s in view.sections] == [START, CORE_TRIAL]

    def test_non_canonical_sections_are_dropped(self):
        view = normalize(make_payload("t", {"부록_메모": {"k": "v"}, DNA: {"k": "v"}}))
        assert [s.id for s in view.sections] == [DNA]

    def test_short_branching_point_alias(self):
        view = normalize(make_payload("t", {"분기점": {"성공_Success": "v"}}))
        assert view.sections[0].id == "분기점"
        assert view.sections[0].title == "🛤️ 당신의 미래 시나리오"

    def test_long_branching_point_key_preferred(self):
        view = normalize(make_payload("t", {
            "분기점": {"k": "short"},
            BRANCHING_POINT: {"k": "long"},
        }))
        assert len(view.sections) == 1
        assert view.sections[0].sub_sections[0].content == ("long",)


class TestDegradation:

    def test_string_section_is_dropped(self):
        view = normalize(make_payload("t", {START: "not a record", DNA: {"k": "v"}}))
        assert [s.id for s in view.sections] == [DNA]

    def test_dropped_content_is_logged_as_malformed_payload(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="interpretation.normalization"):
            normalize(make_payload("t", {START: "not a record", DNA: {"k": 42}}))

        codes = [getattr(r, "error_code", None) for r in caplog.records]
        assert codes == ["MALFORMED_PAYLOAD", "MALFORMED_PAYLOAD"]

    @pytest.mark.parametrize("value", [42, None, True])
    def test_unsupported_leaf_yields_empty_content(self, value):
        view = normalize(make_payload("t", {START: {"k": value}}))
        assert view.sections[0].sub_sections[0].content == ()

    def test_depth_is_capped_at_two(self):
        view = normalize(make_payload("t", {START: {"k": {"a": "v", "b": {"c": "deep"}}}}))
        assert view.sections[0].sub_sections[0].content == ("v",)

    def test_list_leaf_keeps_strings(self):
        view = normalize(make_payload("t", {START: {"k": ["a(가)", 3, "b"]}}))
        assert view.sections[0].sub_sections[0].content == ("a", "b")

    def test_empty_payload(self):
        view = normalize(make_payload())
        assert view.title == ""
        assert view.sections == ()


class TestTitles:

    @pytest.mark.parametrize("key, expected", [
        ("조력자_Ally", "조력자"),
        ("intro", "intro"),
        ("첫_무기_Weapon", "첫"),
        ("_leading", ""),
    ])
    def test_format_sub_title(self, key, expected):
        assert format_sub_title(key) == expected

    def test_section_title_fallback(self):
        assert section_title(DNA, {}) == "영웅의 DNA 분석"

    def test_custom_title_map(self):
        normalizer = ContentNormalizer(title_map={})
        view = normalizer.normalize(make_payload("t", {RELATIONSHIPS: {"k": "v"}}))
        assert view.sections[0].title == "인간관계 및 귀인 분석"


class TestPluggableMask:

    class UpperMask(TextTransform):
        def apply(self, text):
            return text.upper()

    def test_custom_mask_applies_to_every_leaf(self):
        normalizer = ContentNormalizer(mask=self.UpperMask())
        view = normalizer.normalize(make_payload("title", {START: {"a": "x", "b": {"c": "y"}}}))
        assert view.title == "TITLE"
        assert [s.content for s in view.sections[0].sub_sections] == [("X",), ("Y",)]

    def test_config_builds_substituting_mask(self):
        mask = NormalizationConfig(substitute_terms=True).build_mask()
        assert isinstance(mask, CompositeMask)
        assert mask("식신(상관)") == "표현력"


class TestSampleDocument:

    @pytest.fixture(scope="class")
    def kb(self):
        return load_knowledge_base(SAMPLE_KB_PATH)

    def test_full_payload(self, kb):
        view = normalize(kb.group("편재격").combinations[0].payload)

        assert view.title == "기회를 현실로 바꾸는 사업가"
        assert [s.id for s in view.sections] == [START, DNA, RELATIONSHIPS, CORE_TRIAL, "분기점"]

        start = view.section(START)
        assert [s.title for s in start.sub_sections] == ["출발", "첫"]
        assert start.sub_sections[1].content == ("아이디어를 돈으로 바꾸는 표현력이 무기입니다.",)

        dna = view.section(DNA)
        assert dna.sub_sections[0].content == (
            "판단이 빠르고 실행이 과감합니다.",
            "시장의 흐름을 읽는 감각이 탁월합니다.",
        )

    def test_principle_view(self, kb):
        normalizer = ContentNormalizer()
        view = normalizer.principle_view("격국_원리_Why", kb.principle("격국_원리_Why"))

        assert view.title == "격국 원리 Why"
        assert [s.id for s in view.sections] == ["핵심_개념", "상신과_구신"]
        assert view.sections[0].content == ("격국은 월지를 중심으로 한 삶의 기본 구조입니다.",)
        assert [s.title for s in view.sections[1].sub_sections] == ["상신", "구신"]

    def test_principle_view_with_list(self, kb):
        view = ContentNormalizer().principle_view("격국_작동방식_How", kb.principle("격국_작동방식_How"))
        assert view.sections[0].content[1] == "상신의 유무를 살핍니다."

    def test_principle_view_of_plain_string(self):
        view = ContentNormalizer().principle_view("메모", "설명(주)")
        assert view.sections[0].content == ("설명",)
