"""Tests for context-driven severity adjustment."""

from __future__ import annotations

import pytest

from agentsentry.core.adjuster import TEST_TITLE_PREFIX, adjust, adjust_finding, select_rule
from agentsentry.core.context import FileContext
from agentsentry.core.models import Severity

C = FileContext


class TestRulePrecedence:
    """Only the first applicable rule rewrites severity."""

    def test_no_context_no_rule(self) -> None:
        assert select_rule(frozenset()) is None

    def test_defense_list_beats_markdown(self) -> None:
        rule = select_rule(frozenset({C.MARKDOWN, C.DEFENSE_LIST}))
        assert rule is not None and rule.context is C.DEFENSE_LIST

    def test_tool_test_sample_first(self) -> None:
        rule = select_rule(frozenset({C.TEST_OR_DOC, C.TOOL_SOURCE, C.TOOL_TEST_SAMPLE}))
        assert rule is not None and rule.context is C.TOOL_TEST_SAMPLE

    def test_tool_source_skipped_when_vendored_included(self) -> None:
        contexts = frozenset({C.TOOL_SOURCE, C.MARKDOWN})
        assert select_rule(contexts).context is C.TOOL_SOURCE
        assert select_rule(contexts, include_vendored=True).context is C.MARKDOWN

    def test_scoring_excluded_is_not_a_severity_rule(self) -> None:
        assert select_rule(frozenset({C.SCORING_EXCLUDED})) is None


class TestAdjustFinding:
    """Rewriting individual findings."""

    @pytest.mark.parametrize(
        "context, note",
        [
            (C.TOOL_TEST_SAMPLE, "[security tool test file: intentional attack sample]"),
            (C.TOOL_SOURCE, "[AgentSentry pattern definition: not an attack]"),
            (C.DEFENSE_LIST, "[defense pattern list: not an attack]"),
            (C.SYSTEM_PROMPT, "[system prompt/rules file: defensive content, not an attack vector]"),
        ],
    )
    def test_info_rules(self, make_finding, context: FileContext, note: str) -> None:
        adjusted = adjust_finding(make_finding(Severity.CRITICAL), frozenset({context}))
        assert adjusted.severity is Severity.INFO
        assert adjusted.description.endswith(note)

    @pytest.mark.parametrize(
        "before, after",
        [
            (Severity.CRITICAL, Severity.MEDIUM),
            (Severity.HIGH, Severity.INFO),
            (Severity.MEDIUM, Severity.MEDIUM),
            (Severity.INFO, Severity.INFO),
        ],
    )
    def test_markdown_reduction(self, make_finding, before: Severity, after: Severity) -> None:
        adjusted = adjust_finding(make_finding(before), frozenset({C.MARKDOWN}))
        assert adjusted.severity is after
        assert "[markdown documentation: severity reduced]" in adjusted.description

    def test_test_or_doc_reduction(self, make_finding) -> None:
        adjusted = adjust_finding(make_finding(Severity.CRITICAL), frozenset({C.TEST_OR_DOC}))
        assert adjusted.severity is Severity.MEDIUM
        assert adjusted.description.endswith("[test/doc file: severity reduced]")

    def test_scoring_excluded_marks_and_prefixes(self, make_finding) -> None:
        adjusted = adjust_finding(
            make_finding(Severity.HIGH), frozenset({C.TEST_OR_DOC, C.SCORING_EXCLUDED})
        )
        assert adjusted.excluded_from_score is True
        assert adjusted.title == TEST_TITLE_PREFIX + "Example finding"
        assert adjusted.severity is Severity.INFO

    def test_prefix_not_doubled(self, make_finding) -> None:
        finding = make_finding(title="[TEST] Already prefixed")
        adjusted = adjust_finding(finding, frozenset({C.SCORING_EXCLUDED}))
        assert adjusted.title == "[TEST] Already prefixed"

    def test_original_is_untouched(self, make_finding) -> None:
        finding = make_finding(Severity.CRITICAL)
        adjust_finding(finding, frozenset({C.DEFENSE_LIST, C.SCORING_EXCLUDED}))
        assert finding.severity is Severity.CRITICAL
        assert finding.excluded_from_score is False
        assert finding.description == "Example description."

    def test_plain_file_unchanged(self, make_finding) -> None:
        finding = make_finding(Severity.CRITICAL)
        assert adjust_finding(finding, frozenset()) == finding


class TestAdjust:
    def test_preserves_order(self, make_finding) -> None:
        findings = [make_finding(Severity.CRITICAL, id="A"), make_finding(Severity.HIGH, id="B")]
        adjusted = adjust(findings, frozenset({C.MARKDOWN}))
        assert [f.id for f in adjusted] == ["A", "B"]
        assert [f.severity for f in adjusted] == [Severity.MEDIUM, Severity.INFO]
