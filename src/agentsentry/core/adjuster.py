"""Context-driven severity adjustment.

``adjust()`` takes the raw findings of one file together with that file's
``FileContext`` set and returns rewritten findings. Only the first
applicable rule in this order rewrites severity:

1. tool test sample: everything becomes info
2. tool source: everything becomes info (skipped in include-vendored mode)
3. defense list: everything becomes info
4. system prompt / rules file: everything becomes info
5. markdown documentation: critical becomes medium, high becomes info
6. test / doc file: same as markdown

Independently, scoring-excluded test findings are marked
``excluded_from_score`` and get a ``[TEST]`` title prefix. Findings are
never mutated; each stage builds a new instance.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Iterable

from agentsentry.core.context import FileContext
from agentsentry.core.models import Finding, Severity

TEST_TITLE_PREFIX = "[TEST] "


def _to_info(severity: Severity) -> Severity:
    return Severity.INFO


def _reduce(severity: Severity) -> Severity:
    if severity == Severity.CRITICAL:
        return Severity.MEDIUM
    if severity == Severity.HIGH:
        return Severity.INFO
    return severity


@dataclass(frozen=True)
class _Rule:
    context: FileContext
    transform: Callable[[Severity], Severity]
    note: str


_RULES: tuple[_Rule, ...] = (
    _Rule(FileContext.TOOL_TEST_SAMPLE, _to_info,
          "[security tool test file: intentional attack sample]"),
    _Rule(FileContext.TOOL_SOURCE, _to_info,
          "[AgentSentry pattern definition: not an attack]"),
    _Rule(FileContext.DEFENSE_LIST, _to_info,
          "[defense pattern list: not an attack]"),
    _Rule(FileContext.SYSTEM_PROMPT, _to_info,
          "[system prompt/rules file: defensive content, not an attack vector]"),
    _Rule(FileContext.MARKDOWN, _reduce,
          "[markdown documentation: severity reduced]"),
    _Rule(FileContext.TEST_OR_DOC, _reduce,
          "[test/doc file: severity reduced]"),
)


def select_rule(
    contexts: frozenset[FileContext], include_vendored: bool = False
) -> _Rule | None:
    """Return the highest-precedence rule applicable to ``contexts``."""
    for rule in _RULES:
        if rule.context not in contexts:
            continue
        if rule.context is FileContext.TOOL_SOURCE and include_vendored:
            continue
        return rule
    return None


def adjust_finding(
    finding: Finding,
    contexts: frozenset[FileContext],
    include_vendored: bool = False,
) -> Finding:
    """Apply context rules to a single finding."""
    rule = select_rule(contexts, include_vendored)
    if rule is not None:
        finding = replace(
            finding,
            severity=rule.transform(finding.severity),
            description=f"{finding.description} {rule.note}",
        )
    if FileContext.SCORING_EXCLUDED in contexts:
        title = finding.title
        if not title.startswith(TEST_TITLE_PREFIX):
            title = TEST_TITLE_PREFIX + title
        finding = replace(finding, title=title, excluded_from_score=True)
    return finding


def adjust(
    findings: Iterable[Finding],
    contexts: frozenset[FileContext],
    include_vendored: bool = False,
) -> list[Finding]:
    """Apply context rules to every finding of one file.

    Args:
        findings: Raw findings produced for a single file.
        contexts: Categories from ``classify()`` for that file.
        include_vendored: Disable the tool-source downgrade.

    Returns:
        New findings, in input order.
    """
    return [adjust_finding(f, contexts, include_vendored) for f in findings]
