"""Aggregation and scoring of scan results.

The score starts at 100 and loses a penalty per severity that grows with
the logarithm of the (confidence-weighted) finding count and is capped, so
that many findings of one kind cannot dominate the result:

    penalty(sev) = min(base[sev] * log2(n + 1), cap[sev])

When critical and high findings coexist an interaction penalty of
``min(5 * log2(min(c, h) + 1), 10)`` is added. Informational findings and
findings marked ``excluded_from_score`` never contribute. Every term is
non-decreasing in every count, so adding a finding never raises the score.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from agentsentry.core.models import Confidence, Finding, ScanResult, Severity, Summary

BASE_PENALTY: dict[Severity, float] = {
    Severity.CRITICAL: 20.0,
    Severity.HIGH: 5.0,
    Severity.MEDIUM: 1.5,
    Severity.INFO: 0.0,
}

MAX_PENALTY: dict[Severity, float] = {
    Severity.CRITICAL: 50.0,
    Severity.HIGH: 30.0,
    Severity.MEDIUM: 15.0,
    Severity.INFO: 0.0,
}

CONFIDENCE_WEIGHT: dict[Confidence, float] = {
    Confidence.DEFINITE: 1.0,
    Confidence.LIKELY: 0.8,
    Confidence.POSSIBLE: 0.6,
}

# (minimum score, grade), checked top-down
_GRADES: tuple[tuple[int, str], ...] = (
    (97, "A+"), (93, "A"), (90, "A-"),
    (87, "B+"), (83, "B"), (80, "B-"),
    (77, "C+"), (73, "C"), (70, "C-"),
    (67, "D+"), (63, "D"), (60, "D-"),
)


def deduplicate(findings: Iterable[Finding]) -> list[Finding]:
    """Drop findings whose id was already seen, keeping the first."""
    seen: set[str] = set()
    unique: list[Finding] = []
    for finding in findings:
        if finding.id in seen:
            continue
        seen.add(finding.id)
        unique.append(finding)
    return unique


def counts_toward_score(finding: Finding) -> bool:
    return not finding.excluded_from_score and finding.severity != Severity.INFO


def _diminishing(count: float, severity: Severity) -> float:
    if count <= 0:
        return 0.0
    return min(BASE_PENALTY[severity] * math.log2(count + 1), MAX_PENALTY[severity])


def interaction_penalty(critical: float, high: float) -> float:
    if critical > 0 and high > 0:
        return min(5 * math.log2(min(critical, high) + 1), 10.0)
    return 0.0


def weighted_counts(findings: Iterable[Finding]) -> dict[Severity, float]:
    """Confidence-weighted counts of the findings that count toward the score."""
    counts = {severity: 0.0 for severity in BASE_PENALTY}
    for finding in findings:
        if counts_toward_score(finding):
            counts[finding.severity] += CONFIDENCE_WEIGHT[finding.confidence]
    return counts


def calculate_score(findings: Iterable[Finding]) -> int:
    """Return the 0-100 score for a set of findings."""
    counts = weighted_counts(findings)
    penalty = sum(_diminishing(count, severity) for severity, count in counts.items())
    penalty += interaction_penalty(counts[Severity.CRITICAL], counts[Severity.HIGH])
    return max(0, min(100, round(100 - penalty)))


def score_to_grade(score: int) -> str:
    for minimum, grade in _GRADES:
        if score >= minimum:
            return grade
    return "F"


def calculate_summary(results: Sequence[ScanResult]) -> Summary:
    """Reduce completed scan results into one ``Summary``.

    Severity counts include every finding (excluded ones too); the score
    only considers findings for which ``counts_toward_score`` holds.

    Args:
        results: Results of every scanner in the scan.

    Returns:
        Per-severity counts overall and per scanner, score, grade, files
        scanned and total duration.
    """
    findings = [f for result in results for f in result.findings]
    raw = {severity: 0 for severity in BASE_PENALTY}
    for finding in findings:
        raw[finding.severity] += 1
    breakdown: dict[str, dict[str, int]] = {}
    for result in results:
        counts = breakdown.setdefault(result.scanner, {s.label: 0 for s in BASE_PENALTY})
        for finding in result.findings:
            counts[finding.severity.label] += 1
    score = calculate_score(findings)
    return Summary(
        critical=raw[Severity.CRITICAL],
        high=raw[Severity.HIGH],
        medium=raw[Severity.MEDIUM],
        info=raw[Severity.INFO],
        score=score,
        grade=score_to_grade(score),
        files_scanned=sum(result.files_scanned for result in results),
        duration_ms=sum(result.duration_ms for result in results),
        scanner_breakdown=breakdown,
    )


def exit_code(findings: Iterable[Finding]) -> int:
    """Process exit code: 2 on a scored critical, 1 on a scored high, else 0."""
    worst = max(
        (f.severity for f in findings if not f.excluded_from_score),
        default=Severity.INFO,
    )
    if worst >= Severity.CRITICAL:
        return 2
    if worst >= Severity.HIGH:
        return 1
    return 0
