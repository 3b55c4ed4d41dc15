"""Data models for the scanning engine: Severity, Confidence, Finding, results.

These are the core data types produced and consumed by the scanning
pipeline. They are intentionally decoupled from the detectors so that
downstream modules (scorer, CLI formatters, report serialization) can import
them without pulling in the pattern catalogues or discovery logic.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from agentsentry.core.catalog import PatternCatalog

# Evidence snippets are cut to this many characters (plus an ellipsis).
EVIDENCE_MAX_LENGTH = 100


# ---------------------------------------------------------------------------
# Severity: Ordered finding severity levels
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Four-level severity scale for findings.

    The integer encoding enables direct comparison:
    INFO < MEDIUM < HIGH < CRITICAL. ``LOW`` is an alias of ``MEDIUM``.
    """

    INFO = 1
    MEDIUM = 2
    LOW = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        """Lowercase name used in reports (``"high"``)."""
        return self.name.lower()

    @classmethod
    def from_label(cls, value: str) -> Severity:
        """Parse a case-insensitive severity name.

        Raises:
            ValueError: If the name is not a known severity.
        """
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {value!r}") from None


class Confidence(IntEnum):
    """How certain a detector is that a finding is a real issue."""

    POSSIBLE = 1
    LIKELY = 2
    DEFINITE = 3

    @property
    def label(self) -> str:
        return self.name.lower()


# ---------------------------------------------------------------------------
# Finding: A single security observation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """A single finding produced by a scanner.

    Findings are immutable. Context adjustment (severity downgrades,
    rationale notes, scoring exclusion) creates new instances with
    ``dataclasses.replace`` while the finding is still owned by the
    scanner that produced it.

    Attributes:
        id: Stable identity. Pattern findings use
            ``"{pattern_id}-{file}-{line}"`` so the same match at the same
            location is only ever reported once.
        scanner: Name of the producing scanner.
        severity: Finding severity.
        title: Short human-readable title.
        description: Longer explanation, including any context notes.
        recommendation: Suggested remediation.
        file: Source file (or scan target for project-wide findings).
        line: 1-based line number, None for project-wide findings.
        evidence: The matched text, truncated to ``EVIDENCE_MAX_LENGTH``.
        confidence: Detector certainty.
        excluded_from_score: True for findings that are reported but do not
            count toward the numeric score (test files).
    """

    id: str
    scanner: str
    severity: Severity
    title: str
    description: str
    recommendation: str
    file: str | None = None
    line: int | None = None
    evidence: str = ""
    confidence: Confidence = Confidence.DEFINITE
    excluded_from_score: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "scanner": self.scanner,
            "severity": self.severity.label,
            "title": self.title,
            "description": self.description,
            "file": self.file,
            "line": self.line,
            "evidence": self.evidence,
            "recommendation": self.recommendation,
            "confidence": self.confidence.label,
            "excluded_from_score": self.excluded_from_score,
        }


def truncate_evidence(text: str, limit: int = EVIDENCE_MAX_LENGTH) -> str:
    """Strip and cut an evidence snippet to ``limit`` characters."""
    text = text.strip()
    if len(text) > limit:
        return text[:limit] + "..."
    return text


# ---------------------------------------------------------------------------
# Scan results and the aggregated report
# ---------------------------------------------------------------------------


@dataclass
class ScanResult:
    """Output of one scanner over one target.

    Attributes:
        scanner: Scanner name.
        findings: Findings in emission order.
        files_scanned: Number of candidate files the scanner considered.
        duration_ms: Wall-clock time of the scan in milliseconds.
        error: Set when the scanner crashed and was isolated by the
            registry; ``findings`` is then empty.
    """

    scanner: str
    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    duration_ms: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "scanner": self.scanner,
            "findings": [f.to_dict() for f in self.findings],
            "filesScanned": self.files_scanned,
            "durationMs": self.duration_ms,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class Summary:
    """Counts per severity plus the numeric score of a report.

    ``scanner_breakdown`` maps each scanner name to its own raw severity
    counts, keyed by severity label.
    """

    critical: int = 0
    high: int = 0
    medium: int = 0
    info: int = 0
    score: int = 100
    grade: str = "A+"
    files_scanned: int = 0
    duration_ms: int = 0
    scanner_breakdown: dict[str, dict[str, int]] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.info

    def to_dict(self) -> dict[str, Any]:
        return {
            "critical": self.critical,
            "high": self.high,
            "medium": self.medium,
            "info": self.info,
            "total": self.total,
            "score": self.score,
            "grade": self.grade,
            "filesScanned": self.files_scanned,
            "durationMs": self.duration_ms,
            "scannerBreakdown": {
                name: dict(counts) for name, counts in self.scanner_breakdown.items()
            },
        }


@dataclass
class Report:
    """Aggregated output of a full scan, consumed by renderers."""

    target: str
    timestamp: str
    version: str
    results: list[ScanResult]
    summary: Summary

    @property
    def findings(self) -> list[Finding]:
        return [f for r in self.results for f in r.findings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target,
            "timestamp": self.timestamp,
            "version": self.version,
            "results": [r.to_dict() for r in self.results],
            "summary": self.summary.to_dict(),
        }


# ---------------------------------------------------------------------------
# ScanOptions: per-scan configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScanOptions:
    """Configuration shared by every scanner in one scan.

    Attributes:
        exclude: Extra ignore globs supplied by the caller.
        include_vendored: Scan vendored trees and stop downgrading findings
            in files that belong to AgentSentry's own source.
        ignore_patterns: Resolved glob ignore list (built-in defaults merged
            with the project's ``.agentsentryignore``). None means "resolve
            from the target".
        catalog: Pattern catalogue to scan with. None means the built-in
            catalogue.
        max_workers: Cap for per-file worker threads. None picks a default
            proportional to available CPUs.
        cancel_event: When set, scanners stop picking up new files and the
            registry discards the scan.
    """

    exclude: tuple[str, ...] = ()
    include_vendored: bool = False
    ignore_patterns: tuple[str, ...] | None = None
    catalog: PatternCatalog | None = None
    max_workers: int | None = None
    cancel_event: threading.Event | None = field(default=None, compare=False)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()
