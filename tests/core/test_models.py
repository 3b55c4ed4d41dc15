"""Tests for the core data models: Severity, Confidence, Finding, results."""

from __future__ import annotations

import dataclasses
import threading

import pytest

from agentsentry.core.models import (
    EVIDENCE_MAX_LENGTH,
    Confidence,
    Finding,
    Report,
    ScanOptions,
    ScanResult,
    Severity,
    Summary,
    truncate_evidence,
)


class TestSeverity:
    """Ordering and label parsing of Severity."""

    def test_ordering(self) -> None:
        """INFO < MEDIUM < HIGH < CRITICAL."""
        assert Severity.INFO < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL

    def test_low_is_alias_of_medium(self) -> None:
        """LOW and MEDIUM are the same member."""
        assert Severity.LOW is Severity.MEDIUM

    def test_label_is_lowercase(self) -> None:
        assert Severity.CRITICAL.label == "critical"
        assert Severity.INFO.label == "info"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("critical", Severity.CRITICAL),
            ("HIGH", Severity.HIGH),
            (" medium ", Severity.MEDIUM),
            ("low", Severity.MEDIUM),
            ("Info", Severity.INFO),
        ],
    )
    def test_from_label(self, text: str, expected: Severity) -> None:
        """Labels parse case-insensitively, LOW maps to MEDIUM."""
        assert Severity.from_label(text) is expected

    def test_from_label_unknown_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown severity"):
            Severity.from_label("catastrophic")


class TestConfidence:
    """Confidence levels."""

    def test_ordering(self) -> None:
        assert Confidence.POSSIBLE < Confidence.LIKELY < Confidence.DEFINITE

    def test_label(self) -> None:
        assert Confidence.LIKELY.label == "likely"


class TestFinding:
    """Finding immutability and serialization."""

    def test_finding_is_frozen(self, make_finding) -> None:
        """Findings cannot be mutated in place."""
        finding = make_finding()
        with pytest.raises(dataclasses.FrozenInstanceError):
            finding.severity = Severity.INFO  # type: ignore[misc]

    def test_default_confidence_is_definite(self) -> None:
        finding = Finding(
            id="X-1", scanner="s", severity=Severity.MEDIUM,
            title="t", description="d", recommendation="r",
        )
        assert finding.confidence is Confidence.DEFINITE
        assert finding.excluded_from_score is False
        assert finding.line is None

    def test_to_dict_uses_labels(self, make_finding) -> None:
        """Severity and confidence serialize as lowercase names."""
        data = make_finding(Severity.CRITICAL, Confidence.POSSIBLE).to_dict()
        assert data["severity"] == "critical"
        assert data["confidence"] == "possible"
        assert data["file"] == "prompt.txt"
        assert data["line"] == 1
        assert data["excluded_from_score"] is False


class TestTruncateEvidence:
    """Evidence snippet truncation."""

    def test_short_text_is_stripped_only(self) -> None:
        assert truncate_evidence("   ignore this   ") == "ignore this"

    def test_long_text_is_cut_with_ellipsis(self) -> None:
        text = "x" * (EVIDENCE_MAX_LENGTH + 50)
        result = truncate_evidence(text)
        assert result == "x" * EVIDENCE_MAX_LENGTH + "..."

    def test_exact_limit_is_kept(self) -> None:
        text = "y" * EVIDENCE_MAX_LENGTH
        assert truncate_evidence(text) == text


class TestResults:
    """ScanResult, Summary and Report serialization."""

    def test_scan_result_to_dict(self, make_finding) -> None:
        result = ScanResult(
            scanner="Prompt Injection Tester",
            findings=[make_finding()],
            files_scanned=3,
            duration_ms=12,
        )
        data = result.to_dict()
        assert data["filesScanned"] == 3
        assert data["durationMs"] == 12
        assert len(data["findings"]) == 1
        assert "error" not in data

    def test_scan_result_error_is_serialized(self) -> None:
        data = ScanResult(scanner="Broken", error="RuntimeError: boom").to_dict()
        assert data["error"] == "RuntimeError: boom"
        assert data["findings"] == []

    def test_summary_total(self) -> None:
        summary = Summary(critical=1, high=2, medium=3, info=4)
        assert summary.total == 10
        assert summary.to_dict()["total"] == 10

    def test_summary_breakdown_is_serialized(self) -> None:
        breakdown = {"Clipboard Exfiltration Scanner": {"critical": 1, "high": 0, "medium": 0, "info": 0}}
        data = Summary(critical=1, scanner_breakdown=breakdown).to_dict()
        assert data["scannerBreakdown"] == breakdown
        assert Summary().to_dict()["scannerBreakdown"] == {}

    def test_summary_defaults_to_perfect_score(self) -> None:
        summary = Summary()
        assert summary.score == 100
        assert summary.grade == "A+"

    def test_report_findings_flattens_results(self, make_finding) -> None:
        first = ScanResult(scanner="a", findings=[make_finding(id="A-1")])
        second = ScanResult(scanner="b", findings=[make_finding(id="B-1"), make_finding(id="B-2")])
        report = Report(
            target="/tmp/project",
            timestamp="2026-01-01T00:00:00+00:00",
            version="0.1.0",
            results=[first, second],
            summary=Summary(),
        )
        assert [f.id for f in report.findings] == ["A-1", "B-1", "B-2"]
        data = report.to_dict()
        assert data["target"] == "/tmp/project"
        assert [r["scanner"] for r in data["results"]] == ["a", "b"]
        assert data["summary"]["score"] == 100


class TestScanOptions:
    """ScanOptions defaults and cancellation."""

    def test_defaults(self) -> None:
        options = ScanOptions()
        assert options.exclude == ()
        assert options.include_vendored is False
        assert options.ignore_patterns is None
        assert options.catalog is None
        assert options.cancelled is False

    def test_cancelled_follows_event(self) -> None:
        event = threading.Event()
        options = ScanOptions(cancel_event=event)
        assert options.cancelled is False
        event.set()
        assert options.cancelled is True

    def test_cancel_event_ignored_in_equality(self) -> None:
        assert ScanOptions(cancel_event=threading.Event()) == ScanOptions()
