"""Shared fixtures for agentsentry tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from hypothesis import HealthCheck, settings

from agentsentry.core.catalog import PatternCatalog, default_catalog
from agentsentry.core.models import Confidence, Finding, Severity

# Hypothesis builds its unicode charmap cache on the first text() draw of a
# fresh checkout, which trips the input-generation speed health check.
settings.register_profile("agentsentry", suppress_health_check=[HealthCheck.too_slow])
settings.load_profile("agentsentry")

WriteTree = Callable[[dict[str, str]], Path]


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project root, one level below tmp_path."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def write_tree(project: Path) -> WriteTree:
    """Return a helper writing ``{relative_path: content}`` under the project root."""

    def _write(files: dict[str, str]) -> Path:
        for rel, content in files.items():
            path = project / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return project

    return _write


@pytest.fixture
def catalog() -> PatternCatalog:
    """The built-in pattern catalogue."""
    return default_catalog()


@pytest.fixture
def make_finding() -> Callable[..., Finding]:
    """Factory for findings with sensible defaults."""

    def _make(
        severity: Severity = Severity.HIGH,
        confidence: Confidence = Confidence.DEFINITE,
        id: str | None = None,
        excluded: bool = False,
        title: str = "Example finding",
    ) -> Finding:
        return Finding(
            id=id or f"TEST-{severity.label}-{confidence.label}",
            scanner="Test Scanner",
            severity=severity,
            title=title,
            description="Example description.",
            recommendation="Fix it.",
            file="prompt.txt",
            line=1,
            evidence="evidence",
            confidence=confidence,
            excluded_from_score=excluded,
        )

    return _make
