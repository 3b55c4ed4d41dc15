"""Prompt injection detector.

Scans prompt-relevant files (two-tier discovery) line by line against the
injection catalogue. ``scan_content`` is the shared matching contract:

- every (pattern, line) match gets the id ``"{pattern_id}-{file}-{line}"``;
- an id already emitted for the content is skipped;
- the recommendation is looked up by pattern category;
- a path-traversal match sitting inside a quoted JSON/YAML value is a
  relative path, not an attack, and is reported as informational.

The scanner then classifies each file with findings and lets the severity
adjuster rewrite them (defense lists, system prompts, docs, tests, ...).
"""

from __future__ import annotations

import re
from pathlib import Path

from agentsentry.core.adjuster import adjust
from agentsentry.core.catalog import PatternCatalog
from agentsentry.core.context import classify, is_json_file, is_yaml_file
from agentsentry.core.models import (
    EVIDENCE_MAX_LENGTH,
    Confidence,
    Finding,
    ScanOptions,
    Severity,
    truncate_evidence,
)
from agentsentry.discovery.files import find_prompt_files, read_text
from agentsentry.scanners.base import Scanner, map_files

SCANNER_NAME = "Prompt Injection Tester"

RELATIVE_PATH_NOTE = "[relative path in config file: not a path traversal attack]"

# A traversal sequence in a key/value position or inside any quoted string.
_QUOTED_RELATIVE_PATH: tuple[re.Pattern[str], ...] = (
    re.compile(r"""["']\s*:\s*["'][^"']*\.\./\.\./"""),
    re.compile(r"""["'][^"']*\.\./\.\./[^"']*["']"""),
)


def is_quoted_relative_path(line: str) -> bool:
    """True when ``../../`` in ``line`` sits inside a quoted string value.

    ``"memory": "../../memory"`` is a relative path; ``cat ../../etc/passwd``
    is not.
    """
    return any(p.search(line) for p in _QUOTED_RELATIVE_PATH)


def scan_content(
    content: str,
    path: str | Path | None,
    catalog: PatternCatalog,
    scanner: str = SCANNER_NAME,
) -> list[Finding]:
    """Match every catalogue entry against every line of ``content``.

    Args:
        content: File text.
        path: Source path, used in ids and for the config-file check.
        catalog: Pattern catalogue.
        scanner: Scanner name stamped on findings.

    Returns:
        Raw (unadjusted) findings, grouped by pattern in catalogue order.
    """
    findings: list[Finding] = []
    seen: set[str] = set()
    lines = content.split("\n")
    file = str(path) if path is not None else None
    config_file = path is not None and (is_json_file(path) or is_yaml_file(path))

    for entry in catalog.injection:
        for number, line in enumerate(lines, start=1):
            if not entry.pattern.search(line):
                continue
            finding_id = f"{entry.id}-{file}-{number}"
            if finding_id in seen:
                continue
            seen.add(finding_id)

            stripped = line.strip()
            severity = entry.severity
            note = ""
            if entry.path_traversal and config_file and is_quoted_relative_path(stripped):
                severity = Severity.INFO
                note = f" {RELATIVE_PATH_NOTE}"

            findings.append(
                Finding(
                    id=finding_id,
                    scanner=scanner,
                    severity=severity,
                    title=f"{entry.category}: {entry.description}",
                    description=(
                        f"Matched pattern {entry.id} in {entry.category} category. "
                        f'Line: "{stripped[:EVIDENCE_MAX_LENGTH]}"{note}'
                    ),
                    recommendation=catalog.recommendation(entry.category),
                    file=file,
                    line=number,
                    evidence=truncate_evidence(stripped),
                    confidence=Confidence.DEFINITE,
                )
            )
    return findings


class PromptInjectionScanner(Scanner):
    """Detect prompt injection payloads in prompts, docs, configs and code."""

    key = "prompt-injection"
    name = SCANNER_NAME
    description = (
        "Tests prompt files against injection patterns: jailbreaks, role "
        "switches, instruction overrides, data extraction, encoding tricks, "
        "sandbox escape, session manipulation and tool injection"
    )

    def _scan(self, root: Path, options: ScanOptions) -> tuple[list[Finding], int]:
        catalog = self.catalog(options)
        files = find_prompt_files(
            root,
            exclude=options.exclude,
            include_vendored=options.include_vendored,
            ignore_patterns=self.ignore_patterns(root, options),
        )

        def scan_file(path: Path) -> list[Finding]:
            content = read_text(path)
            raw = scan_content(content, path, catalog, self.name)
            if not raw:
                return []
            contexts = classify(path, content, catalog, root)
            return adjust(raw, contexts, options.include_vendored)

        per_file = map_files(scan_file, files, options)
        return [f for findings in per_file for f in findings], len(files)
