"""Clipboard exfiltration detector.

Looks for clipboard reads (browser clipboard API, ``pbpaste``/``xclip``/
``xsel``) followed by network sends in the same file. Each read is paired
with the nearest send only, graded by distance:

- critical (definite): under 300 characters and under 10 lines apart;
- high (likely): under 800 characters and under 30 lines apart;
- medium (possible): anywhere else in the file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from agentsentry.core.adjuster import adjust
from agentsentry.core.context import classify, is_tool_source
from agentsentry.core.models import Confidence, Finding, ScanOptions, Severity, truncate_evidence
from agentsentry.discovery.files import SHELL_PATTERNS, find_source_files, read_text
from agentsentry.scanners.base import Scanner, map_files

SCANNER_NAME = "Clipboard Exfiltration Scanner"
RULE_ID = "CLIP-001"

_API_READS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"navigator\.clipboard\.readText\s*\(",
        r"navigator\.clipboard\.read\s*\(",
        r"(?<!navigator\.)clipboard\.readText\s*\(",
        r"(?<!navigator\.)clipboard\.read\s*\(",
    )
)

_CLI_READS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:pbpaste|xclip|xsel)\b", re.IGNORECASE),
)

_NETWORK_SENDS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"\bfetch\s*\(",
        r"\bXMLHttpRequest\s*\(",
        r"\.send\s*\(",
        r"axios\.(?:get|post|put|patch|delete)\s*\(",
        r"https?\.request\s*\(",
        r"https?\.get\s*\(",
        r"https?\.post\s*\(",
        r"requests\.(?:get|post|put|patch|delete)\s*\(",
        r"urllib\.request",
        r"\bcurl\s+-",
        r"\bwget\s+-",
    )
)


@dataclass(frozen=True)
class _Site:
    index: int
    line: int
    text: str
    kind: str = ""


def _sites(content: str, patterns: tuple[re.Pattern[str], ...], kind: str = "") -> list[_Site]:
    sites: list[_Site] = []
    for pattern in patterns:
        for match in pattern.finditer(content):
            line = content.count("\n", 0, match.start()) + 1
            sites.append(_Site(match.start(), line, match.group(0), kind))
    return sites


def _grade(distance: int, line_diff: int) -> tuple[Severity, Confidence, str]:
    if distance < 300 and line_diff < 10:
        return Severity.CRITICAL, Confidence.DEFINITE, "immediately followed by"
    if distance < 800 and line_diff < 30:
        return Severity.HIGH, Confidence.LIKELY, "followed by"
    return Severity.MEDIUM, Confidence.POSSIBLE, "in the same file as"


def scan_source(content: str, path: str | Path, scanner: str = SCANNER_NAME) -> list[Finding]:
    """Pair every clipboard read with the nearest network send in the file."""
    reads = _sites(content, _API_READS, "Browser API") + _sites(content, _CLI_READS, "CLI tool")
    if not reads:
        return []
    sends = _sites(content, _NETWORK_SENDS)
    if not sends:
        return []

    lines = content.split("\n")
    file = str(path)
    findings: list[Finding] = []
    seen: set[str] = set()
    for read in sorted(reads, key=lambda s: s.index):
        send = min(sends, key=lambda s: (abs(s.index - read.index), s.index))
        line_diff = abs(send.line - read.line)
        severity, confidence, relation = _grade(abs(send.index - read.index), line_diff)

        finding_id = f"{RULE_ID}-{file}-{read.line}"
        if finding_id in seen:
            continue
        seen.add(finding_id)

        findings.append(
            Finding(
                id=finding_id,
                scanner=scanner,
                severity=severity,
                title=f"Clipboard exfiltration risk: {read.kind} + network send",
                description=(
                    f"Clipboard read ({read.text}) {relation} a network send "
                    f"({send.text}), {line_diff} lines apart. Clipboard contents "
                    "may be leaving the machine."
                ),
                recommendation=(
                    f"Review the code path between the clipboard read (line {read.line}) "
                    f"and the network send (line {send.line}). Require user consent "
                    "for clipboard access, sanitize clipboard data and allowlist "
                    "destination URLs."
                ),
                file=file,
                line=read.line,
                evidence=truncate_evidence(lines[read.line - 1]),
                confidence=confidence,
            )
        )
    return findings


class ClipboardExfiltrationScanner(Scanner):
    """Detect clipboard reads that flow into network requests."""

    key = "clipboard"
    name = SCANNER_NAME
    description = (
        "Detects clipboard read operations followed by network transmission "
        "(potential data exfiltration)"
    )

    def _scan(self, root: Path, options: ScanOptions) -> tuple[list[Finding], int]:
        files = find_source_files(
            root,
            exclude=options.exclude,
            include_vendored=options.include_vendored,
            ignore_patterns=self.ignore_patterns(root, options),
            extra_patterns=SHELL_PATTERNS,
        )

        def scan_file(path: Path) -> list[Finding]:
            if is_tool_source(path) and not options.include_vendored:
                return []
            raw = scan_source(read_text(path), path, self.name)
            if not raw:
                return []
            return adjust(raw, classify(path, root=root), options.include_vendored)

        per_file = map_files(scan_file, files, options)
        return [f for findings in per_file for f in findings], len(files)
