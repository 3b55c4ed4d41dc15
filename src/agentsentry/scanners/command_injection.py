"""Command injection through network diagnostic tools.

Flags process-spawning calls that build a ``ping``/``nslookup``/``dig``/
``host``/``traceroute`` command line from runtime strings. For each spawn
call site the text window from 500 characters before to 300 characters
after the call must show:

1. the call is a process-spawning primitive (by construction);
2. a diagnostic tool name in quotes (``"ping "`` or ``'dig'``);
3. string interpolation: template ``${...}``, concatenation, or for Python
   f-strings, ``.format(`` and ``%`` formatting.

Such a site is reported at medium severity (likely). When the window also
shows untrusted input (``req.``, ``event.``, ``argv[``, ``process.env.``,
...) it is reported at high severity (definite).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

from agentsentry.core.adjuster import adjust
from agentsentry.core.context import classify, is_tool_source
from agentsentry.core.models import Confidence, Finding, ScanOptions, Severity, truncate_evidence
from agentsentry.discovery.files import find_source_files, read_text
from agentsentry.scanners.base import Scanner, map_files

SCANNER_NAME = "DNS/ICMP Tool Scanner"
RULE_ID = "CMD-001"

WINDOW_BEFORE = 500
WINDOW_AFTER = 300

NETWORK_TOOLS: tuple[str, ...] = ("ping", "nslookup", "dig", "host", "traceroute", "tracert")

# ---------------------------------------------------------------------------
# Spawn primitives
# ---------------------------------------------------------------------------

JS_SPAWN_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"child_process\.exec\s*\(",
        r"child_process\.execSync\s*\(",
        r"child_process\.spawn\s*\(",
        r"child_process\.spawnSync\s*\(",
        r"\bexec\s*\(",
        r"\bexecSync\s*\(",
        r"\bspawn\s*\(",
        r"\bspawnSync\s*\(",
    )
)

PY_SPAWN_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"subprocess\.run\s*\(",
        r"subprocess\.call\s*\(",
        r"subprocess\.Popen\s*\(",
        r"subprocess\.check_output\s*\(",
        r"os\.system\s*\(",
    )
)

# ---------------------------------------------------------------------------
# Window signals
# ---------------------------------------------------------------------------

_TOOL_PATTERNS: tuple[tuple[str, re.Pattern[str], re.Pattern[str]], ...] = tuple(
    (
        tool,
        re.compile(rf"['\"`]\s*{tool}\s+", re.IGNORECASE),
        re.compile(rf"['\"`]{tool}['\"`]", re.IGNORECASE),
    )
    for tool in NETWORK_TOOLS
)

_TEMPLATE_INTERPOLATION = re.compile(r"\$\{[^}]+\}")
_CONCATENATION = re.compile(r"\+\s*\w+|['\"`]\s*\+")
_PY_FORMATTING: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?<![\w'\"\-.])(?:[fF][rR]?|[rR][fF])['\"][^'\"\n]*\{"),
    re.compile(r"\.format\("),
    re.compile(r"%\s*\("),
)

_USER_INPUT: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p)
    for p in (
        r"req\.",
        r"request\.",
        r"event\.",
        r"input\.",
        r"params\.",
        r"query\.",
        r"body\.",
        r"args\.",
        r"argv\[",
        r"process\.env\.",
    )
)


def is_python_source(path: str | Path) -> bool:
    return Path(path).suffix.lower() == ".py"


def spawn_sites(content: str, python: bool) -> Iterator[int]:
    """Yield the offset of every spawn call, pattern by pattern."""
    patterns = PY_SPAWN_PATTERNS if python else JS_SPAWN_PATTERNS
    for pattern in patterns:
        for match in pattern.finditer(content):
            yield match.start()


def tool_in_window(window: str) -> str | None:
    for tool, spaced, quoted in _TOOL_PATTERNS:
        if spaced.search(window) or quoted.search(window):
            return tool
    return None


def has_interpolation(window: str, python: bool) -> bool:
    if _TEMPLATE_INTERPOLATION.search(window) or _CONCATENATION.search(window):
        return True
    return python and any(p.search(window) for p in _PY_FORMATTING)


def has_user_input(window: str) -> bool:
    return any(p.search(window) for p in _USER_INPUT)


def scan_source(content: str, path: str | Path, scanner: str = SCANNER_NAME) -> list[Finding]:
    """Apply the window rule to every spawn call site in ``content``.

    Overlapping spawn patterns (``child_process.exec(`` and ``exec(``) that
    land on the same line produce a single finding.
    """
    python = is_python_source(path)
    lines = content.split("\n")
    file = str(path)
    findings: list[Finding] = []
    seen: set[str] = set()

    for index in spawn_sites(content, python):
        window = content[max(0, index - WINDOW_BEFORE): index + WINDOW_AFTER]
        tool = tool_in_window(window)
        if tool is None or not has_interpolation(window, python):
            continue

        line_number = content.count("\n", 0, index) + 1
        finding_id = f"{RULE_ID}-{file}-{line_number}"
        if finding_id in seen:
            continue
        seen.add(finding_id)

        if has_user_input(window):
            severity, confidence = Severity.HIGH, Confidence.DEFINITE
            message = f"Command '{tool}' appears to include user input: high risk of command injection."
        else:
            severity, confidence = Severity.MEDIUM, Confidence.LIKELY
            message = f"Command '{tool}' uses variable interpolation: potential command injection."

        findings.append(
            Finding(
                id=finding_id,
                scanner=scanner,
                severity=severity,
                title=f"Unsafe {tool} execution with variable interpolation",
                description=(
                    f"Process execution of '{tool}' is built with variable "
                    f"interpolation. {message}"
                ),
                recommendation=(
                    f"Pass arguments as an array (spawn('{tool}', [host]) or "
                    f"subprocess.run(['{tool}', host])) instead of a shell string, "
                    "and validate or allowlist the input."
                ),
                file=file,
                line=line_number,
                evidence=truncate_evidence(lines[line_number - 1]),
                confidence=confidence,
            )
        )
    return findings


class CommandInjectionScanner(Scanner):
    """Detect interpolated ping/nslookup/dig/host invocations."""

    key = "command-injection"
    name = SCANNER_NAME
    description = (
        "Detects process execution of ping/nslookup/dig/host with variable "
        "interpolation (command injection risk)"
    )

    def _scan(self, root: Path, options: ScanOptions) -> tuple[list[Finding], int]:
        files = find_source_files(
            root,
            exclude=options.exclude,
            include_vendored=options.include_vendored,
            ignore_patterns=self.ignore_patterns(root, options),
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
