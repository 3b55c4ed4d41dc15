"""Detectors and the scanner registry.

Public API::

    from agentsentry.scanners import default_registry

    report = default_registry().run_all("./my-agent-project")
    print(report.summary.score, report.summary.grade)
"""

from __future__ import annotations

from agentsentry.scanners.base import Scanner, map_files
from agentsentry.scanners.clipboard import ClipboardExfiltrationScanner
from agentsentry.scanners.command_injection import CommandInjectionScanner
from agentsentry.scanners.prompt_injection import PromptInjectionScanner, scan_content
from agentsentry.scanners.red_team import RedTeamSimulator
from agentsentry.scanners.registry import ScannerRegistry, default_registry

__all__ = [
    "ClipboardExfiltrationScanner",
    "CommandInjectionScanner",
    "PromptInjectionScanner",
    "RedTeamSimulator",
    "Scanner",
    "ScannerRegistry",
    "default_registry",
    "map_files",
    "scan_content",
]
