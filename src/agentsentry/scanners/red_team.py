"""Red team simulation over the whole project.

Unlike the pattern detectors this scanner reports what is missing. Defense
evidence from every prompt file is summed per attack vector, and each
vector whose project-wide total stays below its threshold yields a single
finding attached to the scan target. The target is classified relative to
itself, so directories above the project never downgrade its findings.
"""

from __future__ import annotations

from pathlib import Path

from agentsentry.core.adjuster import adjust
from agentsentry.core.context import classify
from agentsentry.core.models import Finding, ScanOptions
from agentsentry.core.vectors import VectorEvidence, aggregate, generate_findings, simulate
from agentsentry.discovery.files import find_prompt_files, read_text
from agentsentry.scanners.base import Scanner, map_files

SCANNER_NAME = "Red Team Simulator"


class RedTeamSimulator(Scanner):
    """Judge attack-vector resilience from defensive language in prompts."""

    key = "red-team"
    name = SCANNER_NAME
    description = (
        "Checks whether common red-team attack vectors (role confusion, "
        "instruction bypass, memory poisoning, tool abuse) would succeed "
        "against the agent"
    )

    def _scan(self, root: Path, options: ScanOptions) -> tuple[list[Finding], int]:
        vectors = self.catalog(options).vectors
        files = find_prompt_files(
            root,
            exclude=options.exclude,
            include_vendored=options.include_vendored,
            ignore_patterns=self.ignore_patterns(root, options),
        )

        def simulate_file(path: Path) -> dict[str, VectorEvidence]:
            return simulate(read_text(path), vectors)

        totals = aggregate(map_files(simulate_file, files, options), vectors)
        findings = generate_findings(totals, vectors, str(root), self.name)
        return adjust(findings, classify(root, root=root), options.include_vendored), len(files)
