"""AgentSentry CLI -- Heuristic security audit for AI-agent projects.

Entry point for the ``agentsentry`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    scan      -- Scan a project tree and report findings with a score.
    scanners  -- List the built-in scanners.

Usage::

    agentsentry scan ./my-agent-project
    agentsentry scan ./my-agent-project --format json -o report.json
    agentsentry scan . --scanner prompt-injection --exclude "fixtures/"
    agentsentry scanners
"""

from __future__ import annotations

import click

from agentsentry import __version__
from agentsentry.cli.scan import scan_command
from agentsentry.cli.scanners_cmd import scanners_command


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """AgentSentry: heuristic security auditing for AI-agent projects.

    Finds prompt injection payloads, command injection through network
    tools, clipboard exfiltration and missing agent defenses, and scores
    the project from 0 to 100.
    """


cli.add_command(scan_command)
cli.add_command(scanners_command)
