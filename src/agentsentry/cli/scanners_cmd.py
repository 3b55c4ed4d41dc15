"""``agentsentry scanners`` -- List the built-in scanners.

Prints each scanner's selection key (for ``scan --scanner``), display
name and description.

Exit Codes:
    0 -- Always (informational command, cannot fail).
"""

from __future__ import annotations

import click
from rich.table import Table

from agentsentry.cli.output import console
from agentsentry.scanners.registry import default_registry


@click.command("scanners")
def scanners_command() -> None:
    """List the built-in scanners and their selection keys."""
    table = Table(title="AgentSentry Scanners", show_header=True, header_style="bold")
    table.add_column("Key", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Description", style="dim")
    for scanner in default_registry().scanners:
        table.add_row(scanner.key, scanner.name, scanner.description)
    console.print(table)
