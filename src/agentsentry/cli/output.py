"""Rich output formatting helpers for the AgentSentry CLI.

Severity Color Mapping:
    CRITICAL = bold red, HIGH = yellow, MEDIUM = cyan, INFO = dim
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from agentsentry.core.models import Finding, Report, Severity

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "yellow",
    Severity.MEDIUM: "cyan",
    Severity.INFO: "dim",
}

_GRADE_STYLES: dict[str, str] = {
    "A": "bold green",
    "B": "green",
    "C": "yellow",
    "D": "red",
    "F": "bold red",
}

console = Console()


def severity_style(severity: Severity) -> str:
    """Return the Rich style string for a given severity level."""
    return _SEVERITY_STYLES.get(severity, "white")


def grade_style(grade: str) -> str:
    return _GRADE_STYLES.get(grade[:1], "white")


def _location(finding: Finding) -> str:
    if finding.file is None:
        return "-"
    if finding.line is None:
        return finding.file
    return f"{finding.file}:{finding.line}"


def print_report(report: Report) -> None:
    """Print one findings table per scanner, then the summary panel.

    Args:
        report: Aggregated scan report.
    """
    for result in report.results:
        if result.error is not None:
            console.print(f"[red]{result.scanner} failed: {result.error}[/red]")
            continue
        if not result.findings:
            console.print(
                f"[green]{result.scanner}: no findings[/green] "
                f"[dim]({result.files_scanned} files)[/dim]"
            )
            continue

        table = Table(title=result.scanner, show_header=True, header_style="bold")
        table.add_column("Severity", justify="center")
        table.add_column("Finding")
        table.add_column("Location", style="dim")
        table.add_column("Evidence", style="dim")
        ordered = sorted(result.findings, key=lambda f: f.severity, reverse=True)
        for f in ordered:
            table.add_row(
                Text(f.severity.label.upper(), style=severity_style(f.severity)),
                f.title,
                _location(f),
                f.evidence[:80],
            )
        console.print(table)

    print_summary(report)


def print_summary(report: Report) -> None:
    """Print the score, grade and per-severity counts."""
    summary = report.summary
    header = Text.assemble(
        ("Score: ", "bold"), (str(summary.score), grade_style(summary.grade)),
        ("  Grade: ", "bold"), (summary.grade, grade_style(summary.grade)),
    )
    console.print(Panel(header, title="AgentSentry Scan Summary"))
    parts = [f"[bold]{summary.files_scanned}[/bold] files scanned"]
    if summary.critical:
        parts.append(f"[bold red]{summary.critical} critical[/bold red]")
    if summary.high:
        parts.append(f"[yellow]{summary.high} high[/yellow]")
    if summary.medium:
        parts.append(f"[cyan]{summary.medium} medium[/cyan]")
    if summary.info:
        parts.append(f"[dim]{summary.info} info[/dim]")
    parts.append(f"{summary.total} total findings")
    console.print(" | ".join(parts))
    if summary.scanner_breakdown:
        print_breakdown(summary.scanner_breakdown)


def print_breakdown(breakdown: dict[str, dict[str, int]]) -> None:
    """Print per-scanner severity counts as a table."""
    table = Table(title="Findings by scanner", show_header=True, header_style="bold")
    table.add_column("Scanner", style="bold")
    severities = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.INFO)
    for severity in severities:
        table.add_column(severity.label.capitalize(), style=severity_style(severity), justify="right")
    for scanner, counts in breakdown.items():
        table.add_row(scanner, *(str(counts.get(s.label, 0)) for s in severities))
    console.print(table)

