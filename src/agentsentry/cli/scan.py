"""``agentsentry scan PATH`` -- Audit an AI-agent project tree.

Runs every registered scanner (or the ones picked with ``--scanner``)
against PATH, prints a findings table per scanner and a score summary, or
the JSON report with ``--format json``.

Exit Codes:
    0 -- No critical or high finding counts toward the score.
    1 -- At least one scored high finding (and no scored critical).
    2 -- At least one scored critical finding, or invalid usage.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from agentsentry.core.catalog import default_catalog, load_pattern_file
from agentsentry.core.models import Report, ScanOptions
from agentsentry.core.scorer import exit_code
from agentsentry.exceptions import AgentSentryError, PatternCatalogError
from agentsentry.scanners.registry import ScannerRegistry, default_registry


def configure_logging(verbose: bool) -> None:
    """Send log records to stderr through Rich; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_registry(scanner_keys: tuple[str, ...]) -> ScannerRegistry:
    registry = default_registry()
    if not scanner_keys:
        return registry
    try:
        return registry.select(scanner_keys)
    except AgentSentryError as exc:
        raise click.BadParameter(str(exc), param_hint="--scanner") from exc


def _build_options(
    exclude: tuple[str, ...],
    include_vendored: bool,
    patterns_file: str | None,
    workers: int | None,
) -> ScanOptions:
    catalog = default_catalog()
    if patterns_file is not None:
        try:
            catalog = catalog.extended(load_pattern_file(Path(patterns_file)))
        except PatternCatalogError as exc:
            raise click.BadParameter(str(exc), param_hint="--patterns") from exc
    return ScanOptions(
        exclude=exclude,
        include_vendored=include_vendored,
        catalog=catalog,
        max_workers=workers,
        cancel_event=threading.Event(),
    )


def run_scan(registry: ScannerRegistry, target: str, options: ScanOptions) -> Report:
    """Run the scan off the main thread so Ctrl-C can cancel it cleanly."""
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(registry.run_all, target, options)
        try:
            return future.result()
        except KeyboardInterrupt:
            if options.cancel_event is not None:
                options.cancel_event.set()
            raise click.Abort() from None


@click.command("scan")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option(
    "--exclude", "-e",
    multiple=True,
    help="Extra ignore pattern (repeatable), same syntax as .agentsentryignore.",
)
@click.option(
    "--include-vendored",
    is_flag=True,
    default=False,
    help="Scan vendored trees and stop downgrading AgentSentry's own source.",
)
@click.option(
    "--patterns", "patterns_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML file with extra injection patterns.",
)
@click.option(
    "--scanner", "scanner_keys",
    multiple=True,
    help="Run only this scanner (repeatable). See 'agentsentry scanners'.",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format: text (default) or json.",
)
@click.option(
    "--output", "-o", "output_file",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Also write the JSON report to this file.",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum worker threads per scanner (default: min(8, CPUs)).",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def scan_command(
    path: str,
    exclude: tuple[str, ...],
    include_vendored: bool,
    patterns_file: str | None,
    scanner_keys: tuple[str, ...],
    output_format: str,
    output_file: str | None,
    workers: int | None,
    verbose: bool,
) -> None:
    """Scan PATH for prompt injection, command injection, clipboard
    exfiltration and missing agent defenses.

    Exit code 2 on a scored critical finding, 1 on a scored high finding,
    0 otherwise.
    """
    configure_logging(verbose)
    registry = _build_registry(scanner_keys)
    options = _build_options(exclude, include_vendored, patterns_file, workers)

    try:
        report = run_scan(registry, path, options)
    except AgentSentryError as exc:
        raise click.ClickException(str(exc)) from exc

    data = report.to_dict()
    if output_file is not None:
        Path(output_file).write_text(json.dumps(data, indent=2), encoding="utf-8")

    if output_format == "json":
        click.echo(json.dumps(data, indent=2))
    else:
        from agentsentry.cli.output import print_report
        print_report(report)
        if output_file is not None:
            click.echo(f"JSON report written to: {Path(output_file).resolve()}")

    sys.exit(exit_code(report.findings))
