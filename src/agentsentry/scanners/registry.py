"""Scanner registry and scan orchestration.

``ScannerRegistry.run_all`` is the single entry point for a full scan:

1. Validate the target and resolve the ignore list and pattern catalogue
   once, so every scanner sees the same read-only configuration.
2. Run all registered scanners concurrently, each on its own thread with
   its own result buffer.
3. Wait for every scanner to finish (join point). A scanner that raises is
   logged and recorded as a ``ScanResult`` with ``error`` set; the others
   are unaffected.
4. Deduplicate findings per scanner and reduce everything to a ``Summary``.

A set cancel event makes scanners stop picking up files; the registry then
discards whatever was collected and raises ``ScanCancelled``.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from agentsentry import __version__
from agentsentry.core.catalog import default_catalog
from agentsentry.core.models import Report, ScanOptions, ScanResult
from agentsentry.core.scorer import calculate_summary, deduplicate
from agentsentry.discovery.ignore import resolve_ignore_patterns
from agentsentry.exceptions import AgentSentryError, ScanCancelled
from agentsentry.scanners.base import Scanner, validate_target
from agentsentry.scanners.clipboard import ClipboardExfiltrationScanner
from agentsentry.scanners.command_injection import CommandInjectionScanner
from agentsentry.scanners.prompt_injection import PromptInjectionScanner
from agentsentry.scanners.red_team import RedTeamSimulator

logger = logging.getLogger(__name__)


class ScannerRegistry:
    """Ordered collection of scanners run together as one scan.

    Attributes:
        scanners: Registered scanners, in registration (and report) order.
    """

    def __init__(self) -> None:
        self.scanners: list[Scanner] = []

    def register(self, scanner: Scanner) -> None:
        """Add a scanner. Results are reported in registration order."""
        self.scanners.append(scanner)

    def select(self, keys: Iterable[str]) -> ScannerRegistry:
        """Return a registry holding only the scanners named by ``keys``.

        Keys match a scanner's ``key`` or its display name, case-insensitively.

        Raises:
            AgentSentryError: If a key matches no registered scanner.
        """
        wanted = [k.lower() for k in keys]
        selected = ScannerRegistry()
        for key in wanted:
            match = next(
                (s for s in self.scanners if key in (s.key.lower(), s.name.lower())),
                None,
            )
            if match is None:
                raise AgentSentryError(f"Unknown scanner: {key}")
            if match not in selected.scanners:
                selected.register(match)
        return selected

    def run_all(self, target: str | Path, options: ScanOptions | None = None) -> Report:
        """Run every registered scanner against ``target``.

        Args:
            target: Project root to audit.
            options: Scan configuration. Unset ignore patterns and catalogue
                are resolved here, once, for all scanners.

        Returns:
            The aggregated ``Report``.

        Raises:
            TargetError: If the target is missing or not a directory.
            ScanCancelled: If the cancel event was set during the scan.
        """
        options = options or ScanOptions()
        root = validate_target(target)
        if options.ignore_patterns is None:
            options = replace(options, ignore_patterns=tuple(resolve_ignore_patterns(root)))
        if options.catalog is None:
            options = replace(options, catalog=default_catalog())

        slots: list[ScanResult | None] = [None] * len(self.scanners)
        if self.scanners:
            with ThreadPoolExecutor(max_workers=len(self.scanners)) as executor:
                futures = {
                    executor.submit(self._run_one, scanner, root, options): index
                    for index, scanner in enumerate(self.scanners)
                }
                for future in as_completed(futures):
                    slots[futures[future]] = future.result()

        if options.cancelled:
            raise ScanCancelled(f"Scan of {root} cancelled; results discarded")

        results = [
            replace(result, findings=deduplicate(result.findings))
            for result in slots
            if result is not None
        ]
        return Report(
            target=str(root),
            timestamp=datetime.now(timezone.utc).isoformat(),
            version=__version__,
            results=results,
            summary=calculate_summary(results),
        )

    @staticmethod
    def _run_one(scanner: Scanner, root: Path, options: ScanOptions) -> ScanResult:
        try:
            return scanner.scan(root, options)
        except ScanCancelled:
            return ScanResult(scanner=scanner.name, error="cancelled")
        except Exception as exc:
            logger.warning("Scanner failed: %s", scanner.name, exc_info=True)
            return ScanResult(scanner=scanner.name, error=f"{type(exc).__name__}: {exc}")


def default_registry() -> ScannerRegistry:
    """Create a ScannerRegistry pre-loaded with all built-in scanners.

    The default registry includes:
    1. ``PromptInjectionScanner`` -- injection patterns in prompt files
    2. ``CommandInjectionScanner`` -- interpolated ping/dig/nslookup calls
    3. ``ClipboardExfiltrationScanner`` -- clipboard reads sent over the network
    4. ``RedTeamSimulator`` -- missing defenses per attack vector

    Returns:
        A ScannerRegistry with all four built-in scanners registered.
    """
    registry = ScannerRegistry()
    registry.register(PromptInjectionScanner())
    registry.register(CommandInjectionScanner())
    registry.register(ClipboardExfiltrationScanner())
    registry.register(RedTeamSimulator())
    return registry
