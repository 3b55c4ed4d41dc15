"""Scanner base class and per-file worker pool.

Every detector subclasses ``Scanner`` and implements ``_scan``. The public
``scan`` method validates the target, times the run and wraps the output in
a ``ScanResult``. Findings live in a list private to that call; nothing is
shared between scanners or between scans.
"""

from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Sequence, TypeVar

from agentsentry.core.catalog import PatternCatalog, default_catalog
from agentsentry.core.models import Finding, ScanOptions, ScanResult
from agentsentry.discovery.ignore import resolve_ignore_patterns
from agentsentry.exceptions import ScanCancelled, TargetError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def default_workers() -> int:
    return min(8, os.cpu_count() or 4)


def validate_target(target: str | Path) -> Path:
    """Resolve the scan root.

    Raises:
        TargetError: If the target does not exist or is not a directory.
    """
    root = Path(target).expanduser().resolve()
    if not root.exists():
        raise TargetError(f"Target does not exist: {target}")
    if not root.is_dir():
        raise TargetError(f"Target is not a directory: {target}")
    return root


def _guarded(func: Callable[[Path], T], path: Path, options: ScanOptions) -> T | None:
    if options.cancelled:
        return None
    try:
        return func(path)
    except (OSError, UnicodeDecodeError):
        logger.debug("Skipping unreadable file: %s", path, exc_info=True)
        return None


def map_files(
    func: Callable[[Path], T],
    files: Sequence[Path],
    options: ScanOptions,
) -> list[T]:
    """Apply ``func`` to every file on a bounded thread pool.

    Results come back in input order. Files whose read fails with
    ``OSError`` or ``UnicodeDecodeError`` are skipped; any other exception
    propagates to the caller.

    Raises:
        ScanCancelled: If the scan's cancel event is set.
    """
    if not files:
        return []
    slots: list[T | None] = [None] * len(files)
    workers = options.max_workers or default_workers()
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {
            executor.submit(_guarded, func, path, options): index
            for index, path in enumerate(files)
        }
        for future in as_completed(futures):
            slots[futures[future]] = future.result()
    if options.cancelled:
        raise ScanCancelled("Scan cancelled")
    return [result for result in slots if result is not None]


class Scanner(ABC):
    """A detector run once per scan over one target directory.

    Attributes:
        key: Short identifier used to select the scanner from the CLI.
        name: Display name, also stamped on every finding.
        description: One-line description for ``agentsentry scanners``.
    """

    key: str = ""
    name: str = ""
    description: str = ""

    def scan(self, target: str | Path, options: ScanOptions | None = None) -> ScanResult:
        """Scan ``target`` and return this scanner's result.

        Args:
            target: Root directory of the project to audit.
            options: Scan configuration, defaults when None.

        Returns:
            ``ScanResult`` with findings, candidate file count and duration.

        Raises:
            TargetError: If the target is missing or not a directory.
            ScanCancelled: If the scan was cancelled while running.
        """
        options = options or ScanOptions()
        root = validate_target(target)
        start = time.perf_counter()
        findings, files_scanned = self._scan(root, options)
        duration_ms = int((time.perf_counter() - start) * 1000)
        return ScanResult(
            scanner=self.name,
            findings=findings,
            files_scanned=files_scanned,
            duration_ms=duration_ms,
        )

    @abstractmethod
    def _scan(self, root: Path, options: ScanOptions) -> tuple[list[Finding], int]:
        """Return ``(findings, files_scanned)`` for a validated root."""

    @staticmethod
    def catalog(options: ScanOptions) -> PatternCatalog:
        return options.catalog or default_catalog()

    @staticmethod
    def ignore_patterns(root: Path, options: ScanOptions) -> list[str]:
        if options.ignore_patterns is not None:
            return list(options.ignore_patterns)
        return resolve_ignore_patterns(root)
