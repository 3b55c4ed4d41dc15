"""Read-only pattern registry handed to detectors.

A ``PatternCatalog`` bundles the injection pattern entries, the attack
vectors and the category recommendation table. The built-in catalogue is
constructed once per process by ``default_catalog()``; detectors receive a
catalogue through ``ScanOptions.catalog`` so tests can substitute one.

User catalogues extend the built-in one from a YAML file::

    patterns:
      - id: CUSTOM-001
        category: jailbreak
        regex: "\\bsudo\\s+mode\\b"
        severity: high
        description: Sudo mode jailbreak
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

import yaml

from agentsentry.core.models import Severity
from agentsentry.core.patterns import (
    INJECTION_PATTERNS,
    RECOMMENDATIONS,
    PatternEntry,
    recommendation_for,
)
from agentsentry.core.vectors import ATTACK_VECTORS, AttackVector
from agentsentry.exceptions import PatternCatalogError

_REQUIRED_KEYS = ("id", "category", "regex")


@dataclass(frozen=True)
class PatternCatalog:
    """Immutable set of detection rules used by one scan."""

    injection: tuple[PatternEntry, ...]
    vectors: tuple[AttackVector, ...]
    recommendations: dict[str, str] = field(default_factory=dict, hash=False, compare=False)

    @property
    def categories(self) -> frozenset[str]:
        return frozenset(entry.category for entry in self.injection)

    def recommendation(self, category: str) -> str:
        return recommendation_for(category, self.recommendations)

    def extended(self, entries: Iterable[PatternEntry]) -> PatternCatalog:
        """Return a new catalogue with ``entries`` appended.

        Raises:
            PatternCatalogError: If an entry id collides with an existing one.
        """
        known = {entry.id for entry in self.injection}
        added: list[PatternEntry] = []
        for entry in entries:
            if entry.id in known:
                raise PatternCatalogError(f"Duplicate pattern id: {entry.id}")
            known.add(entry.id)
            added.append(entry)
        return PatternCatalog(
            injection=self.injection + tuple(added),
            vectors=self.vectors,
            recommendations=self.recommendations,
        )


@functools.lru_cache(maxsize=1)
def default_catalog() -> PatternCatalog:
    """Build the built-in catalogue (once per process)."""
    return PatternCatalog(
        injection=INJECTION_PATTERNS,
        vectors=ATTACK_VECTORS,
        recommendations=dict(RECOMMENDATIONS),
    )


def _parse_entry(data: Any, source: Path) -> PatternEntry:
    if not isinstance(data, dict):
        raise PatternCatalogError(f"Pattern entries must be mappings in {source}")
    missing = [key for key in _REQUIRED_KEYS if key not in data]
    if missing:
        raise PatternCatalogError(
            f"Pattern in {source} is missing keys: {', '.join(missing)}"
        )
    rule_id = str(data["id"])
    try:
        compiled = re.compile(str(data["regex"]), re.IGNORECASE)
    except re.error as exc:
        raise PatternCatalogError(f"Invalid regex in pattern '{rule_id}': {exc}") from exc
    try:
        severity = Severity.from_label(str(data.get("severity", "medium")))
    except ValueError as exc:
        raise PatternCatalogError(f"Pattern '{rule_id}': {exc}") from exc
    return PatternEntry(
        id=rule_id,
        category=str(data["category"]),
        pattern=compiled,
        severity=severity,
        description=str(data.get("description", rule_id)),
        path_traversal=bool(data.get("path_traversal", False)),
    )


def load_pattern_file(path: Path) -> list[PatternEntry]:
    """Load extra injection patterns from a YAML file.

    Args:
        path: YAML file with a top-level ``patterns`` list.

    Returns:
        Parsed entries, in file order.

    Raises:
        PatternCatalogError: If the file cannot be read, is not valid YAML,
            or contains a malformed entry.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise PatternCatalogError(f"Cannot read pattern file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise PatternCatalogError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("patterns"), list):
        raise PatternCatalogError(f"Invalid pattern file format in {path}")

    return [_parse_entry(item, path) for item in data["patterns"]]
