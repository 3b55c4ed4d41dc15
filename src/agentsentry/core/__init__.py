"""Heuristic scanning engine core.

Submodules
----------
- ``models``: Data types (Severity, Confidence, Finding, ScanResult, Report).
- ``patterns``: Built-in injection pattern catalogue and recommendations.
- ``vectors``: Attack vectors and the defense-evidence simulator.
- ``catalog``: The read-only ``PatternCatalog`` handed to detectors.
- ``context``: File context classification.
- ``adjuster``: Context-driven severity adjustment.
- ``scorer``: Deduplication, summary and score computation.

Common names are re-exported here::

    from agentsentry.core import Finding, Severity, default_catalog
"""

from agentsentry.core.catalog import PatternCatalog, default_catalog, load_pattern_file
from agentsentry.core.models import (
    Confidence,
    Finding,
    Report,
    ScanOptions,
    ScanResult,
    Severity,
    Summary,
)

__all__ = [
    "Confidence",
    "Finding",
    "PatternCatalog",
    "Report",
    "ScanOptions",
    "ScanResult",
    "Severity",
    "Summary",
    "default_catalog",
    "load_pattern_file",
]
