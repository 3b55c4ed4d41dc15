"""AgentSentry exception hierarchy.

All public exceptions inherit from AgentSentryError, giving callers a single
base class to catch when they want to handle any AgentSentry-specific failure
without swallowing unrelated errors.

Per-file problems (unreadable, oversized, undecodable, malformed JSON) are
never raised to callers; they are skipped inside the scanners.
"""


class AgentSentryError(Exception):
    """Base exception for all AgentSentry errors."""


class TargetError(AgentSentryError):
    """Raised when the scan target is missing or is not a directory.

    This is the only hard failure of a scan and is raised before any
    file is discovered.
    """


class PatternCatalogError(AgentSentryError):
    """Raised when a user-supplied pattern catalogue cannot be loaded.

    Covers unreadable or malformed YAML files, missing required keys,
    unknown severities and regexes that fail to compile.
    """


class ScanCancelled(AgentSentryError):
    """Raised when a scan is cancelled before all scanners finished.

    In-flight results are discarded; no partial report is produced.
    """
