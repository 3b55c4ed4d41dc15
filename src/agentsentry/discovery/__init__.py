"""Scope resolution: ignore rules and candidate file discovery.

Public API::

    from agentsentry.discovery import find_prompt_files, resolve_ignore_patterns

    ignore = resolve_ignore_patterns(root)
    files = find_prompt_files(root, ignore_patterns=ignore)
"""

from __future__ import annotations

from agentsentry.discovery.files import (
    MAX_FILE_SIZE,
    TIER1_THRESHOLD,
    find_files,
    find_prompt_files,
    find_source_files,
    read_text,
)
from agentsentry.discovery.ignore import (
    DEFAULT_IGNORE,
    IGNORE_FILENAME,
    IgnoreRuleset,
    is_ignored,
    load_ignore_patterns,
    parse_ignore_file,
    resolve_ignore_patterns,
    to_glob_patterns,
)

__all__ = [
    "DEFAULT_IGNORE",
    "IGNORE_FILENAME",
    "IgnoreRuleset",
    "MAX_FILE_SIZE",
    "TIER1_THRESHOLD",
    "find_files",
    "find_prompt_files",
    "find_source_files",
    "is_ignored",
    "load_ignore_patterns",
    "parse_ignore_file",
    "read_text",
    "resolve_ignore_patterns",
    "to_glob_patterns",
]
