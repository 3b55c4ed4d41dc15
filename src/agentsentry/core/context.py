"""Context classification for scanned files.

Pattern matches mean different things depending on where they occur. A
jailbreak phrase in a prompt template is a risk. The same phrase in a
blocklist, a test fixture, a README or AgentSentry's own pattern catalogue
is not. ``classify()`` returns every ``FileContext`` that applies to a
file; the severity adjuster then applies them in a fixed precedence order.

Categories
----------
- ``TOOL_TEST_SAMPLE``: AgentSentry's own test fixtures.
- ``TOOL_SOURCE``: AgentSentry's own source tree (pattern definitions).
- ``DEFENSE_LIST``: a blocklist / denylist of attack patterns.
- ``SYSTEM_PROMPT``: a system prompt or agent-rules file.
- ``MARKDOWN``: markdown documentation.
- ``TEST_OR_DOC``: generic test, fixture, example or docs file.
- ``SCORING_EXCLUDED``: narrower test-file predicate that keeps findings out
  of the numeric score.

A file with no applicable category is a plain project file.

Defense lists
-------------
Four independent signals are considered:

(a) the path uses defensive vocabulary (sanitize, filter, guard, ...);
(b) a JSON file's top-level object has a blocklist-like key;
(c) a JSON file's top-level object holds an array of more than 10 strings;
(d) a non-JSON file matches more than ``BREADTH_THRESHOLD`` distinct
    pattern categories.

A file is a defense list only when at least two signals fire. Path
vocabulary alone never suffices.
"""

from __future__ import annotations

import json
import re
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any

import agentsentry
from agentsentry.core.catalog import PatternCatalog, default_catalog

# More matched categories than this marks a catalogue, not an attack.
BREADTH_THRESHOLD = 5
# More string items than this in a JSON array marks a pattern list.
ARRAY_THRESHOLD = 10
# Independent signals needed to call a file a defense list.
DEFENSE_SIGNALS_REQUIRED = 2

_TOOL_SOURCE_ROOT = Path(agentsentry.__file__).resolve().parent


class FileContext(Enum):
    TOOL_TEST_SAMPLE = "tool-test-sample"
    TOOL_SOURCE = "tool-source"
    DEFENSE_LIST = "defense-list"
    SYSTEM_PROMPT = "system-prompt"
    MARKDOWN = "markdown"
    TEST_OR_DOC = "test-or-doc"
    SCORING_EXCLUDED = "scoring-excluded"


# ---------------------------------------------------------------------------
# Path vocabularies
# ---------------------------------------------------------------------------

_TOOL_TEST_SAMPLE = re.compile(r"/agentsentry/(?:tests|__tests__)/", re.IGNORECASE)
_TOOL_SOURCE_CHECKOUT = re.compile(r"/agentsentry/src/agentsentry/", re.IGNORECASE)

_DEFENSIVE_PATH = re.compile(
    r"sanitiz|filter|guard|defen[cs]|security|blocklist|denylist|blacklist"
    r"|detection|protect|firewall|waf|validator",
    re.IGNORECASE,
)

_BLOCKLIST_KEYS = (
    "patterns", "blocklist", "denylist", "blacklist", "blocked_patterns",
    "deny_patterns", "attack_patterns", "injection_patterns", "filter_rules",
    "rules",
)

_SYSTEM_PROMPT_FILES: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"/AGENTS\.md$",
        r"/SOUL\.md$",
        r"/SYSTEM\.md$",
        r"/RULES\.md$",
        r"/GUIDELINES\.md$",
        r"/INSTRUCTIONS\.md$",
        r"/CLAUDE\.md$",
        r"/\.cursorrules$",
        r"/copilot-instructions\.md$",
        r"/system[_-]?prompt",
    )
)

_TEST_DOC_DIRS = frozenset(
    {"test", "tests", "__tests__", "spec", "fixtures", "mocks", "examples", "docs"}
)
_DOC_FILENAMES = frozenset({"readme.md", "changelog.md", "contributing.md"})
_SCORING_TEST_DIRS = frozenset({"tests", "__tests__"})
_TEST_FILENAME = re.compile(r"\.(?:test|spec)\.", re.IGNORECASE)

_MARKDOWN_SUFFIXES = frozenset({".md", ".mdx", ".markdown"})
_JSON_SUFFIXES = frozenset({".json"})
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def _posix(path: str | Path) -> str:
    return str(path).replace("\\", "/")


def _relative(path: str | Path, root: str | Path | None) -> str:
    """Path relative to ``root`` when it lies under it, else the path itself."""
    if root is not None:
        try:
            return Path(path).relative_to(root).as_posix()
        except ValueError:
            pass
    return _posix(path)


def _dir_parts(rel_path: str) -> tuple[str, ...]:
    return PurePosixPath(rel_path).parts[:-1]


# ---------------------------------------------------------------------------
# File type helpers
# ---------------------------------------------------------------------------


def is_json_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in _JSON_SUFFIXES


def is_yaml_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in _YAML_SUFFIXES


def is_markdown_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in _MARKDOWN_SUFFIXES


def try_parse_json(content: str) -> Any | None:
    """Parse JSON, returning None instead of raising on malformed input.

    Nesting deep enough to exhaust the recursion limit counts as malformed.
    """
    try:
        return json.loads(content)
    except (ValueError, RecursionError):
        return None


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_tool_test_sample(path: str | Path) -> bool:
    """True for AgentSentry's own test fixtures (intentional attack samples)."""
    return bool(_TOOL_TEST_SAMPLE.search(_posix(path)))


def is_tool_source(path: str | Path) -> bool:
    """True for files belonging to AgentSentry's own source tree."""
    if _TOOL_SOURCE_CHECKOUT.search(_posix(path)):
        return True
    try:
        Path(path).resolve().relative_to(_TOOL_SOURCE_ROOT)
    except (ValueError, OSError):
        return False
    return True


def is_system_prompt_file(path: str | Path, root: str | Path | None = None) -> bool:
    """True for well-known agent-rule files and system prompt files."""
    normalized = "/" + _relative(path, root).lstrip("/")
    return any(p.search(normalized) for p in _SYSTEM_PROMPT_FILES)


def is_test_or_doc_file(path: str | Path, root: str | Path | None = None) -> bool:
    """True for files under test/doc directories or named like tests/docs."""
    rel = _relative(path, root)
    name = PurePosixPath(rel).name
    if any(part.lower() in _TEST_DOC_DIRS for part in _dir_parts(rel)):
        return True
    return bool(_TEST_FILENAME.search(name)) or name.lower() in _DOC_FILENAMES


def is_scoring_excluded_test(path: str | Path, root: str | Path | None = None) -> bool:
    """Narrow test-file predicate: ``tests/``, ``__tests__/``, ``*.test.*``, ``*.spec.*``."""
    rel = _relative(path, root)
    if any(part in _SCORING_TEST_DIRS for part in _dir_parts(rel)):
        return True
    return bool(_TEST_FILENAME.search(PurePosixPath(rel).name))


def matched_categories(content: str, catalog: PatternCatalog) -> set[str]:
    """Distinct pattern categories with at least one matching line."""
    lines = content.split("\n")
    categories: set[str] = set()
    for entry in catalog.injection:
        if entry.category in categories:
            continue
        if any(entry.pattern.search(line) for line in lines):
            categories.add(entry.category)
    return categories


def _json_signals(content: str) -> int:
    parsed = try_parse_json(content)
    if not isinstance(parsed, dict):
        return 0
    signals = 0
    if any(bk in key.lower() for key in parsed for bk in _BLOCKLIST_KEYS):
        signals += 1
    for value in parsed.values():
        if (
            isinstance(value, list)
            and len(value) > ARRAY_THRESHOLD
            and all(isinstance(item, str) for item in value)
        ):
            signals += 1
            break
    return signals


def defense_signals(
    path: str | Path,
    content: str,
    catalog: PatternCatalog | None = None,
    root: str | Path | None = None,
) -> int:
    """Count the independent defense-list signals that fire for a file."""
    signals = 1 if _DEFENSIVE_PATH.search(_relative(path, root)) else 0
    if is_json_file(path):
        signals += _json_signals(content)
    else:
        catalog = catalog or default_catalog()
        if len(matched_categories(content, catalog)) > BREADTH_THRESHOLD:
            signals += 1
    return signals


def is_defense_pattern_list(
    path: str | Path,
    content: str,
    catalog: PatternCatalog | None = None,
    root: str | Path | None = None,
) -> bool:
    return defense_signals(path, content, catalog, root) >= DEFENSE_SIGNALS_REQUIRED


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def classify(
    path: str | Path,
    content: str | None = None,
    catalog: PatternCatalog | None = None,
    root: str | Path | None = None,
) -> frozenset[FileContext]:
    """Return every context category applicable to a file.

    Args:
        path: File path (absolute, or relative to ``root``).
        content: File text. When None only path-based categories are
            evaluated and the file can never be a defense list.
        catalog: Catalogue used for the breadth signal.
        root: Scan target. Vocabulary and directory checks run on the path
            relative to it so that the location of the project itself does
            not influence classification.

    Returns:
        Frozen set of applicable categories, empty for plain project files.
    """
    contexts: set[FileContext] = set()
    if is_tool_test_sample(path):
        contexts.add(FileContext.TOOL_TEST_SAMPLE)
    if is_tool_source(path):
        contexts.add(FileContext.TOOL_SOURCE)
    if content is not None and is_defense_pattern_list(path, content, catalog, root):
        contexts.add(FileContext.DEFENSE_LIST)
    if is_system_prompt_file(path, root):
        contexts.add(FileContext.SYSTEM_PROMPT)
    if is_markdown_file(path):
        contexts.add(FileContext.MARKDOWN)
    if is_test_or_doc_file(path, root):
        contexts.add(FileContext.TEST_OR_DOC)
    if is_scoring_excluded_test(path, root):
        contexts.add(FileContext.SCORING_EXCLUDED)
    return frozenset(contexts)
