"""Candidate file discovery.

``find_files`` walks the scan root once, prunes ignored directory trees,
and keeps files whose relative POSIX path matches one of the requested
globs (case-insensitively). Files above ``MAX_FILE_SIZE`` and files whose
``stat`` fails are dropped silently. The result is deduplicated and sorted,
so overlapping globs (``**/*.json`` and ``**/*mcp*.json``) and repeated
scans yield the same list.

Prompt files use a two-tier strategy: a Tier 1 set of high-signal names
(prompts, agents, instructions, tool/MCP configs, well-known agent-rule
files) and a broad set of every source, doc and config file. When the broad
set holds more than ``TIER1_THRESHOLD`` files only Tier 1 is returned.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from agentsentry.discovery.ignore import (
    directory_globs,
    is_ignored,
    matches_any,
    resolve_ignore_patterns,
    to_glob_patterns,
)

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 256 * 1024
TIER1_THRESHOLD = 200

VENDORED_IGNORE: tuple[str, ...] = (
    "**/vendor/**",
    "**/third_party/**",
    "**/_vendor/**",
)

# ---------------------------------------------------------------------------
# Candidate sets
# ---------------------------------------------------------------------------

TIER1_PATTERNS: tuple[str, ...] = (
    "**/*prompt*",
    "**/*system*",
    "**/*instruction*",
    "**/*agent*",
    "**/prompts/**",
    "**/AGENTS.md",
    "**/CLAUDE.md",
    "**/SOUL.md",
    "**/SKILL.md",
    "**/RULES.md",
    "**/GUIDELINES.md",
    "**/.cursorrules",
    "**/.windsurfrules",
    "**/copilot-instructions.md",
    "**/*mcp*.json",
    "**/*tool*.json",
    "**/*tool*.yaml",
    "**/*tool*.yml",
)

BROAD_PATTERNS: tuple[str, ...] = (
    "**/*.md",
    "**/*.txt",
    "**/*.json",
    "**/*.yaml",
    "**/*.yml",
    "**/*.ts",
    "**/*.js",
    "**/*.py",
)

SOURCE_PATTERNS: tuple[str, ...] = (
    "**/*.js",
    "**/*.ts",
    "**/*.jsx",
    "**/*.tsx",
    "**/*.mjs",
    "**/*.cjs",
    "**/*.py",
)

SHELL_PATTERNS: tuple[str, ...] = (
    "**/*.sh",
    "**/*.bash",
)


def _ignore_globs(
    root: Path,
    exclude: Iterable[str] | None,
    include_vendored: bool,
    ignore_patterns: Iterable[str] | None,
) -> list[str]:
    globs = list(ignore_patterns) if ignore_patterns is not None else resolve_ignore_patterns(root)
    globs.extend(to_glob_patterns(exclude or ()))
    if not include_vendored:
        globs.extend(VENDORED_IGNORE)
    return globs


def _walk(root: Path, globs: Sequence[str]) -> Iterator[tuple[Path, str]]:
    """Yield ``(path, relative_posix_path)`` for every non-ignored, size-bounded file."""
    prune = directory_globs(globs)
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        prefix = "" if rel_dir == "." else rel_dir + "/"
        dirnames[:] = sorted(d for d in dirnames if not is_ignored(prefix + d, prune))
        for name in sorted(filenames):
            rel = prefix + name
            if is_ignored(rel, globs):
                continue
            path = Path(dirpath) / name
            try:
                stat = path.stat()
            except OSError:
                logger.debug("Cannot stat, skipping: %s", path)
                continue
            if not path.is_file():
                continue
            if stat.st_size > MAX_FILE_SIZE:
                logger.debug("Oversized file skipped (%d bytes): %s", stat.st_size, rel)
                continue
            yield path, rel


def find_files(
    root: Path,
    patterns: Sequence[str],
    exclude: Iterable[str] | None = None,
    include_vendored: bool = False,
    ignore_patterns: Iterable[str] | None = None,
) -> list[Path]:
    """Find files under ``root`` matching any of ``patterns``.

    Args:
        root: Scan root directory.
        patterns: Candidate globs relative to the root (``**/*.py``).
        exclude: Extra ignore patterns supplied by the caller.
        include_vendored: Also walk ``vendor/``, ``third_party/`` and
            ``_vendor/`` trees.
        ignore_patterns: Already-resolved glob ignore list. When None the
            root's ``.agentsentryignore`` merged with the defaults is used.

    Returns:
        Sorted, deduplicated absolute paths.
    """
    root = Path(root).resolve()
    globs = _ignore_globs(root, exclude, include_vendored, ignore_patterns)
    found = {path for path, rel in _walk(root, globs) if matches_any(rel, patterns, ignore_case=True)}
    return sorted(found)


def find_prompt_files(
    root: Path,
    exclude: Iterable[str] | None = None,
    include_vendored: bool = False,
    ignore_patterns: Iterable[str] | None = None,
) -> list[Path]:
    """Two-tier discovery of files worth scanning for prompt-style patterns.

    Returns Tier 1 alone when the broad candidate set exceeds
    ``TIER1_THRESHOLD`` files, otherwise the union of both tiers.
    """
    root = Path(root).resolve()
    globs = _ignore_globs(root, exclude, include_vendored, ignore_patterns)
    tier1: set[Path] = set()
    broad: set[Path] = set()
    for path, rel in _walk(root, globs):
        if matches_any(rel, TIER1_PATTERNS, ignore_case=True):
            tier1.add(path)
        if matches_any(rel, BROAD_PATTERNS, ignore_case=True):
            broad.add(path)
    if len(broad) > TIER1_THRESHOLD:
        logger.debug(
            "%d broad candidates exceed %d, scanning %d Tier 1 files only",
            len(broad), TIER1_THRESHOLD, len(tier1),
        )
        return sorted(tier1)
    return sorted(tier1 | broad)


def find_source_files(
    root: Path,
    exclude: Iterable[str] | None = None,
    include_vendored: bool = False,
    ignore_patterns: Iterable[str] | None = None,
    extra_patterns: Sequence[str] = (),
) -> list[Path]:
    """JavaScript/TypeScript/Python sources, plus any ``extra_patterns``."""
    return find_files(
        root,
        SOURCE_PATTERNS + tuple(extra_patterns),
        exclude=exclude,
        include_vendored=include_vendored,
        ignore_patterns=ignore_patterns,
    )


def read_text(path: Path) -> str:
    """Read a file as UTF-8.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    return Path(path).read_text(encoding="utf-8")
