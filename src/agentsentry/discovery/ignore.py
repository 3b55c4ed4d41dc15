"""Ignore rules: built-in exclusions merged with ``.agentsentryignore``.

The project-local ignore file uses a gitignore-like syntax:

- blank lines and lines starting with ``#`` are dropped;
- ``!pattern`` removes a built-in default, but only when it equals that
  default exactly or after stripping the default's trailing ``/``. A
  negation cannot re-include a path excluded by a different pattern;
- ``dir/`` matches the directory anywhere in the tree;
- ``*``, ``**`` and ``?`` are the usual glob wildcards.

Surviving patterns are converted to glob expressions over POSIX paths
relative to the scan root, and compiled to anchored regexes.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".agentsentryignore"

# ---------------------------------------------------------------------------
# Built-in exclusions
# ---------------------------------------------------------------------------

DEFAULT_IGNORE: tuple[str, ...] = (
    # Version control
    ".git/",
    ".hg/",
    ".svn/",
    # Dependencies and virtual environments
    "node_modules/",
    "bower_components/",
    ".venv/",
    "venv/",
    "site-packages/",
    "__pycache__/",
    ".tox/",
    ".mypy_cache/",
    # Build output
    "dist/",
    "build/",
    "out/",
    ".next/",
    "coverage/",
    ".cache/",
    # Lockfiles
    "**/package-lock.json",
    "**/pnpm-lock.yaml",
    "**/npm-shrinkwrap.json",
    "*.lock",
    # Minified and generated files
    "*.min.js",
    "*.min.css",
    "*.bundle.js",
    "*.map",
    "*.generated.*",
    # Generated binaries and model blobs
    "*.pyc",
    "*.so",
    "*.dll",
    "*.exe",
    "*.wasm",
    "*.bin",
    "*.onnx",
    "*.safetensors",
    "*.ckpt",
    "*.sqlite",
    # Browser profiles and user data
    "User Data/",
    "CacheStorage/",
    "Code Cache/",
    "GPUCache/",
    "Service Worker/",
    "IndexedDB/",
    # Agent session logs
    "session-logs/",
    ".sessions/",
)


@dataclass(frozen=True)
class IgnoreRuleset:
    """Merged ignore patterns (defaults minus negations, plus additions).

    Attributes:
        patterns: Ignore patterns in gitignore-like syntax, defaults first.
        has_file: True when a project ignore file was found and read.
    """

    patterns: tuple[str, ...]
    has_file: bool = False


def parse_ignore_file(text: str) -> list[str]:
    """Split ignore-file text into patterns, dropping blanks and comments."""
    stripped = (line.strip() for line in text.split("\n"))
    return [line for line in stripped if line and not line.startswith("#")]


def merge_patterns(
    user_patterns: Sequence[str], defaults: Sequence[str] = DEFAULT_IGNORE
) -> tuple[str, ...]:
    """Merge user patterns into the defaults.

    Negations drop a default only on an exact match, or a match against the
    default with its trailing ``/`` removed.
    """
    negations = [p[1:] for p in user_patterns if p.startswith("!")]
    additions = [p for p in user_patterns if not p.startswith("!")]
    kept = [
        default
        for default in defaults
        if not any(neg == default or neg == default.rstrip("/") for neg in negations)
    ]
    return tuple(kept + additions)


def load_ignore_patterns(root: Path) -> IgnoreRuleset:
    """Read ``.agentsentryignore`` under ``root`` and merge it with the defaults.

    An unreadable or undecodable ignore file counts as absent; the built-in
    defaults still apply.
    """
    ignore_path = Path(root) / IGNORE_FILENAME
    user_patterns: list[str] = []
    has_file = False
    if ignore_path.is_file():
        try:
            user_patterns = parse_ignore_file(ignore_path.read_text(encoding="utf-8"))
            has_file = True
        except (OSError, UnicodeDecodeError):
            logger.debug("Ignoring unreadable ignore file: %s", ignore_path, exc_info=True)
    return IgnoreRuleset(patterns=merge_patterns(user_patterns), has_file=has_file)


def to_glob_patterns(patterns: Iterable[str]) -> list[str]:
    """Convert ignore-file patterns into glob ignore expressions.

    - leading ``/`` is removed;
    - ``dir/`` becomes ``**/dir/**``;
    - a name without ``/`` or ``**`` becomes ``**/name`` when it holds a
      wildcard, otherwise it is taken as a directory: ``**/name/**``;
    - anything else passes through unchanged.
    """
    globs: list[str] = []
    for pattern in patterns:
        p = pattern[1:] if pattern.startswith("/") else pattern
        if p.endswith("/"):
            globs.append(f"**/{p}**")
        elif "/" not in p and "**" not in p:
            if "*" in p or "?" in p:
                globs.append(f"**/{p}")
            else:
                globs.append(f"**/{p}/**")
        else:
            globs.append(p)
    return globs


def resolve_ignore_patterns(root: Path) -> list[str]:
    """Ordered glob ignore list for a scan target."""
    return to_glob_patterns(load_ignore_patterns(root).patterns)


# ---------------------------------------------------------------------------
# Glob matching
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=1024)
def compile_glob(pattern: str, ignore_case: bool = False) -> re.Pattern[str]:
    """Compile a ``*``/``**``/``?`` glob into a regex over relative POSIX paths.

    ``**/`` matches zero or more leading directories, a trailing ``/**``
    matches the directory itself and everything under it, ``*`` and ``?``
    never cross a ``/``.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == n:
            out.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile("".join(out) + r"\Z", flags)


def matches_any(rel_path: str, globs: Iterable[str], ignore_case: bool = False) -> bool:
    return any(compile_glob(g, ignore_case).match(rel_path) for g in globs)


def is_ignored(rel_path: str, globs: Iterable[str]) -> bool:
    """True when ``rel_path`` (POSIX, relative to the root) matches an ignore glob."""
    return matches_any(rel_path, globs)


def directory_globs(globs: Iterable[str]) -> list[str]:
    """Globs that exclude whole directory trees, usable for pruning a walk."""
    return [g for g in globs if g.endswith("/**")]
