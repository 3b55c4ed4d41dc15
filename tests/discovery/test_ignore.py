"""Tests for ignore-file parsing, merging and glob matching."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentsentry.discovery.ignore import (
    DEFAULT_IGNORE,
    IGNORE_FILENAME,
    compile_glob,
    directory_globs,
    is_ignored,
    load_ignore_patterns,
    merge_patterns,
    parse_ignore_file,
    resolve_ignore_patterns,
    to_glob_patterns,
)


class TestParseIgnoreFile:
    def test_drops_blanks_and_comments(self) -> None:
        text = "# comment\n\nfixtures/\n   \n  *.log  \n#another\n!dist/\n"
        assert parse_ignore_file(text) == ["fixtures/", "*.log", "!dist/"]

    def test_empty_text(self) -> None:
        assert parse_ignore_file("") == []


class TestMergePatterns:
    """Negations only ever remove defaults."""

    def test_additions_are_appended(self) -> None:
        merged = merge_patterns(["fixtures/"])
        assert merged[: len(DEFAULT_IGNORE)] == DEFAULT_IGNORE
        assert merged[-1] == "fixtures/"

    def test_exact_negation_removes_default(self) -> None:
        merged = merge_patterns(["!dist/"])
        assert "dist/" not in merged

    def test_negation_without_trailing_slash(self) -> None:
        merged = merge_patterns(["!build"])
        assert "build/" not in merged

    def test_negation_does_not_touch_other_patterns(self) -> None:
        merged = merge_patterns(["!dist/app.js"])
        assert "dist/" in merged
        assert "!dist/app.js" not in merged

    def test_negation_never_removes_user_additions(self) -> None:
        merged = merge_patterns(["fixtures/", "!fixtures/"])
        assert "fixtures/" in merged


class TestLoadIgnorePatterns:
    def test_no_file(self, tmp_path: Path) -> None:
        ruleset = load_ignore_patterns(tmp_path)
        assert ruleset.has_file is False
        assert ruleset.patterns == DEFAULT_IGNORE

    def test_reads_project_file(self, tmp_path: Path) -> None:
        (tmp_path / IGNORE_FILENAME).write_text("# local\nsamples/\n!dist/\n", encoding="utf-8")
        ruleset = load_ignore_patterns(tmp_path)
        assert ruleset.has_file is True
        assert "samples/" in ruleset.patterns
        assert "dist/" not in ruleset.patterns

    def test_undecodable_file_counts_as_absent(self, tmp_path: Path) -> None:
        (tmp_path / IGNORE_FILENAME).write_bytes(b"\xff\xfe\xfa bad")
        ruleset = load_ignore_patterns(tmp_path)
        assert ruleset.has_file is False
        assert ruleset.patterns == DEFAULT_IGNORE


class TestToGlobPatterns:
    @pytest.mark.parametrize(
        "pattern, glob",
        [
            ("node_modules/", "**/node_modules/**"),
            ("/build/", "**/build/**"),
            ("*.min.js", "**/*.min.js"),
            ("secret?.txt", "**/secret?.txt"),
            ("samples", "**/samples/**"),
            ("**/package-lock.json", "**/package-lock.json"),
            ("docs/generated/*.md", "docs/generated/*.md"),
        ],
    )
    def test_conversion(self, pattern: str, glob: str) -> None:
        assert to_glob_patterns([pattern]) == [glob]

    def test_resolve_uses_defaults(self, tmp_path: Path) -> None:
        globs = resolve_ignore_patterns(tmp_path)
        assert "**/.git/**" in globs
        assert "**/*.lock" in globs


class TestCompileGlob:
    """Glob semantics over relative POSIX paths."""

    @pytest.mark.parametrize(
        "glob, path, expected",
        [
            ("**/node_modules/**", "node_modules", True),
            ("**/node_modules/**", "node_modules/x/y.js", True),
            ("**/node_modules/**", "a/b/node_modules/c.js", True),
            ("**/node_modules/**", "my_node_modules/c.js", False),
            ("**/*.min.js", "app.min.js", True),
            ("**/*.min.js", "web/static/app.min.js", True),
            ("**/*.min.js", "app.js", False),
            ("*.md", "README.md", True),
            ("*.md", "docs/README.md", False),
            ("**/*.md", "docs/README.md", True),
            ("docs/*.md", "docs/a/b.md", False),
            ("file?.txt", "file1.txt", True),
            ("file?.txt", "file12.txt", False),
            ("a.b", "axb", False),
        ],
    )
    def test_matching(self, glob: str, path: str, expected: bool) -> None:
        assert bool(compile_glob(glob).match(path)) is expected

    def test_ignore_case(self) -> None:
        assert compile_glob("**/AGENTS.md", True).match("sub/agents.md")
        assert not compile_glob("**/AGENTS.md").match("sub/agents.md")


class TestIsIgnored:
    def test_default_lockfiles(self) -> None:
        globs = to_glob_patterns(DEFAULT_IGNORE)
        assert is_ignored("package-lock.json", globs)
        assert is_ignored("web/package-lock.json", globs)
        assert is_ignored("poetry.lock", globs)
        assert not is_ignored("src/agent.py", globs)

    def test_directory_globs(self) -> None:
        globs = ["**/dist/**", "**/*.map", "docs/*.md"]
        assert directory_globs(globs) == ["**/dist/**"]
