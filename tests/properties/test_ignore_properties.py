"""Property-based tests for ignore-file handling.

Verifies with Hypothesis that:
    - Parsing never yields blank or comment lines.
    - Negations only ever remove built-in defaults.
    - Directory globs match every path below the directory.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from agentsentry.discovery.ignore import (
    DEFAULT_IGNORE,
    compile_glob,
    merge_patterns,
    parse_ignore_file,
    to_glob_patterns,
)

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

segment = st.text(
    alphabet=st.characters(categories=("Ll", "Lu", "Nd"), include_characters="_-."),
    min_size=1,
    max_size=12,
).filter(lambda s: s not in {".", ".."})

lines = st.lists(st.text(alphabet=st.characters(exclude_characters="\n\r"), max_size=20), max_size=20)
user_patterns = st.lists(
    st.one_of(segment, segment.map(lambda s: f"{s}/"), st.sampled_from(DEFAULT_IGNORE).map(lambda s: f"!{s}")),
    max_size=10,
)


class TestParseProperties:
    @given(raw=lines)
    def test_no_blank_or_comment_lines(self, raw: list[str]) -> None:
        for pattern in parse_ignore_file("\n".join(raw)):
            assert pattern
            assert pattern == pattern.strip()
            assert not pattern.startswith("#")


class TestMergeProperties:
    @given(patterns=user_patterns)
    def test_result_is_defaults_subset_plus_additions(self, patterns: list[str]) -> None:
        merged = merge_patterns(patterns)
        additions = [p for p in patterns if not p.startswith("!")]
        kept = merged[: len(merged) - len(additions)]
        assert list(merged[len(kept):]) == additions
        assert all(p in DEFAULT_IGNORE for p in kept)

    @given(patterns=user_patterns)
    def test_negations_are_never_emitted(self, patterns: list[str]) -> None:
        assert not any(p.startswith("!") for p in merge_patterns(patterns))


class TestGlobProperties:
    @given(directory=segment, rest=st.lists(segment, max_size=4), prefix=st.lists(segment, max_size=3))
    def test_directory_glob_matches_subtree(
        self, directory: str, rest: list[str], prefix: list[str]
    ) -> None:
        [glob] = to_glob_patterns([f"{directory}/"])
        path = "/".join(prefix + [directory] + rest)
        assert compile_glob(glob).match(path)
