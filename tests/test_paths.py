"""Tests for path normalization, exclusion patterns and strip prefixes."""

import warnings

import pytest

from linkseal.codes import ErrorCode
from linkseal.errors import AmbiguousStripError, ConfigurationError
from linkseal.kernel.paths import (
    ExclusionMatcher,
    apply_strip,
    is_excluded,
    matching_strip_prefix,
    normalize_artifact_path,
    validate_strip_prefixes,
)


class TestNormalizeArtifactPath:

    def test_strips_dot_segments(self):
        assert normalize_artifact_path("./src//a.txt") == "src/a.txt"
        assert normalize_artifact_path("src/./gen/../a.txt") == "src/a.txt"

    def test_backslashes_become_forward_slashes(self):
        assert normalize_artifact_path("src\\gen\\b.go") == "src/gen/b.go"

    def test_current_directory_is_empty(self):
        assert normalize_artifact_path(".") == ""
        assert normalize_artifact_path("./") == ""


class TestExclusion:

    def test_unanchored_pattern_matches_at_any_depth(self):
        assert is_excluded("src/gen/b.go", ["gen/**"])
        assert is_excluded("gen/b.go", ["gen/**"])
        assert not is_excluded("src/a.go", ["gen/**"])

    def test_leading_slash_anchors_to_root(self):
        assert is_excluded("gen/b.go", ["/gen/**"])
        assert not is_excluded("src/gen/b.go", ["/gen/**"])

    def test_single_star_does_not_cross_separator(self):
        assert is_excluded("src/a.go", ["/src/*.go"])
        assert not is_excluded("src/gen/b.go", ["/src/*.go"])

    def test_double_star_crosses_separators(self):
        assert is_excluded("src/gen/deep/b.go", ["/src/**/*.go"])

    def test_extension_pattern_any_depth(self):
        assert is_excluded("a/b/c.log", ["*.log"])
        assert is_excluded("c.log", ["*.log"])
        assert not is_excluded("a/b/c.log.txt", ["*.log"])

    def test_matching_is_case_sensitive(self):
        assert not is_excluded("src/a.go", ["*.GO"])
        assert is_excluded("src/a.GO", ["*.GO"])

    def test_directory_only_pattern(self):
        matcher = ExclusionMatcher(["build/"])
        assert matcher.matches("out/build", is_dir=True)
        assert matcher.matches("out/build/x.o")
        assert not matcher.matches("out/build", is_dir=False)

    def test_any_rule_excludes(self):
        rules = ["*.tmp", "/vendor/**"]
        assert is_excluded("x/y.tmp", rules)
        assert is_excluded("vendor/lib/a.py", rules)
        assert not is_excluded("src/vendor/a.py", rules)

    def test_platform_separators_normalized_before_matching(self):
        assert is_excluded("src\\gen\\b.go", ["gen/**"])

    def test_no_rules_excludes_nothing(self):
        matcher = ExclusionMatcher()
        assert not matcher
        assert not matcher.matches("anything")

    def test_negation_rejected(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ExclusionMatcher(["!keep.txt"])
        assert exc_info.value.code == ErrorCode.INVALID_PATTERN

    def test_empty_pattern_rejected(self):
        with pytest.raises(ConfigurationError):
            ExclusionMatcher(["  "])

    def test_compiled_matcher_accepted(self):
        matcher = ExclusionMatcher(["gen/**"])
        assert is_excluded("src/gen/b.go", matcher)


class TestStripPrefixes:

    def test_nested_prefixes_conflict(self):
        with pytest.raises(ConfigurationError) as exc_info:
            validate_strip_prefixes(["a/b", "a/b/c"])
        assert exc_info.value.code == ErrorCode.STRIP_PREFIX_CONFLICT
        assert exc_info.value.details["prefixes"] == ["a/b", "a/b/c"]

    def test_conflict_detected_in_either_order(self):
        with pytest.raises(ConfigurationError):
            validate_strip_prefixes(["a/b/c", "a/b"])

    def test_disjoint_prefixes_accepted(self):
        assert validate_strip_prefixes(["a/b", "x/y"]) == ("a/b", "x/y")

    def test_identical_prefixes_conflict(self):
        with pytest.raises(ConfigurationError):
            validate_strip_prefixes(["a/", "a/"])

    def test_empty_prefix_rejected(self):
        with pytest.raises(ConfigurationError):
            validate_strip_prefixes([""])

    def test_apply_strip_removes_exact_prefix(self):
        assert apply_strip("a/b/c.txt", ["a/b/"]) == "c.txt"
        assert apply_strip("a/b/c.txt", ["a/b"]) == "/c.txt"

    def test_apply_strip_without_match_keeps_path(self):
        assert apply_strip("x/c.txt", ["a/b/"]) == "x/c.txt"
        assert apply_strip("x/c.txt", []) == "x/c.txt"

    def test_prefix_equal_to_path_does_not_match(self):
        assert apply_strip("a/b", ["a/b"]) == "a/b"

    def test_more_than_one_match_is_ambiguous(self):
        # Only reachable with an unvalidated prefix list
        with pytest.raises(AmbiguousStripError) as exc_info:
            matching_strip_prefix("a/b/c.txt", ["a/", "a/b/"])
        assert exc_info.value.path == "a/b/c.txt"
        assert exc_info.value.prefixes == ["a/", "a/b/"]
        assert isinstance(exc_info.value, ConfigurationError)


def test_matcher_compiles_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        matcher = ExclusionMatcher(["gen/**", "/vendor/**", "*.log", "build/"])
    assert matcher.matches("src/gen/b.go")
