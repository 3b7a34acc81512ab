"""Path normalization, exclusion patterns and left-strip prefixes.

Artifact paths are always handled in normalized form: relative to the
recording base path, forward slashes, no "." or ".." segments. Exclusion
patterns and strip prefixes are evaluated against that form only, so the
result does not depend on the host's path separator.

Exclusion semantics (gitignore patterns, compiled with pathspec):
- ``*`` and ``?`` never cross "/", ``**`` does
- a pattern with a leading "/" is anchored to the base path
- any other pattern matches at any depth ("gen/**" excludes "src/gen/b.go")
- a trailing "/" restricts a pattern to directories (and their contents)
- matching is case-sensitive; ``!`` negation is not supported
- a path is excluded if any pattern matches (no precedence between rules)
"""

import posixpath
from typing import Iterable, Optional, Sequence, Union

import pathspec

from linkseal.codes import ErrorCode
from linkseal.errors import AmbiguousStripError, ConfigurationError


def normalize_artifact_path(path: str) -> str:
    """Normalize a relative path to forward-slash form without "./" noise."""
    normalized = posixpath.normpath(path.replace("\\", "/"))
    if normalized == ".":
        return ""
    return normalized


def _anchor_pattern(pattern: str) -> str:
    if pattern.startswith("/") or pattern.startswith("**"):
        return pattern
    return "**/" + pattern


class ExclusionMatcher:
    """Compiled set of exclusion patterns."""

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = tuple(patterns)
        for pattern in self.patterns:
            if not pattern.strip():
                raise ConfigurationError(
                    "Exclude patterns must not be empty",
                    code=ErrorCode.INVALID_PATTERN,
                    details={"pattern": pattern},
                )
            if pattern.startswith("!"):
                raise ConfigurationError(
                    f"Negated exclude patterns are not supported: '{pattern}'",
                    code=ErrorCode.INVALID_PATTERN,
                    details={"pattern": pattern},
                )
        try:
            self._spec = pathspec.PathSpec.from_lines(
                "gitignore", [_anchor_pattern(p) for p in self.patterns]
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid exclude pattern: {e}",
                code=ErrorCode.INVALID_PATTERN,
                details={"patterns": list(self.patterns)},
            ) from e

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def matches(self, path: str, is_dir: bool = False) -> bool:
        """Return True if the normalized relative path is excluded."""
        if not self.patterns or not path:
            return False
        candidate = path + "/" if is_dir else path
        return self._spec.match_file(candidate)


def is_excluded(
    path: str,
    rules: Union[ExclusionMatcher, Sequence[str]],
    is_dir: bool = False,
) -> bool:
    """Test a path against exclusion rules.

    Args:
        path: Path relative to the recording base path
        rules: Pattern strings or an already compiled ExclusionMatcher
        is_dir: Whether the path names a directory

    Returns:
        True if any rule matches the normalized path
    """
    matcher = rules if isinstance(rules, ExclusionMatcher) else ExclusionMatcher(rules)
    return matcher.matches(normalize_artifact_path(path), is_dir=is_dir)


def validate_strip_prefixes(prefixes: Iterable[str]) -> tuple[str, ...]:
    """Check that no strip prefix is a prefix of another one.

    Run once before any recording. Identical prefixes count as a conflict.

    Raises:
        ConfigurationError: On an empty prefix or any overlapping pair
    """
    items = list(prefixes)
    for i, first in enumerate(items):
        if not first:
            raise ConfigurationError(
                "Strip prefixes must not be empty",
                code=ErrorCode.STRIP_PREFIX_CONFLICT,
            )
        for second in items[i + 1:]:
            if first.startswith(second) or second.startswith(first):
                raise ConfigurationError(
                    f"Strip prefixes '{first}' and '{second}' overlap; "
                    f"no prefix may be a prefix of another",
                    code=ErrorCode.STRIP_PREFIX_CONFLICT,
                    details={"prefixes": sorted([first, second])},
                )
    return tuple(items)


def matching_strip_prefix(path: str, prefixes: Sequence[str]) -> Optional[str]:
    """Return the single strip prefix matching path, if any.

    A prefix equal to the whole path does not match, since stripping it
    would leave an empty artifact key.

    Raises:
        AmbiguousStripError: If more than one prefix matches
    """
    matches = [p for p in prefixes if path.startswith(p) and len(path) > len(p)]
    if len(matches) > 1:
        raise AmbiguousStripError(path, matches)
    return matches[0] if matches else None


def apply_strip(path: str, prefixes: Sequence[str]) -> str:
    """Remove the matching strip prefix (exactly as configured) from path."""
    prefix = matching_strip_prefix(path, prefixes)
    if prefix is None:
        return path
    return path[len(prefix):]
