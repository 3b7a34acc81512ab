"""Record artifacts: walk path sets and hash every retained file.

Traversal rules:
- Regular files are recorded, also when reached through a symlink.
- Directories are walked recursively in sorted order.
- Symlinked directories are walked only if ``follow_symlink_dirs`` is set,
  otherwise they are skipped entirely (not recorded, not descended). The
  recorded path keeps the symlink name, not the resolved target.
- Following symlinked directories tracks the (device, inode) identity of
  every directory on the current walk path; a link back to an ancestor
  raises SymlinkCycleError instead of recursing forever.
- Excluded files are skipped silently; excluded directories are pruned.
- Dangling symlinks and missing input paths are errors.

The artifact key is the normalized path relative to the base path, with
the single matching strip prefix removed.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from linkseal.errors import (
    ArtifactNotFoundError,
    ConfigurationError,
    DuplicateArtifactKeyError,
    PathOutsideBaseError,
    SymlinkCycleError,
    UnreadableArtifactError,
)
from linkseal.kernel.hash_utils import DEFAULT_ALGORITHMS, check_algorithms, digest_file
from linkseal.kernel.paths import (
    ExclusionMatcher,
    apply_strip,
    normalize_artifact_path,
    validate_strip_prefixes,
)

logger = logging.getLogger(__name__)

ArtifactMap = Dict[str, Dict[str, str]]


class RecordSettings(BaseModel):
    """Immutable recorder configuration, validated on construction.

    Invalid algorithm names, overlapping strip prefixes and malformed
    exclude patterns fail here, before any filesystem access.
    """

    algorithms: Tuple[str, ...] = DEFAULT_ALGORITHMS
    exclude_patterns: Tuple[str, ...] = ()
    lstrip_paths: Tuple[str, ...] = ()
    normalize_line_endings: bool = False
    follow_symlink_dirs: bool = False
    base_path: Optional[Path] = None  # defaults to the current working directory
    workers: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("algorithms")
    @classmethod
    def validate_algorithms(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return check_algorithms(v)

    @field_validator("lstrip_paths")
    @classmethod
    def validate_lstrip_paths(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return validate_strip_prefixes(v)

    @field_validator("exclude_patterns")
    @classmethod
    def validate_exclude_patterns(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        ExclusionMatcher(v)
        return v


class _ArtifactWalker:
    """Collects normalized relative path -> filesystem path for one pass."""

    def __init__(self, base_path: Path, matcher: ExclusionMatcher, follow_symlink_dirs: bool):
        self.base_path = base_path
        self.matcher = matcher
        self.follow_symlink_dirs = follow_symlink_dirs
        self.found: Dict[str, str] = {}

    def _relative(self, path: str) -> str:
        if os.path.isabs(path):
            try:
                path = os.path.relpath(os.path.abspath(path), os.path.abspath(self.base_path))
            except ValueError:
                # Different drive on Windows
                raise PathOutsideBaseError(path, str(self.base_path))
        rel = normalize_artifact_path(path)
        if rel == ".." or rel.startswith("../"):
            raise PathOutsideBaseError(path, str(self.base_path))
        return rel

    def _fs_path(self, rel: str) -> str:
        if not rel:
            return str(self.base_path)
        return os.path.join(str(self.base_path), *rel.split("/"))

    def collect(self, path: str) -> None:
        rel = self._relative(path)
        fs_path = self._fs_path(rel)

        if not os.path.lexists(fs_path):
            raise ArtifactNotFoundError(rel or ".")

        if os.path.islink(fs_path):
            if not os.path.exists(fs_path):
                raise ArtifactNotFoundError(rel)
            if os.path.isdir(fs_path):
                if not self.follow_symlink_dirs:
                    logger.debug("Skipping symlinked directory '%s'", rel)
                    return
                if not self.matcher.matches(rel, is_dir=True):
                    self._walk_dir(rel, fs_path, frozenset())
                return
            self._add_file(rel, fs_path)
        elif os.path.isdir(fs_path):
            if not self.matcher.matches(rel, is_dir=True):
                self._walk_dir(rel, fs_path, frozenset())
        elif os.path.isfile(fs_path):
            self._add_file(rel, fs_path)
        else:
            logger.debug("Skipping special file '%s'", rel)

    def _add_file(self, rel: str, fs_path: str) -> None:
        if self.matcher.matches(rel):
            logger.debug("Excluding '%s'", rel)
            return
        self.found[rel] = fs_path

    def _walk_dir(self, rel: str, fs_path: str, ancestors: FrozenSet[Tuple[int, int]]) -> None:
        try:
            st = os.stat(fs_path)
        except OSError as e:
            raise UnreadableArtifactError(rel or ".", e.strerror or str(e)) from e
        identity = (st.st_dev, st.st_ino)
        if identity in ancestors:
            raise SymlinkCycleError(rel, os.path.realpath(fs_path))
        ancestors = ancestors | {identity}

        try:
            with os.scandir(fs_path) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise UnreadableArtifactError(rel or ".", e.strerror or str(e)) from e

        for entry in entries:
            child_rel = f"{rel}/{entry.name}" if rel else entry.name
            if entry.is_symlink():
                if not os.path.exists(entry.path):
                    if self.matcher.matches(child_rel):
                        continue
                    raise ArtifactNotFoundError(child_rel)
                if entry.is_dir(follow_symlinks=True):
                    if not self.follow_symlink_dirs:
                        logger.debug("Skipping symlinked directory '%s'", child_rel)
                        continue
                    if self.matcher.matches(child_rel, is_dir=True):
                        logger.debug("Excluding directory '%s'", child_rel)
                        continue
                    self._walk_dir(child_rel, entry.path, ancestors)
                elif entry.is_file(follow_symlinks=True):
                    self._add_file(child_rel, entry.path)
            elif entry.is_dir(follow_symlinks=False):
                if self.matcher.matches(child_rel, is_dir=True):
                    logger.debug("Excluding directory '%s'", child_rel)
                    continue
                self._walk_dir(child_rel, entry.path, ancestors)
            elif entry.is_file(follow_symlinks=False):
                self._add_file(child_rel, entry.path)
            else:
                logger.debug("Skipping special file '%s'", child_rel)


def _resolve_base_path(base_path: Optional[Path]) -> Path:
    base = Path(base_path) if base_path is not None else Path.cwd()
    if not base.is_dir():
        raise ConfigurationError(
            f"Base path is not a directory: {base}", details={"base_path": str(base)}
        )
    return base


def _assign_keys(found: Dict[str, str], lstrip_paths: Tuple[str, ...]) -> List[Tuple[str, str, str]]:
    """Map relative paths to storage keys; returns (key, rel, fs_path) sorted by key."""
    owner: Dict[str, str] = {}
    items: List[Tuple[str, str, str]] = []
    for rel in sorted(found):
        key = apply_strip(rel, lstrip_paths)
        if key in owner:
            raise DuplicateArtifactKeyError(key, [owner[key], rel])
        owner[key] = rel
        items.append((key, rel, found[rel]))
    items.sort(key=lambda item: item[0])
    return items


def record_artifacts(
    paths: Iterable[str],
    settings: Optional[RecordSettings] = None,
) -> ArtifactMap:
    """Record hashes of files found under the given paths.

    Args:
        paths: Files or directories, relative to settings.base_path (or
            absolute paths inside it)
        settings: Recorder configuration; defaults to RecordSettings()

    Returns:
        Mapping artifact key -> {algorithm: hex digest}, a fresh dict per call

    Raises:
        RecordError: On missing/unreadable files, symlink cycles, key collisions
            or paths outside the base path
        AmbiguousStripError: If several strip prefixes match one path
    """
    settings = settings or RecordSettings()
    paths = list(paths)
    if not paths:
        return {}

    base_path = _resolve_base_path(settings.base_path)
    walker = _ArtifactWalker(
        base_path,
        ExclusionMatcher(settings.exclude_patterns),
        settings.follow_symlink_dirs,
    )
    for path in paths:
        walker.collect(path)

    items = _assign_keys(walker.found, settings.lstrip_paths)
    logger.info("Hashing %d artifact(s) from %d path(s)", len(items), len(paths))

    def _hash(item: Tuple[str, str, str]) -> Tuple[str, Dict[str, str]]:
        key, rel, fs_path = item
        try:
            return key, digest_file(fs_path, settings.algorithms, settings.normalize_line_endings)
        except OSError as e:
            raise UnreadableArtifactError(rel, e.strerror or str(e)) from e

    if settings.workers > 1 and len(items) > 1:
        # map() yields in input order, so the first error raised is the first
        # failing file in key order, whatever order the workers finish in.
        with ThreadPoolExecutor(max_workers=settings.workers) as pool:
            results = list(pool.map(_hash, items))
    else:
        results = [_hash(item) for item in items]

    return dict(results)
