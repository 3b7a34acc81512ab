"""Hash utilities for artifact content.

Digests are computed by streaming over the input in fixed-size chunks, for
one or more named algorithms at once. Optional line-ending normalization
rewrites CRLF and lone CR to LF before hashing, identically on every
platform, so a file checked out with either convention records the same
digest.
"""

import hashlib
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, Optional, Sequence, Union

from linkseal.errors import ConfigurationError, UnsupportedAlgorithmError

CHUNK_SIZE = 64 * 1024

DEFAULT_ALGORITHMS = ("sha256",)

SUPPORTED_ALGORITHMS = (
    "sha224",
    "sha256",
    "sha384",
    "sha512",
    "sha3_224",
    "sha3_256",
    "sha3_384",
    "sha3_512",
    "blake2b",
    "blake2s",
)


def check_algorithms(algorithms: Iterable[str]) -> tuple[str, ...]:
    """Validate algorithm names and return them sorted and de-duplicated.

    Raises:
        ConfigurationError: If no algorithm is given
        UnsupportedAlgorithmError: If a name is not in SUPPORTED_ALGORITHMS
    """
    names = tuple(sorted(set(algorithms)))
    if not names:
        raise ConfigurationError("At least one hash algorithm is required")
    for name in names:
        if name not in SUPPORTED_ALGORITHMS:
            raise UnsupportedAlgorithmError(name, list(SUPPORTED_ALGORITHMS))
    return names


class LineEndingNormalizer:
    """Incremental CRLF/CR -> LF rewriter.

    A trailing CR is held back until the next chunk arrives, so a CRLF pair
    split across a chunk boundary still collapses to a single LF.
    """

    def __init__(self) -> None:
        self._pending_cr = False

    def feed(self, chunk: bytes) -> bytes:
        if self._pending_cr:
            chunk = b"\r" + chunk
            self._pending_cr = False
        if chunk.endswith(b"\r"):
            chunk = chunk[:-1]
            self._pending_cr = True
        return chunk.replace(b"\r\n", b"\n").replace(b"\r", b"\n")

    def flush(self) -> bytes:
        if self._pending_cr:
            self._pending_cr = False
            return b"\n"
        return b""


def digest(
    data: Union[bytes, BinaryIO],
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
    normalize_line_endings: bool = False,
    chunk_size: int = CHUNK_SIZE,
) -> Dict[str, str]:
    """Compute hex digests of bytes or a binary stream.

    Args:
        data: Raw bytes, or a binary file object read until EOF
        algorithms: Algorithm names (see SUPPORTED_ALGORITHMS)
        normalize_line_endings: Replace CRLF and CR with LF before hashing
        chunk_size: Read size used for streams

    Returns:
        Mapping algorithm name -> lowercase hex digest

    Raises:
        UnsupportedAlgorithmError: If an algorithm name is unknown
    """
    names = check_algorithms(algorithms)
    hashers = {name: hashlib.new(name) for name in names}
    normalizer: Optional[LineEndingNormalizer] = (
        LineEndingNormalizer() if normalize_line_endings else None
    )

    def _update(chunk: bytes) -> None:
        if normalizer is not None:
            chunk = normalizer.feed(chunk)
        for hasher in hashers.values():
            hasher.update(chunk)

    if isinstance(data, (bytes, bytearray, memoryview)):
        _update(bytes(data))
    else:
        while chunk := data.read(chunk_size):
            _update(chunk)

    if normalizer is not None:
        tail = normalizer.flush()
        for hasher in hashers.values():
            hasher.update(tail)

    return {name: hasher.hexdigest() for name, hasher in hashers.items()}


def digest_file(
    path: Union[str, Path],
    algorithms: Sequence[str] = DEFAULT_ALGORITHMS,
    normalize_line_endings: bool = False,
) -> Dict[str, str]:
    """Compute hex digests of a file's content.

    The file handle is closed on every exit path. OSError propagates to the
    caller, which knows the artifact path to report.
    """
    with open(path, "rb") as f:
        return digest(f, algorithms, normalize_line_endings)
