"""linkseal exception hierarchy.

Every error is fatal to the run that raised it. Errors carry a stable
``code`` and a ``details`` mapping (path, rule, algorithm, key id, ...) so
callers can act on them without parsing messages.
"""

from typing import Any, Dict, List, Optional

from linkseal.codes import ErrorCode


class LinksealError(Exception):
    """Base exception for all linkseal errors."""

    default_code = ErrorCode.CONFIGURATION

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Configuration


class ConfigurationError(LinksealError):
    """Raised for invalid configuration, before any recording starts."""

    default_code = ErrorCode.CONFIGURATION


class InvalidStepNameError(ConfigurationError):
    """Raised when a step name is empty."""

    default_code = ErrorCode.INVALID_STEP_NAME


class AmbiguousStripError(ConfigurationError):
    """Raised when more than one strip prefix matches an artifact path."""

    default_code = ErrorCode.AMBIGUOUS_STRIP

    def __init__(self, path: str, prefixes: List[str]):
        self.path = path
        self.prefixes = sorted(prefixes)
        super().__init__(
            f"Path '{path}' matches more than one strip prefix: "
            f"{', '.join(self.prefixes)}",
            details={"path": path, "prefixes": self.prefixes},
        )


class UnsupportedAlgorithmError(ConfigurationError):
    """Raised when a hash algorithm name is not supported."""

    default_code = ErrorCode.UNSUPPORTED_ALGORITHM

    def __init__(self, algorithm: str, supported: List[str]):
        self.algorithm = algorithm
        super().__init__(
            f"Unsupported hash algorithm '{algorithm}' "
            f"(supported: {', '.join(sorted(supported))})",
            details={"algorithm": algorithm},
        )


# Recording


class RecordError(LinksealError):
    """Base exception for failures while recording artifacts."""

    default_code = ErrorCode.RECORD_FAILED


class ArtifactNotFoundError(RecordError):
    """Raised when an artifact path (or a symlink target) does not exist."""

    default_code = ErrorCode.ARTIFACT_NOT_FOUND

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Artifact path does not exist: {path}", details={"path": path}
        )


class UnreadableArtifactError(RecordError):
    """Raised when a file cannot be opened or read for hashing."""

    default_code = ErrorCode.UNREADABLE_ARTIFACT

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            f"Cannot read artifact '{path}': {reason}",
            details={"path": path, "reason": reason},
        )


class SymlinkCycleError(RecordError):
    """Raised when following symlinked directories would recurse forever."""

    default_code = ErrorCode.SYMLINK_CYCLE

    def __init__(self, path: str, target: str):
        self.path = path
        self.target = target
        super().__init__(
            f"Symlink cycle detected: '{path}' points to ancestor directory '{target}'",
            details={"path": path, "target": target},
        )


class DuplicateArtifactKeyError(RecordError):
    """Raised when two distinct files map to the same artifact key."""

    default_code = ErrorCode.DUPLICATE_ARTIFACT_KEY

    def __init__(self, key: str, paths: List[str]):
        self.key = key
        self.paths = sorted(paths)
        super().__init__(
            f"Artifact key '{key}' is produced by more than one file: "
            f"{', '.join(self.paths)}",
            details={"key": key, "paths": self.paths},
        )


class PathOutsideBaseError(RecordError):
    """Raised when an artifact path escapes the recording base path."""

    default_code = ErrorCode.PATH_OUTSIDE_BASE

    def __init__(self, path: str, base_path: str):
        self.path = path
        super().__init__(
            f"Artifact path '{path}' is outside of base path '{base_path}'",
            details={"path": path, "base_path": base_path},
        )


# Encoding


class CanonicalizationError(LinksealError):
    """Raised when a value cannot be canonically encoded or decoded."""

    default_code = ErrorCode.NON_CANONICAL


# Keys and signatures


class KeyMaterialError(LinksealError):
    """Base exception for key loading problems."""

    default_code = ErrorCode.INVALID_KEY


class KeyNotFoundError(KeyMaterialError):
    """Raised when a key file does not exist."""

    default_code = ErrorCode.KEY_NOT_FOUND


class InvalidKeyError(KeyMaterialError):
    """Raised when key material cannot be parsed or used."""

    default_code = ErrorCode.INVALID_KEY


class UnsupportedKeyTypeError(InvalidKeyError):
    """Raised for key types without a signing scheme."""

    default_code = ErrorCode.UNSUPPORTED_KEY_TYPE


class MalformedSignatureError(LinksealError):
    """Raised when a signature value is structurally invalid."""

    default_code = ErrorCode.MALFORMED_SIGNATURE


class SigningError(LinksealError):
    """Raised when producing a signature fails."""

    default_code = ErrorCode.SIGNING_FAILED


# Storage


class EnvelopeFormatError(LinksealError):
    """Raised when a stored envelope cannot be parsed."""

    default_code = ErrorCode.ENVELOPE_FORMAT
