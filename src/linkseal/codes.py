"""Error code constants for linkseal.

These constants prevent stringly-typed error codes and give callers a
stable value to branch on, independent of message wording.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by every LinksealError."""

    # Configuration (raised before any filesystem work)
    CONFIGURATION = "CONFIGURATION"
    INVALID_STEP_NAME = "INVALID_STEP_NAME"
    STRIP_PREFIX_CONFLICT = "STRIP_PREFIX_CONFLICT"
    AMBIGUOUS_STRIP = "AMBIGUOUS_STRIP"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    INVALID_PATTERN = "INVALID_PATTERN"

    # Recording
    RECORD_FAILED = "RECORD_FAILED"
    ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"
    UNREADABLE_ARTIFACT = "UNREADABLE_ARTIFACT"
    SYMLINK_CYCLE = "SYMLINK_CYCLE"
    DUPLICATE_ARTIFACT_KEY = "DUPLICATE_ARTIFACT_KEY"
    PATH_OUTSIDE_BASE = "PATH_OUTSIDE_BASE"

    # Encoding
    NON_CANONICAL = "NON_CANONICAL"

    # Keys and signatures
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    INVALID_KEY = "INVALID_KEY"
    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"
    MALFORMED_SIGNATURE = "MALFORMED_SIGNATURE"
    SIGNING_FAILED = "SIGNING_FAILED"

    # Storage
    ENVELOPE_FORMAT = "ENVELOPE_FORMAT"
