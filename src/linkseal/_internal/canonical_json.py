"""Centralized JSON text rendering for files and console output.

Signing never uses these functions: signatures are always computed over
linkseal.kernel.canonical.encode_canonical. These renderings only need to be
stable and parse back to the same value.
"""

import json
from typing import Any


def canonical_dumps(obj: Any) -> str:
    """
    Compact JSON for console output.

    Rules:
    - Sorted keys
    - Stable separators (",", ":")
    - UTF-8 text (no ASCII escaping)
    """
    return json.dumps(
        obj,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False
    )


def readable_dumps(obj: Any) -> str:
    """
    Indented JSON for stored link files.

    Same value as canonical_dumps, with one-space indentation and a
    trailing newline so files diff cleanly.
    """
    return json.dumps(
        obj,
        sort_keys=True,
        indent=1,
        ensure_ascii=False,
        allow_nan=False,
    ) + "\n"
