"""Canonical encoding with explicit rules for stable signing.

This module provides the single byte-level encoding that is hashed and
signed. Two equal values always encode to the same bytes, regardless of
dict insertion order, host platform or Python version.

Key rules:
- Object keys sorted by code point (identical to UTF-8 byte order)
- Arrays preserve order
- Floats BANNED (hard validation error); integers in plain decimal form
- Strings kept verbatim (no Unicode normalization) so decode(encode(v)) == v
- No insignificant whitespace, UTF-8 output
- Non-JSON types forbidden
"""

import json
from typing import Any, Dict, List, Tuple

from linkseal.errors import CanonicalizationError


def _validate_json_type(obj: Any, path: str = "") -> None:
    """Validate that object contains only canonically encodable types.

    Raises CanonicalizationError naming the offending location.
    """
    if obj is None or isinstance(obj, bool):
        return
    elif isinstance(obj, int):
        return
    elif isinstance(obj, float):
        raise CanonicalizationError(
            f"Floats are not allowed in canonical values (at {path or '<root>'})",
            details={"path": path},
        )
    elif isinstance(obj, str):
        return
    elif isinstance(obj, dict):
        for key, value in obj.items():
            if not isinstance(key, str):
                raise CanonicalizationError(
                    f"Dictionary keys must be strings at {path or '<root>'}, "
                    f"got {type(key).__name__}",
                    details={"path": path},
                )
            _validate_json_type(value, f"{path}.{key}" if path else key)
    elif isinstance(obj, list):
        for i, item in enumerate(obj):
            _validate_json_type(item, f"{path}[{i}]" if path else f"[{i}]")
    else:
        raise CanonicalizationError(
            f"Non-JSON type at {path or '<root>'}: {type(obj).__name__}. "
            f"Only None, bool, int, str, dict, and list are allowed.",
            details={"path": path},
        )


def encode_canonical(obj: Any) -> bytes:
    """Encode a JSON-compatible value to its unique canonical byte form.

    Args:
        obj: None, bool, int, str, or dicts/lists thereof

    Returns:
        Canonical UTF-8 encoded bytes

    Raises:
        CanonicalizationError: If object contains floats, non-string keys,
            non-JSON types, unencodable strings (lone surrogates) or
            integers too long to render
    """
    _validate_json_type(obj)
    try:
        text = json.dumps(
            obj,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
    except ValueError as e:
        # Integers beyond the interpreter's int-to-str digit limit
        raise CanonicalizationError(f"Value cannot be encoded: {e}") from e
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise CanonicalizationError(f"Value contains unencodable text: {e}") from e


def _reject_float(token: str) -> Any:
    raise CanonicalizationError(f"Floats are not allowed in canonical values: {token}")


def _reject_constant(token: str) -> Any:
    raise CanonicalizationError(f"Non-finite number not allowed: {token}")


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise CanonicalizationError(
                f"Duplicate object key: {key!r}", details={"key": key}
            )
        result[key] = value
    return result


def parse_json(text: str) -> Any:
    """Parse JSON text with the canonical value restrictions.

    Whitespace and key order are free here; floats, NaN/Infinity and
    duplicate keys are rejected. Used for human-readable stored files.
    """
    try:
        return json.loads(
            text,
            object_pairs_hook=_reject_duplicate_keys,
            parse_float=_reject_float,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as e:
        raise CanonicalizationError(f"Invalid JSON: {e}") from e
    except ValueError as e:
        # Integer literals beyond the interpreter's int-to-str digit limit
        raise CanonicalizationError(f"Unparsable JSON value: {e}") from e


def decode_canonical(data: bytes) -> Any:
    """Decode canonical bytes back into a value.

    Strict: the input must be exactly the canonical encoding of the value
    it decodes to, so there is one valid byte sequence per logical value.

    Raises:
        CanonicalizationError: If bytes are not UTF-8, not valid JSON, or
            not in canonical form
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CanonicalizationError(f"Canonical data must be UTF-8: {e}") from e
    value = parse_json(text)
    if encode_canonical(value) != data:
        raise CanonicalizationError("Data is valid JSON but not in canonical form")
    return value
