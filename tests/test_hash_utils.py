"""Tests for multi-algorithm hashing and line-ending normalization."""

import hashlib
import io

import pytest

from linkseal.errors import ConfigurationError, UnsupportedAlgorithmError
from linkseal.kernel.hash_utils import (
    DEFAULT_ALGORITHMS,
    LineEndingNormalizer,
    check_algorithms,
    digest,
    digest_file,
)


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class TestDigest:

    def test_default_is_sha256(self):
        assert DEFAULT_ALGORITHMS == ("sha256",)
        assert digest(b"hi\n") == {"sha256": _sha256(b"hi\n")}

    def test_multiple_algorithms(self):
        result = digest(b"data", ["sha512", "sha256"])
        assert result == {
            "sha256": _sha256(b"data"),
            "sha512": hashlib.sha512(b"data").hexdigest(),
        }

    def test_unknown_algorithm_fails(self):
        with pytest.raises(UnsupportedAlgorithmError) as exc_info:
            digest(b"data", ["sha256", "md4"])
        assert exc_info.value.algorithm == "md4"
        assert exc_info.value.details == {"algorithm": "md4"}

    def test_empty_algorithm_list_fails(self):
        with pytest.raises(ConfigurationError):
            digest(b"data", [])

    def test_check_algorithms_sorts_and_dedupes(self):
        assert check_algorithms(["sha512", "sha256", "sha512"]) == ("sha256", "sha512")

    def test_stream_matches_bytes(self):
        data = b"0123456789" * 1000
        assert digest(io.BytesIO(data), chunk_size=7) == digest(data)

    def test_digest_file(self, tmp_path):
        path = tmp_path / "f.bin"
        path.write_bytes(b"\x00\x01binary")
        assert digest_file(path) == {"sha256": _sha256(b"\x00\x01binary")}


class TestLineEndingNormalization:

    def test_crlf_equals_lf(self):
        crlf = digest(b"line1\r\nline2\r\n", normalize_line_endings=True)
        assert crlf == digest(b"line1\nline2\n")

    def test_lone_cr_becomes_lf(self):
        assert digest(b"a\rb\r", normalize_line_endings=True) == digest(b"a\nb\n")

    def test_mixed_endings(self):
        assert digest(b"a\r\r\nb", normalize_line_endings=True) == digest(b"a\n\nb")

    def test_disabled_by_default(self):
        assert digest(b"a\r\nb") != digest(b"a\nb")

    def test_crlf_split_across_chunks(self):
        stream = io.BytesIO(b"a\r\nb\r\nc")
        result = digest(stream, normalize_line_endings=True, chunk_size=2)
        assert result == digest(b"a\nb\nc")

    def test_trailing_cr_at_end_of_stream(self):
        stream = io.BytesIO(b"abc\r")
        assert digest(stream, normalize_line_endings=True, chunk_size=4) == digest(b"abc\n")

    def test_normalization_idempotent(self):
        lf = b"x\ny\n"
        assert digest(lf, normalize_line_endings=True) == digest(lf)

    def test_normalizer_holds_back_cr(self):
        normalizer = LineEndingNormalizer()
        assert normalizer.feed(b"a\r") == b"a"
        assert normalizer.feed(b"\nb") == b"\nb"
        assert normalizer.feed(b"c\r") == b"c"
        assert normalizer.flush() == b"\n"
        assert normalizer.flush() == b""
