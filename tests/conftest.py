"""Pytest configuration and shared fixtures.

No sys.path hacks - tests import from the installed linkseal package.
"""

import os
import sys
from pathlib import Path
from typing import Dict, Union

import pytest
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from linkseal.kernel.keys import SigningKey


def pytest_sessionfinish(session, exitstatus):
    """Best-effort cleanup for basetemp on Windows without patching pytest internals."""
    if os.name != "nt":
        return
    basetemp = getattr(session.config.option, "basetemp", None)
    if not basetemp:
        return
    basetemp_path = Path(basetemp)
    if not basetemp_path.exists():
        return
    try:
        import shutil
        shutil.rmtree(basetemp_path)
    except (PermissionError, OSError):
        # If cleanup fails, let it surface as a warning rather than masking errors.
        import warnings
        warnings.warn(f"Could not remove basetemp: {basetemp_path}")


def write_tree(root: Path, files: Dict[str, Union[str, bytes]]) -> None:
    """Create files (with parent directories) below root."""
    for rel, content in files.items():
        path = root.joinpath(*rel.split("/"))
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path.write_bytes(content)


def symlink_or_skip(target: Union[str, Path], link: Path, target_is_directory: bool = False) -> None:
    try:
        os.symlink(target, link, target_is_directory=target_is_directory)
    except (OSError, NotImplementedError) as e:
        pytest.skip(f"symlinks not supported here: {e}")


@pytest.fixture
def ed25519_key() -> SigningKey:
    return SigningKey(ed25519.Ed25519PrivateKey.generate())


@pytest.fixture(scope="session")
def ecdsa_key() -> SigningKey:
    return SigningKey(ec.generate_private_key(ec.SECP256R1()))


@pytest.fixture(scope="session")
def rsa_key() -> SigningKey:
    return SigningKey(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(params=["ed25519", "ecdsa", "rsa"])
def any_key(request) -> SigningKey:
    if request.param == "ed25519":
        return request.getfixturevalue("ed25519_key")
    if request.param == "ecdsa":
        return request.getfixturevalue("ecdsa_key")
    return request.getfixturevalue("rsa_key")


@pytest.fixture
def tree():
    """Return the write_tree helper."""
    return write_tree


@pytest.fixture
def symlink():
    """Return the symlink_or_skip helper."""
    return symlink_or_skip


@pytest.fixture
def int_digit_limit():
    """Enforce CPython's default int-to-str digit limit for the test; returns it."""
    if not hasattr(sys, "set_int_max_str_digits"):
        pytest.skip("interpreter has no int-to-str digit limit")
    previous = sys.get_int_max_str_digits()
    sys.set_int_max_str_digits(4300)
    yield 4300
    sys.set_int_max_str_digits(previous)
