"""Load key material from PEM files."""

from pathlib import Path
from typing import Optional, Union

from linkseal.errors import KeyNotFoundError
from linkseal.kernel.keys import PublicKey, SigningKey


def _read_key_file(path: Path) -> bytes:
    if not path.is_file():
        raise KeyNotFoundError(f"Key not found at {path}", details={"path": str(path)})
    return path.read_bytes()


def load_signing_key(path: Union[str, Path], password: Optional[str] = None) -> SigningKey:
    """Load a PEM private key (PKCS#8 or traditional format).

    Raises:
        KeyNotFoundError: If the file does not exist
        InvalidKeyError: If the file is not a usable private key
    """
    data = _read_key_file(Path(path))
    return SigningKey.from_pem(data, password.encode("utf-8") if password is not None else None)


def load_public_key(path: Union[str, Path]) -> PublicKey:
    """Load a PEM public key (SubjectPublicKeyInfo).

    Raises:
        KeyNotFoundError: If the file does not exist
        InvalidKeyError: If the file is not a usable public key
    """
    return PublicKey.from_pem(_read_key_file(Path(path)))
