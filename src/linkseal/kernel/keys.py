"""Signing keys and the explicit "no key" value.

A key is either absent (``NO_KEY``) or present. An absent key yields an
unsigned envelope; a present key signs. Callers test ``key.is_present``
rather than relying on empty default values.

Supported key types and schemes:
- ed25519     / ed25519
- ecdsa       / ecdsa-sha2-nistp256 (P-256, DER signatures)
- rsa         / rsassa-pss-sha256   (>= 2048 bit, MGF1-SHA256, digest-length salt)

The key id is the SHA-256 hex digest of the canonical encoding of
``{"keytype", "scheme", "keyval": {"public": <SubjectPublicKeyInfo PEM>}}``,
so it depends only on the public key material.
"""

import hashlib
from typing import Any, Dict, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from linkseal.errors import InvalidKeyError, MalformedSignatureError, UnsupportedKeyTypeError
from linkseal.kernel.canonical import encode_canonical

ED25519_SIGNATURE_LENGTH = 64
MIN_RSA_KEY_SIZE = 2048

_PublicKeyTypes = Union[ed25519.Ed25519PublicKey, ec.EllipticCurvePublicKey, rsa.RSAPublicKey]
_PrivateKeyTypes = Union[ed25519.Ed25519PrivateKey, ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey]


def _pss_padding() -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.DIGEST_LENGTH)


def _describe(public_key: Any) -> tuple[str, str]:
    """Return (keytype, scheme) for a cryptography public key object."""
    if isinstance(public_key, ed25519.Ed25519PublicKey):
        return "ed25519", "ed25519"
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        if not isinstance(public_key.curve, ec.SECP256R1):
            raise UnsupportedKeyTypeError(
                f"Unsupported ECDSA curve '{public_key.curve.name}' (only P-256 is supported)"
            )
        return "ecdsa", "ecdsa-sha2-nistp256"
    if isinstance(public_key, rsa.RSAPublicKey):
        if public_key.key_size < MIN_RSA_KEY_SIZE:
            raise InvalidKeyError(
                f"RSA key too small: {public_key.key_size} bits (minimum {MIN_RSA_KEY_SIZE})"
            )
        return "rsa", "rsassa-pss-sha256"
    raise UnsupportedKeyTypeError(f"Unsupported key type: {type(public_key).__name__}")


class NoKey:
    """The absent key: nothing to sign with."""

    keyid: Optional[str] = None
    is_present = False

    def __repr__(self) -> str:
        return "NO_KEY"


NO_KEY = NoKey()


class PublicKey:
    """Verification half of a key."""

    is_present = True

    def __init__(self, public_key: _PublicKeyTypes):
        self.keytype, self.scheme = _describe(public_key)
        self._public_key = public_key
        self.public_pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode("ascii")
        self.keyid = hashlib.sha256(encode_canonical(self.to_dict())).hexdigest()

    @classmethod
    def from_pem(cls, data: bytes) -> "PublicKey":
        try:
            public_key = serialization.load_pem_public_key(data)
        except (ValueError, TypeError) as e:
            raise InvalidKeyError(f"Cannot parse public key: {e}") from e
        return cls(public_key)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keytype": self.keytype,
            "scheme": self.scheme,
            "keyval": {"public": self.public_pem},
        }

    def check_signature_structure(self, signature: bytes) -> None:
        """Raise MalformedSignatureError if signature cannot be of this scheme."""
        if self.keytype == "ed25519":
            if len(signature) != ED25519_SIGNATURE_LENGTH:
                raise MalformedSignatureError(
                    f"ed25519 signature must be {ED25519_SIGNATURE_LENGTH} bytes, got {len(signature)}"
                )
        elif self.keytype == "ecdsa":
            try:
                decode_dss_signature(signature)
            except ValueError as e:
                raise MalformedSignatureError(f"Invalid DER-encoded ECDSA signature: {e}") from e
        elif self.keytype == "rsa":
            expected = (self._public_key.key_size + 7) // 8
            if len(signature) != expected:
                raise MalformedSignatureError(
                    f"RSA signature must be {expected} bytes, got {len(signature)}"
                )

    def verify(self, signature: bytes, data: bytes) -> bool:
        """Return True if signature is valid for data, False otherwise.

        Raises:
            MalformedSignatureError: If the signature is structurally invalid
        """
        self.check_signature_structure(signature)
        try:
            if self.keytype == "ed25519":
                self._public_key.verify(signature, data)
            elif self.keytype == "ecdsa":
                self._public_key.verify(signature, data, ec.ECDSA(hashes.SHA256()))
            else:
                self._public_key.verify(signature, data, _pss_padding(), hashes.SHA256())
        except InvalidSignature:
            return False
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, PublicKey) and other.keyid == self.keyid

    def __hash__(self) -> int:
        return hash(self.keyid)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keytype={self.keytype!r}, keyid={self.keyid!r})"


class SigningKey(PublicKey):
    """A present key: private material plus its public half."""

    def __init__(self, private_key: _PrivateKeyTypes):
        if not isinstance(private_key, (ed25519.Ed25519PrivateKey, ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey)):
            raise UnsupportedKeyTypeError(f"Unsupported private key type: {type(private_key).__name__}")
        super().__init__(private_key.public_key())
        self._private_key = private_key

    @classmethod
    def from_pem(cls, data: bytes, password: Optional[bytes] = None) -> "SigningKey":
        try:
            private_key = serialization.load_pem_private_key(data, password=password)
        except (ValueError, TypeError) as e:
            raise InvalidKeyError(f"Cannot parse private key: {e}") from e
        return cls(private_key)

    @property
    def public_key(self) -> PublicKey:
        return PublicKey(self._private_key.public_key())

    def sign(self, data: bytes) -> bytes:
        if self.keytype == "ed25519":
            return self._private_key.sign(data)
        if self.keytype == "ecdsa":
            return self._private_key.sign(data, ec.ECDSA(hashes.SHA256()))
        return self._private_key.sign(data, _pss_padding(), hashes.SHA256())


Key = Union[NoKey, SigningKey]
