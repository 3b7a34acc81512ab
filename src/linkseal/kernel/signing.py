"""Sign and verify links over their canonical encoding."""

import logging
import re
from typing import Optional

from linkseal.errors import InvalidStepNameError, MalformedSignatureError, SigningError
from linkseal.kernel.canonical import encode_canonical
from linkseal.kernel.keys import NO_KEY, Key, PublicKey, SigningKey
from linkseal.kernel.link import Link, Metablock, Signature

logger = logging.getLogger(__name__)

LINK_FILENAME_FORMAT = "{step_name}.{keyid}.link"
UNSIGNED_LINK_FILENAME_FORMAT = "{step_name}.unsigned.link"

_HEX_RE = re.compile(r"^(?:[0-9a-f]{2})+$")


def signed_bytes(link: Link) -> bytes:
    """The exact bytes that are signed for a link."""
    return encode_canonical(link.to_dict())


def sign_link(link: Link, key: SigningKey) -> Signature:
    """Sign the canonical encoding of link.

    Raises:
        SigningError: If key is absent or the signing backend fails
        CanonicalizationError: If link holds values without canonical form
    """
    if not key.is_present:
        raise SigningError("Cannot sign without a key")
    data = signed_bytes(link)
    try:
        sig = key.sign(data)
    except Exception as e:
        raise SigningError(
            f"Signing with key {key.keyid} failed: {e}", details={"keyid": key.keyid}
        ) from e
    return Signature(keyid=key.keyid, sig=sig.hex())


def _decode_signature_value(signature: Signature) -> bytes:
    if not _HEX_RE.match(signature.sig):
        raise MalformedSignatureError(
            f"Signature value for key {signature.keyid} is not lowercase hex",
            details={"keyid": signature.keyid},
        )
    return bytes.fromhex(signature.sig)


def verify_signature(link: Link, signature: Signature, key: PublicKey) -> bool:
    """Check one signature against the key's public half.

    Returns False on a mismatch (wrong key id, tampered link, bad signature).

    Raises:
        MalformedSignatureError: If the signature value is structurally invalid
    """
    sig = _decode_signature_value(signature)
    if signature.keyid != key.keyid:
        return False
    return key.verify(sig, signed_bytes(link))


def verify_envelope(metablock: Metablock, key: PublicKey) -> bool:
    """Return True if metablock carries a valid signature by key."""
    for signature in metablock.signatures:
        if signature.keyid == key.keyid and verify_signature(metablock.signed, signature, key):
            return True
    return False


def create_envelope(link: Link, key: Key = NO_KEY) -> Metablock:
    """Wrap link in an envelope, signed if key is present.

    An absent key produces an unsigned envelope with no signatures; this
    is a supported state, not an error.
    """
    if not key.is_present:
        logger.info("No signing key; emitting unsigned link '%s'", link.name)
        return Metablock(signed=link, signatures=[])
    signature = sign_link(link, key)
    logger.info("Signed link '%s' with key %s", link.name, key.keyid)
    return Metablock(signed=link, signatures=[signature])


def link_filename(step_name: str, keyid: Optional[str] = None) -> str:
    """File name for a link: unique per step name and signing key id.

    Raises:
        InvalidStepNameError: If the name is empty or not a plain file name
    """
    if not step_name or step_name in (".", "..") or any(c in step_name for c in "/\\\0"):
        raise InvalidStepNameError(
            f"Step name is not usable as a file name: '{step_name}'",
            details={"name": step_name},
        )
    if keyid is None:
        return UNSIGNED_LINK_FILENAME_FORMAT.format(step_name=step_name)
    return LINK_FILENAME_FORMAT.format(step_name=step_name, keyid=keyid)


def envelope_filename(metablock: Metablock) -> str:
    """File name for an envelope, derived from its first signature's key id."""
    keyid = metablock.signatures[0].keyid if metablock.signatures else None
    return link_filename(metablock.signed.name, keyid)
