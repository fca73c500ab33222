"""DID and verification-method reference parsing."""

import re
from pydantic import BaseModel, ConfigDict

from ontlogin.common.errors import MalformedDidError, MalformedReferenceError


KEY_PREFIX = "key"

_INDEX_RE = re.compile(r"[0-9]+")


class VerificationMethodRef(BaseModel):
    """A key inside a DID's key material: `<did>#key-<key_index>`."""
    model_config = ConfigDict(frozen=True)

    did: str
    key_index: int


def parse_verification_method(ref: str) -> VerificationMethodRef:
    """
    Split a verification method reference into DID and key index.

    Args:
        ref: reference string, e.g. "did:ont:abc#key-1"

    Returns:
        VerificationMethodRef

    Raises:
        MalformedReferenceError: if ref is not `<did>#key-<index>`
    """
    parts = ref.split("#")
    if len(parts) != 2:
        raise MalformedReferenceError(f"verificationMethod format invalid: {ref!r}")
    key_parts = parts[1].split("-")
    if len(key_parts) != 2 or key_parts[0] != KEY_PREFIX:
        raise MalformedReferenceError(f"verificationMethod format invalid: {ref!r}")
    if not _INDEX_RE.fullmatch(key_parts[1]):
        raise MalformedReferenceError(f"verificationMethod key index invalid: {ref!r}")
    try:
        key_index = int(key_parts[1])
    except ValueError as e:
        raise MalformedReferenceError(f"verificationMethod key index invalid: {ref!r}") from e
    return VerificationMethodRef(did=parts[0], key_index=key_index)


def get_did_chain(did: str) -> str:
    """
    Return the chain segment of `did:<chain>:<identifier>`.

    Raises:
        MalformedDidError: if did does not have exactly three segments
    """
    parts = did.split(":")
    if len(parts) != 3 or parts[0] != "did" or not parts[1] or not parts[2]:
        raise MalformedDidError(f"invalid did format: {did!r}")
    return parts[1]
