"""Verifiable presentations as compact JWS: header.payload.signature (ES256)."""

import json
from typing import Any, Dict, List, NamedTuple

from cryptography.hazmat.primitives.asymmetric import ec

from ontlogin.common.utils import b64url_decode, b64url_encode, canonical_json
from ontlogin.crypto.sign import ES256, sign


VP_CONTEXT = "https://www.w3.org/2018/credentials/v1"
VP_TYPE = "VerifiablePresentation"


class CompactPresentation(NamedTuple):
    header: Dict[str, Any]
    payload: Dict[str, Any]
    signing_input: bytes
    signature: bytes

    @property
    def credentials(self) -> List[Dict[str, Any]]:
        vp = self.payload.get("vp") or {}
        creds = vp.get("verifiableCredential") or []
        if not isinstance(creds, list) or not all(isinstance(c, dict) for c in creds):
            raise ValueError("verifiableCredential must be a list of objects")
        return creds


def encode_presentation(private_key: ec.EllipticCurvePrivateKey, holder_did: str, index: int,
                        credentials: List[Dict[str, Any]]) -> str:
    """
    Build and sign a presentation of credentials for holder_did.

    Args:
        private_key: holder key matching `holder_did#key-index`
        holder_did: DID of the presenting party
        index: key index in the holder's key material
        credentials: credential JSON objects to embed

    Returns:
        compact JWS string
    """
    header = {"alg": ES256, "typ": "JWT", "kid": f"{holder_did}#key-{index}"}
    payload = {
        "iss": holder_did,
        "vp": {
            "@context": [VP_CONTEXT],
            "type": [VP_TYPE],
            "verifiableCredential": credentials,
        },
    }
    signing_input = b64url_encode(canonical_json(header)) + "." + b64url_encode(canonical_json(payload))
    signature = sign(private_key, signing_input.encode("ascii"))
    return signing_input + "." + b64url_encode(signature)


def decode_presentation(presentation: str) -> CompactPresentation:
    """
    Split and decode a compact presentation without verifying it.

    Raises:
        ValueError: if the string is not a well-formed compact JWS
    """
    parts = presentation.split(".")
    if len(parts) != 3:
        raise ValueError("presentation is not a compact JWS")
    try:
        header = json.loads(b64url_decode(parts[0]))
        payload = json.loads(b64url_decode(parts[1]))
        signature = b64url_decode(parts[2])
    except (ValueError, UnicodeDecodeError) as e:
        raise ValueError(f"presentation decode failed: {e}") from e
    if not isinstance(header, dict) or not isinstance(payload, dict):
        raise ValueError("presentation header and payload must be objects")
    return CompactPresentation(
        header=header,
        payload=payload,
        signing_input=(parts[0] + "." + parts[1]).encode("ascii"),
        signature=signature,
    )
