"""Chain resolver backed by a local keyring instead of a chain node."""

import json
import logging
import os
from typing import Dict, List, Mapping, Sequence

from cryptography.hazmat.primitives.asymmetric import ec

from ontlogin.common.utils import canonical_json
from ontlogin.crypto.presentation import decode_presentation
from ontlogin.crypto.sign import ES256, load_public_key, verify
from ontlogin.did.processor import DidProcessor, DidProcessorError

log = logging.getLogger(__name__)


class KeyringProcessor(DidProcessor):
    """
    Resolve DID key material from a static `{did: [public_key, ...]}` table.

    Key index N is the N-th key listed for the DID. DIDs are matched
    case-insensitively.
    """

    def __init__(self, keys: Mapping[str, Sequence[ec.EllipticCurvePublicKey]]):
        self._keys: Dict[str, List[ec.EllipticCurvePublicKey]] = {
            did.lower(): list(pubs) for did, pubs in keys.items()
        }

    @classmethod
    def from_file(cls, path: str) -> "KeyringProcessor":
        """
        Load a keyring file.

        Args:
            path: JSON file mapping each DID to a list of PEM public key paths,
                  relative paths being resolved against the keyring's directory

        Returns:
            KeyringProcessor
        """
        with open(path, 'r') as f:
            table = json.load(f)
        base_dir = os.path.dirname(os.path.abspath(path))
        keys = {}
        for did, pem_paths in table.items():
            pubs = []
            for pem_path in pem_paths:
                with open(os.path.join(base_dir, pem_path), 'rb') as f:
                    pubs.append(load_public_key(f.read()))
            keys[did] = pubs
        log.info("Loaded keyring %s with %d DIDs", path, len(keys))
        return cls(keys)

    def _public_key(self, did: str, index: int) -> ec.EllipticCurvePublicKey:
        pubs = self._keys.get(did.lower())
        if not pubs:
            raise DidProcessorError(f"unknown did: {did}")
        if index < 0 or index >= len(pubs):
            raise DidProcessorError(f"key index {index} not found for {did}")
        return pubs[index]

    def verify_sig(self, did: str, index: int, msg: bytes, sig: bytes) -> None:
        public_key = self._public_key(did, index)
        if not verify(public_key, sig, msg):
            raise DidProcessorError(f"signature verification failed for {did}#key-{index}")

    def verify_presentation(self, did: str, index: int, presentation: str, required_types: List[str]) -> None:
        try:
            vp = decode_presentation(presentation)
            credentials = vp.credentials
        except ValueError as e:
            raise DidProcessorError(str(e)) from e

        if vp.header.get("alg") != ES256:
            raise DidProcessorError(f"unsupported presentation alg: {vp.header.get('alg')}")
        if str(vp.payload.get("iss", "")).lower() != did.lower():
            raise DidProcessorError("presentation holder does not match did")
        if not verify(self._public_key(did, index), vp.signature, vp.signing_input):
            raise DidProcessorError("presentation signature verification failed")

        presented = set()
        for cred in credentials:
            types = cred.get("type") or []
            if isinstance(types, str):
                types = [types]
            presented.update(types)
        missing = [t for t in required_types if t not in presented]
        if missing:
            raise DidProcessorError(f"presentation is missing required credential types: {missing}")

    def get_credential_jsons(self, presentation: str) -> List[str]:
        try:
            credentials = decode_presentation(presentation).credentials
        except ValueError as e:
            raise DidProcessorError(str(e)) from e
        return [canonical_json(cred).decode("utf-8") for cred in credentials]
