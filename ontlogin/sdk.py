"""Server side of the DID login protocol: issue challenges, validate responses."""

import logging
from typing import List, Mapping

from ontlogin.common.errors import (
    ActionNotSupportedError, DidMismatchError, NonceInvalidError, PresentationVerificationError,
    SignatureDecodeError, SignatureVerificationError, TypeNotSupportedError, UnsupportedChainError,
    WrongVersionError
)
from ontlogin.common.protocol import (
    SYS_VER, TYPE_CLIENT_HELLO, TYPE_CLIENT_RESPONSE, Action, ClientHello, ClientResponse,
    ClientResponseMsg, ServerHello, ServerInfoToSign
)
from ontlogin.common.utils import hex_decode
from ontlogin.config import SDKConfig
from ontlogin.did.processor import DidProcessor, freeze_registry
from ontlogin.did.reference import get_did_chain, parse_verification_method
from ontlogin.storage.nonce_store import NonceAuthority

log = logging.getLogger(__name__)

SUPPORTED_ACTIONS = frozenset(a.value for a in Action)


class OntLoginSdk:
    """
    Challenge issuer and response validator.

    Holds no mutable state of its own: config and the processor registry are
    read-only, and the nonce authority synchronises itself, so one instance
    can serve concurrent requests. Calls into processors and the nonce
    authority may block; their timeouts are theirs to enforce.
    """

    def __init__(self, conf: SDKConfig, processors: Mapping[str, DidProcessor], nonces: NonceAuthority):
        self.conf = conf
        self.processors = freeze_registry(processors)
        self.nonces = nonces

    def get_did_chain(self, did: str) -> str:
        """Chain identifier of a `did:<chain>:<id>` string."""
        return get_did_chain(did)

    def _processor(self, chain: str) -> DidProcessor:
        processor = self.processors.get(chain)
        if processor is None:
            raise UnsupportedChainError(f"not a supported did chain: {chain}", {"chain": chain})
        return processor

    def generate_challenge(self, hello: ClientHello) -> ServerHello:
        """
        Validate a client hello and issue a challenge bound to its action.

        Args:
            hello: client hello

        Returns:
            ServerHello carrying a freshly minted nonce

        Raises:
            WrongVersionError, TypeNotSupportedError, ActionNotSupportedError
        """
        self._check_format(hello.ver, hello.type, TYPE_CLIENT_HELLO)
        if hello.action not in SUPPORTED_ACTIONS:
            raise ActionNotSupportedError(f"action not supported: {hello.action}")

        nonce = self.nonces.mint(hello.action)
        log.debug("Issued challenge for action %s", hello.action)
        return ServerHello(
            nonce=nonce,
            server=self.conf.server_info.model_copy(),
            chain=list(self.conf.chain),
            alg=list(self.conf.alg),
            vc_filters=self.conf.filters_for(hello.action),
        )

    def get_credential_jsons(self, chain: str, presentation: str) -> List[str]:
        """Credential documents embedded in a presentation, extracted by the chain's processor."""
        return self._processor(chain).get_credential_jsons(presentation)

    def validate_client_response(self, res: ClientResponse) -> None:
        """
        Authenticate a client response. Returns only if every check passes.

        Steps run strictly in order and the first failure rejects the whole
        attempt. The nonce is looked up exactly once, which consumes it.

        Raises:
            OntLoginError subclass describing the first failed check
        """
        try:
            self._validate(res)
        except Exception as e:
            log.info("Rejected client response for %s: %s", res.did, e)
            raise

    def _validate(self, res: ClientResponse):
        self._check_format(res.ver, res.type, TYPE_CLIENT_RESPONSE)

        ref = parse_verification_method(res.proof.verification_method)
        if ref.did.lower() != res.did.lower():
            raise DidMismatchError("did and verificationMethod do not match",
                                   {"did": res.did, "verificationMethod": res.proof.verification_method})

        processor = self._processor(get_did_chain(ref.did))

        try:
            action = self.nonces.resolve_action(res.nonce)
        except Exception as e:
            raise NonceInvalidError(f"nonce is not valid on server side: {e}") from e

        msg = ClientResponseMsg(
            type=res.type,
            server=ServerInfoToSign(
                name=self.conf.server_info.name,
                url=self.conf.server_info.url,
                did=self.conf.server_info.did,
            ),
            nonce=res.nonce,
            did=ref.did,
            created=res.proof.created,
        )
        data_to_sign = msg.to_sign_bytes()

        try:
            sig = hex_decode(res.proof.value)
        except ValueError as e:
            raise SignatureDecodeError(f"decode proof value failed: {e}") from e

        try:
            processor.verify_sig(ref.did, ref.key_index, data_to_sign, sig)
        except Exception as e:
            raise SignatureVerificationError(str(e)) from e

        if res.vps:
            required_types = self.conf.required_types(action)
            for vp in res.vps:
                try:
                    processor.verify_presentation(ref.did, ref.key_index, vp, required_types)
                except Exception as e:
                    raise PresentationVerificationError(str(e)) from e

        log.info("Authenticated %s for action %s", ref.did, action)

    @staticmethod
    def _check_format(ver: str, msg_type: str, expected_type: str):
        if ver.lower() != SYS_VER.lower():
            raise WrongVersionError(f"wrong version: {ver}")
        if msg_type.lower() != expected_type.lower():
            raise TypeNotSupportedError(f"type not supported: {msg_type}")
