"""Login protocol errors. Every failure is terminal for the current attempt."""

from typing import Any, Dict, Optional


class OntLoginError(Exception):
    """Base for all protocol rejections; `code` is stable and safe to return to clients."""
    code = "ERR_ONTLOGIN"

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class WrongVersionError(OntLoginError):
    code = "ERR_WRONG_VERSION"


class TypeNotSupportedError(OntLoginError):
    code = "ERR_TYPE_NOT_SUPPORTED"


class ActionNotSupportedError(OntLoginError):
    code = "ERR_ACTION_NOT_SUPPORTED"


class MalformedReferenceError(OntLoginError):
    """Verification method is not `<did>#key-<index>`."""
    code = "ERR_MALFORMED_REFERENCE"


class MalformedDidError(MalformedReferenceError):
    """DID is not `did:<chain>:<identifier>`."""
    code = "ERR_MALFORMED_DID"


class DidMismatchError(OntLoginError):
    code = "ERR_DID_MISMATCH"


class UnsupportedChainError(OntLoginError):
    code = "ERR_UNSUPPORTED_CHAIN"


class NonceInvalidError(OntLoginError):
    code = "ERR_NONCE_INVALID"


class SignatureDecodeError(OntLoginError):
    code = "ERR_SIGNATURE_DECODE"


class MessageEncodingError(OntLoginError):
    code = "ERR_MESSAGE_ENCODING"


class SignatureVerificationError(OntLoginError):
    """Chain resolver rejected the signature; the resolver error is the __cause__."""
    code = "ERR_SIGNATURE_VERIFICATION"


class PresentationVerificationError(OntLoginError):
    """A verifiable presentation failed; the resolver error is the __cause__."""
    code = "ERR_PRESENTATION_VERIFICATION"
