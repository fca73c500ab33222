import pytest

from ontlogin.common.protocol import ServerInfo, VCFilter
from ontlogin.config import SDKConfig
from ontlogin.crypto.sign import generate_private_key
from ontlogin.did.keyring import KeyringProcessor
from ontlogin.did.processor import DidProcessor, DidProcessorError
from ontlogin.sdk import OntLoginSdk
from ontlogin.storage.nonce_store import MemoryNonceStore

CLIENT_DID = "did:ont:abc"


class RecordingProcessor(DidProcessor):
    """Fake chain resolver that records calls and fails on demand."""

    def __init__(self, sig_error=None, bad_presentations=()):
        self.sig_error = sig_error
        self.bad_presentations = set(bad_presentations)
        self.calls = []

    def verify_sig(self, did, index, msg, sig):
        self.calls.append(("verify_sig", did, index, msg, sig))
        if self.sig_error:
            raise self.sig_error

    def verify_presentation(self, did, index, presentation, required_types):
        self.calls.append(("verify_presentation", did, index, presentation, list(required_types)))
        if presentation in self.bad_presentations:
            raise DidProcessorError(f"bad presentation {presentation}")

    def get_credential_jsons(self, presentation):
        self.calls.append(("get_credential_jsons", presentation))
        return ['{"type":["EmailCredential"]}']


@pytest.fixture
def conf():
    return SDKConfig(
        chain=["ont"],
        alg=["ES256"],
        server_info=ServerInfo(
            name="testServer",
            icon="http://somepic.jpg",
            url="https://ont.io",
            did="did:ont:sampletest",
            verification_method="",
        ),
        vc_filters={
            1: [
                VCFilter(type="EmailCredential", required=True),
                VCFilter(type="NationalityCredential", required=False),
            ],
        },
    )


@pytest.fixture
def client_key():
    return generate_private_key()


@pytest.fixture
def other_key():
    return generate_private_key()


@pytest.fixture
def keyring(client_key):
    return KeyringProcessor({CLIENT_DID: [client_key.public_key()]})


@pytest.fixture
def nonces():
    return MemoryNonceStore()


@pytest.fixture
def sdk(conf, keyring, nonces):
    return OntLoginSdk(conf, {"ont": keyring}, nonces)
