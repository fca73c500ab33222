import json

import pytest

from ontlogin.crypto.presentation import decode_presentation, encode_presentation
from ontlogin.crypto.sign import private_key_pem, public_key_pem, sign, verify
from ontlogin.did.keyring import KeyringProcessor
from ontlogin.did.processor import DidProcessorError

from conftest import CLIENT_DID


def test_sign_verify(client_key, other_key):
    sig = sign(client_key, b"hello")
    assert len(sig) == 64
    assert verify(client_key.public_key(), sig, b"hello")
    assert not verify(client_key.public_key(), sig, b"hell0")
    assert not verify(other_key.public_key(), sig, b"hello")
    assert not verify(client_key.public_key(), sig[:-1], b"hello")


def test_verify_sig(keyring, client_key):
    keyring.verify_sig(CLIENT_DID, 0, b"msg", sign(client_key, b"msg"))
    keyring.verify_sig(CLIENT_DID.upper(), 0, b"msg", sign(client_key, b"msg"))


@pytest.mark.parametrize("did,index", [("did:ont:nobody", 0), (CLIENT_DID, 1), (CLIENT_DID, -1)])
def test_verify_sig_unknown_key(keyring, client_key, did, index):
    with pytest.raises(DidProcessorError):
        keyring.verify_sig(did, index, b"msg", sign(client_key, b"msg"))


def test_verify_sig_second_key(client_key, other_key):
    keyring = KeyringProcessor({CLIENT_DID: [client_key.public_key(), other_key.public_key()]})
    keyring.verify_sig(CLIENT_DID, 1, b"msg", sign(other_key, b"msg"))
    with pytest.raises(DidProcessorError):
        keyring.verify_sig(CLIENT_DID, 0, b"msg", sign(other_key, b"msg"))


def test_presentation_decode(client_key):
    creds = [{"type": ["VerifiableCredential", "EmailCredential"], "credentialSubject": {"email": "a@b.c"}}]
    vp = decode_presentation(encode_presentation(client_key, CLIENT_DID, 0, creds))
    assert vp.header["alg"] == "ES256"
    assert vp.header["kid"] == "did:ont:abc#key-0"
    assert vp.payload["iss"] == CLIENT_DID
    assert vp.credentials == creds


@pytest.mark.parametrize("vp", ["", "a.b", "a.b.c.d", "!!.??.**", "e30.W10.AA"])
def test_presentation_decode_malformed(vp):
    with pytest.raises(ValueError):
        decode_presentation(vp).credentials


def test_verify_presentation(keyring, client_key):
    vp = encode_presentation(client_key, CLIENT_DID, 0, [{"type": "EmailCredential"}, {"type": ["KycCredential"]}])
    keyring.verify_presentation(CLIENT_DID, 0, vp, ["EmailCredential", "KycCredential"])
    keyring.verify_presentation(CLIENT_DID, 0, vp, [])
    with pytest.raises(DidProcessorError):
        keyring.verify_presentation(CLIENT_DID, 0, vp, ["PassportCredential"])


def test_verify_presentation_wrong_holder(client_key):
    keyring = KeyringProcessor({CLIENT_DID: [client_key.public_key()], "did:ont:eve": [client_key.public_key()]})
    vp = encode_presentation(client_key, "did:ont:eve", 0, [])
    with pytest.raises(DidProcessorError):
        keyring.verify_presentation(CLIENT_DID, 0, vp, [])


def test_verify_presentation_wrong_key(keyring, other_key):
    vp = encode_presentation(other_key, CLIENT_DID, 0, [])
    with pytest.raises(DidProcessorError):
        keyring.verify_presentation(CLIENT_DID, 0, vp, [])


def test_verify_presentation_garbage(keyring):
    with pytest.raises(DidProcessorError):
        keyring.verify_presentation(CLIENT_DID, 0, "not-a-vp", [])


def test_get_credential_jsons(keyring, client_key):
    creds = [{"type": ["EmailCredential"], "issuer": "did:ont:issuer"}, {"type": ["KycCredential"]}]
    vp = encode_presentation(client_key, CLIENT_DID, 0, creds)
    jsons = keyring.get_credential_jsons(vp)
    assert jsons == ['{"type":["EmailCredential"],"issuer":"did:ont:issuer"}', '{"type":["KycCredential"]}']
    assert [json.loads(j) for j in jsons] == creds
    with pytest.raises(DidProcessorError):
        keyring.get_credential_jsons("garbage")


def test_from_file(tmp_path, client_key):
    (tmp_path / "abc.pub.pem").write_bytes(public_key_pem(client_key.public_key()))
    (tmp_path / "keyring.json").write_text(json.dumps({CLIENT_DID: ["abc.pub.pem"]}))
    keyring = KeyringProcessor.from_file(str(tmp_path / "keyring.json"))
    keyring.verify_sig(CLIENT_DID, 0, b"msg", sign(client_key, b"msg"))


def test_from_file_rejects_private_key(tmp_path, client_key):
    (tmp_path / "abc.pem").write_bytes(private_key_pem(client_key))
    (tmp_path / "keyring.json").write_text(json.dumps({CLIENT_DID: ["abc.pem"]}))
    with pytest.raises(ValueError):
        KeyringProcessor.from_file(str(tmp_path / "keyring.json"))
