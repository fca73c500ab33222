import json

import pytest
from pydantic import ValidationError

from ontlogin.config import load_config, load_vc_filters


@pytest.fixture
def env(monkeypatch):
    for name in ("ONTLOGIN_CHAINS", "ONTLOGIN_ALGS", "SERVER_ICON", "SERVER_VERIFICATION_METHOD", "VC_FILTERS_FILE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SERVER_NAME", "testServer")
    monkeypatch.setenv("SERVER_URL", "https://ont.io")
    monkeypatch.setenv("SERVER_DID", "did:ont:sampletest")
    return monkeypatch


def test_load_config_defaults(env):
    conf = load_config()
    assert conf.chain == ["ont"]
    assert conf.alg == ["ES256"]
    assert conf.server_info.name == "testServer"
    assert conf.server_info.did == "did:ont:sampletest"
    assert conf.vc_filters == {}
    assert conf.filters_for(0) is None
    assert conf.required_types(0) == []


def test_load_config_lists(env):
    env.setenv("ONTLOGIN_CHAINS", "ont, eth,")
    env.setenv("ONTLOGIN_ALGS", "ES256,EdDSA")
    conf = load_config()
    assert conf.chain == ["ont", "eth"]
    assert conf.alg == ["ES256", "EdDSA"]


def test_load_vc_filters(env, tmp_path):
    path = tmp_path / "filters.json"
    path.write_text(json.dumps({
        "0": [{"type": "EmailCredential", "required": True}],
        "1": [
            {"type": "KycCredential", "required": True, "trustRoots": ["did:ont:issuer"]},
            {"type": "NationalityCredential"},
        ],
    }))
    env.setenv("VC_FILTERS_FILE", str(path))
    conf = load_config()
    assert conf.required_types(0) == ["EmailCredential"]
    assert conf.required_types(1) == ["KycCredential"]
    assert [f.type for f in conf.filters_for(1)] == ["KycCredential", "NationalityCredential"]
    assert conf.filters_for(1)[0].trust_roots == ["did:ont:issuer"]


def test_load_vc_filters_rejects_bad_entries(tmp_path):
    path = tmp_path / "filters.json"
    path.write_text(json.dumps({"0": [{"required": True}]}))
    with pytest.raises(ValidationError):
        load_vc_filters(str(path))


def test_config_is_frozen(env):
    conf = load_config()
    with pytest.raises(ValidationError):
        conf.chain = ["eth"]
