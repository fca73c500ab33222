"""Pydantic models: client_hello, server_hello, client_response, proof, signing message."""

from enum import IntEnum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from ontlogin.common.utils import canonical_json


SYS_VER = "v1"

TYPE_CLIENT_HELLO = "client_hello"
TYPE_SERVER_HELLO = "server_hello"
TYPE_CLIENT_RESPONSE = "client_response"


class Action(IntEnum):
    """Action a client asks the server to perform once logged in."""
    AUTHORIZATION = 0
    CERTIFICATION = 1


class WireModel(BaseModel):
    """Base for wire messages: snake_case attributes, fixed JSON aliases."""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump with wire field names, dropping unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ClientHello(WireModel):
    """Client hello requesting a challenge for an action."""
    ver: str = SYS_VER
    type: str = TYPE_CLIENT_HELLO
    action: int  # Action value; range checked by the issuer


class ServerInfo(WireModel):
    """Relying-party descriptor shown to the client."""
    name: str
    icon: str = ""
    url: str
    did: str
    verification_method: str = Field(default="", alias="verificationMethod")


class ServerInfoToSign(WireModel):
    """Reduced server descriptor embedded in the signed message."""
    name: str
    url: str
    did: str


class VCFilter(WireModel):
    """Credential type the server asks for, and whether it is mandatory."""
    type: str
    express: List[str] = Field(default_factory=list)
    trust_roots: List[str] = Field(default_factory=list, alias="trustRoots")
    required: bool = False


class ServerHello(WireModel):
    """Challenge sent back to the client."""
    ver: str = SYS_VER
    type: str = TYPE_SERVER_HELLO
    nonce: str
    server: ServerInfo
    chain: List[str]
    alg: List[str]
    vc_filters: Optional[List[VCFilter]] = Field(default=None, alias="VCFilters")


class Proof(WireModel):
    """Client signature over the canonical response message."""
    type: Optional[str] = None  # algorithm label, e.g. "ES256"
    verification_method: str = Field(alias="verificationMethod")
    created: int  # unix timestamp in seconds
    value: str  # hex-encoded signature


class ClientResponse(WireModel):
    """Signed answer to a challenge, optionally carrying presentations."""
    ver: str = SYS_VER
    type: str = TYPE_CLIENT_RESPONSE
    did: str
    nonce: str
    proof: Proof
    vps: Optional[List[str]] = Field(default=None, alias="VPs")


class ClientResponseMsg(BaseModel):
    """
    Message the client signs.

    Field order is part of the wire contract: type, server, nonce, did, created.
    """
    type: str
    server: ServerInfoToSign
    nonce: str
    did: str
    created: int

    def to_sign_bytes(self) -> bytes:
        """
        Canonical encoding of the message.

        Returns:
            compact UTF-8 JSON in declaration order
        """
        return canonical_json(self.model_dump())
