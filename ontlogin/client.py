"""Login client — signs server challenges with a local DID key."""

import argparse
import logging
import socket
from typing import List, Optional

from cryptography.hazmat.primitives.asymmetric import ec

from ontlogin.common.protocol import (
    TYPE_CLIENT_RESPONSE, TYPE_SERVER_HELLO, Action, ClientHello, ClientResponse, ClientResponseMsg,
    Proof, ServerHello, ServerInfoToSign
)
from ontlogin.common.utils import now_s
from ontlogin.crypto.sign import ES256, load_private_key, sign
from ontlogin.server import receive_message, send_message

log = logging.getLogger(__name__)


def build_client_response(challenge: ServerHello, did: str, index: int, private_key: ec.EllipticCurvePrivateKey,
                          created: Optional[int] = None, vps: Optional[List[str]] = None) -> ClientResponse:
    """
    Answer a challenge by signing the canonical response message.

    Args:
        challenge: server hello received from the server
        did: client DID
        index: key index of private_key in the DID's key material
        private_key: P-256 signing key
        created: proof timestamp in unix seconds (defaults to now)
        vps: presentations to attach

    Returns:
        ClientResponse ready to send
    """
    created = now_s() if created is None else created
    msg = ClientResponseMsg(
        type=TYPE_CLIENT_RESPONSE,
        server=ServerInfoToSign(
            name=challenge.server.name,
            url=challenge.server.url,
            did=challenge.server.did,
        ),
        nonce=challenge.nonce,
        did=did,
        created=created,
    )
    signature = sign(private_key, msg.to_sign_bytes())
    return ClientResponse(
        did=did,
        nonce=challenge.nonce,
        proof=Proof(
            type=ES256,
            verification_method=f"{did}#key-{index}",
            created=created,
            value=signature.hex(),
        ),
        vps=vps,
    )


class LoginClient:
    """Runs the hello/response exchange against a LoginServer."""

    def __init__(self, did: str, index: int, private_key: ec.EllipticCurvePrivateKey,
                 host: str = "localhost", port: int = 8890):
        self.did = did
        self.index = index
        self.private_key = private_key
        self.host = host
        self.port = port

    def login(self, action: int = Action.AUTHORIZATION, vps: Optional[List[str]] = None,
              sock: Optional[socket.socket] = None) -> dict:
        """
        Log in and return the server's final message.

        Args:
            action: requested Action
            vps: presentations to attach to the response
            sock: already connected socket (a new connection is opened if None)

        Returns:
            final server message: login_success or error
        """
        sock = sock or socket.create_connection((self.host, self.port))
        try:
            send_message(sock, ClientHello(action=int(action)).to_wire())
            msg = receive_message(sock)
            if msg.get("type") != TYPE_SERVER_HELLO:
                log.warning("Challenge refused: %s", msg.get("message"))
                return msg
            challenge = ServerHello.model_validate(msg)
            response = build_client_response(challenge, self.did, self.index, self.private_key, vps=vps)
            send_message(sock, response.to_wire())
            return receive_message(sock)
        finally:
            sock.close()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Log in to an ontlogin server")
    parser.add_argument("--did", required=True, help="Client DID, e.g. did:ont:abc")
    parser.add_argument("--key", required=True, help="PEM private key file")
    parser.add_argument("--index", type=int, default=0, help="Key index in the DID")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8890)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    client = LoginClient(args.did, args.index, load_private_key(args.key), args.host, args.port)
    print(client.login())


if __name__ == "__main__":
    main()
