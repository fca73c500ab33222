"""Login server — line-delimited JSON over plain TCP; hello, challenge, response."""

import json
import logging
import os
import socket
import threading
from typing import Dict, Mapping

from dotenv import load_dotenv
from pydantic import ValidationError

from ontlogin.common.errors import OntLoginError
from ontlogin.common.protocol import ClientHello, ClientResponse
from ontlogin.config import SDKConfig, load_config
from ontlogin.did.keyring import KeyringProcessor
from ontlogin.did.processor import DidProcessor
from ontlogin.sdk import OntLoginSdk
from ontlogin.storage.nonce_store import DEFAULT_TTL_SECONDS, MemoryNonceStore, MySQLNonceStore, NonceAuthority

load_dotenv()

log = logging.getLogger(__name__)


def send_message(conn: socket.socket, message: dict):
    """Send JSON message over socket."""
    data = json.dumps(message) + "\n"
    conn.sendall(data.encode('utf-8'))


def receive_message(conn: socket.socket) -> dict:
    """Receive one JSON line from socket."""
    buffer = b""
    while b"\n" not in buffer:
        chunk = conn.recv(4096)
        if not chunk:
            raise ConnectionError("Connection closed")
        buffer += chunk
    line = buffer.split(b"\n", 1)[0]
    return json.loads(line.decode('utf-8'))


def error_message(code: str, message: str) -> dict:
    return {"type": "error", "code": code, "message": message}


class LoginServer:
    """Serves the two-message login exchange for each connection."""

    def __init__(self, sdk: OntLoginSdk, host: str = "localhost", port: int = 8890):
        self.sdk = sdk
        self.host = host
        self.port = port

    def _handle_hello(self, conn: socket.socket, msg: dict) -> bool:
        """Handle client hello and send server hello (or an error)."""
        try:
            hello = ClientHello.model_validate(msg)
            challenge = self.sdk.generate_challenge(hello)
        except ValidationError as e:
            send_message(conn, error_message("ERR_BAD_MESSAGE", str(e)))
            return False
        except OntLoginError as e:
            send_message(conn, error_message(e.code, e.message))
            return False
        except Exception:
            log.exception("Failed to issue challenge")
            send_message(conn, error_message("ERR_INTERNAL", "internal server error"))
            return False
        send_message(conn, challenge.to_wire())
        return True

    def _handle_response(self, conn: socket.socket, msg: dict) -> bool:
        """Handle client response and report the login outcome."""
        try:
            response = ClientResponse.model_validate(msg)
            self.sdk.validate_client_response(response)
        except ValidationError as e:
            send_message(conn, error_message("ERR_BAD_MESSAGE", str(e)))
            return False
        except OntLoginError as e:
            send_message(conn, error_message(e.code, e.message))
            return False
        except Exception:
            log.exception("Failed to validate client response")
            send_message(conn, error_message("ERR_INTERNAL", "internal server error"))
            return False
        send_message(conn, {"type": "login_success", "did": response.did})
        return True

    def handle_connection(self, conn: socket.socket, addr=None):
        """Run one hello/response exchange, then close the connection."""
        log.info("Client connected from %s", addr)
        try:
            if not self._handle_hello(conn, receive_message(conn)):
                return
            if self._handle_response(conn, receive_message(conn)):
                log.info("Client %s logged in", addr)
        except (ConnectionError, json.JSONDecodeError, UnicodeDecodeError) as e:
            log.warning("Dropping client %s: %s", addr, e)
        finally:
            conn.close()
            log.info("Client %s disconnected", addr)

    def start(self):
        """Start the server."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((self.host, self.port))
        sock.listen(5)

        log.info("Login server listening on %s:%s", self.host, self.port)

        while True:
            conn, addr = sock.accept()
            client_thread = threading.Thread(target=self.handle_connection, args=(conn, addr))
            client_thread.daemon = True
            client_thread.start()


def build_processors(conf: SDKConfig, keyring_path: str) -> Mapping[str, DidProcessor]:
    """Register the local keyring under every configured chain."""
    keyring = KeyringProcessor.from_file(keyring_path)
    processors: Dict[str, DidProcessor] = {}
    for chain in conf.chain:
        processors[chain] = keyring
    return processors


def build_nonce_store() -> NonceAuthority:
    ttl = float(os.getenv("NONCE_TTL", DEFAULT_TTL_SECONDS))
    backend = os.getenv("NONCE_BACKEND", "memory")
    if backend == "mysql":
        return MySQLNonceStore(ttl_seconds=ttl)
    if backend == "memory":
        return MemoryNonceStore(ttl_seconds=ttl)
    raise ValueError(f"unknown NONCE_BACKEND: {backend}")


def main():
    """Main entry point."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    conf = load_config()
    processors = build_processors(conf, os.getenv("KEYRING_FILE", "keys/keyring.json"))
    sdk = OntLoginSdk(conf, processors, build_nonce_store())
    server = LoginServer(
        sdk,
        host=os.getenv("ONTLOGIN_HOST", "localhost"),
        port=int(os.getenv("ONTLOGIN_PORT", 8890)),
    )
    server.start()


if __name__ == "__main__":
    main()
