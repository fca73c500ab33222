"""Encoding helpers shared by the server and client sides."""

import base64
import binascii
import json
import time

from ontlogin.common.errors import MessageEncodingError


# JSON escapes applied on top of json.dumps so the output matches signers
# that HTML-escape their JSON.
_HTML_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def now_s() -> int:
    """Return current unix time in seconds."""
    return int(time.time())


def canonical_json(obj) -> bytes:
    """
    Serialize obj as compact JSON, keeping key insertion order.

    Args:
        obj: dict/list tree of JSON-compatible values

    Returns:
        UTF-8 encoded JSON bytes

    Raises:
        MessageEncodingError: if obj cannot be represented as JSON
    """
    try:
        text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        # these characters only ever occur inside string literals
        for ch, escaped in _HTML_ESCAPES.items():
            text = text.replace(ch, escaped)
        # lone surrogates have no UTF-8 encoding
        return text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise MessageEncodingError(f"marshal message failed: {e}") from e


def hex_decode(value: str) -> bytes:
    """
    Strict hex decoding: even length, hex digits only, no whitespace.

    Raises:
        ValueError: on malformed input
    """
    try:
        return binascii.unhexlify(value)
    except (ValueError, TypeError) as e:
        raise ValueError(str(e)) from e


def b64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(s: str) -> bytes:
    """Base64url decode, tolerating missing padding."""
    pad = "=" * (-len(s) % 4)
    return base64.urlsafe_b64decode(s + pad)
