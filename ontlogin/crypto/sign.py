"""ES256 (ECDSA P-256 + SHA-256) sign/verify with raw r||s signatures."""

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature, encode_dss_signature


ES256 = "ES256"
COORD_SIZE = 32  # P-256 coordinate length in bytes


def generate_private_key() -> ec.EllipticCurvePrivateKey:
    """Generate a new P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


def load_private_key(filepath: str) -> ec.EllipticCurvePrivateKey:
    """
    Load P-256 private key from PEM file.

    Args:
        filepath: path to private key file

    Returns:
        EllipticCurvePrivateKey object
    """
    with open(filepath, 'rb') as f:
        key = serialization.load_pem_private_key(f.read(), password=None)
    if not isinstance(key, ec.EllipticCurvePrivateKey) or key.curve.name != "secp256r1":
        raise ValueError(f"{filepath} does not contain a P-256 private key")
    return key


def load_public_key(pem_data: bytes) -> ec.EllipticCurvePublicKey:
    """
    Load P-256 public key from PEM bytes.

    Raises:
        ValueError: if the PEM is not a P-256 public key
    """
    key = serialization.load_pem_public_key(pem_data)
    if not isinstance(key, ec.EllipticCurvePublicKey) or key.curve.name != "secp256r1":
        raise ValueError("not a P-256 public key")
    return key


def public_key_pem(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Serialize a public key as SubjectPublicKeyInfo PEM."""
    return public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )


def private_key_pem(private_key: ec.EllipticCurvePrivateKey) -> bytes:
    """Serialize a private key as unencrypted PKCS#8 PEM."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


def sign(private_key: ec.EllipticCurvePrivateKey, data: bytes) -> bytes:
    """
    Sign data with ECDSA P-256 / SHA-256.

    Args:
        private_key: P-256 private key
        data: data to sign

    Returns:
        64-byte signature r||s
    """
    der = private_key.sign(data, ec.ECDSA(hashes.SHA256()))
    r, s = decode_dss_signature(der)
    return r.to_bytes(COORD_SIZE, "big") + s.to_bytes(COORD_SIZE, "big")


def verify(public_key: ec.EllipticCurvePublicKey, signature: bytes, data: bytes) -> bool:
    """
    Verify an r||s ECDSA P-256 / SHA-256 signature.

    Args:
        public_key: P-256 public key
        signature: 64-byte signature
        data: original data

    Returns:
        True if signature is valid, False otherwise
    """
    if len(signature) != 2 * COORD_SIZE:
        return False
    r = int.from_bytes(signature[:COORD_SIZE], "big")
    s = int.from_bytes(signature[COORD_SIZE:], "big")
    try:
        public_key.verify(encode_dss_signature(r, s), data, ec.ECDSA(hashes.SHA256()))
        return True
    except InvalidSignature:
        return False
