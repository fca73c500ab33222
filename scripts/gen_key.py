"""Create a P-256 key pair for a DID and add it to a keyring file."""

import argparse
import json
import os
import sys
from pathlib import Path

# Add project root to path (scripts folder is one level down)
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from ontlogin.crypto.sign import generate_private_key, private_key_pem, public_key_pem
from ontlogin.did.reference import get_did_chain


def generate_key(did: str, output_dir: str = "keys") -> int:
    """
    Generate a key pair for did and register its public key in keyring.json.

    Args:
        did: DID owning the key, e.g. did:ont:alice
        output_dir: directory holding the keyring and PEM files

    Returns:
        index of the new key in the DID's key list
    """
    get_did_chain(did)  # reject malformed DIDs early
    os.makedirs(output_dir, exist_ok=True)
    keyring_path = os.path.join(output_dir, "keyring.json")
    keyring = {}
    if os.path.exists(keyring_path):
        with open(keyring_path, "r") as f:
            keyring = json.load(f)

    entries = keyring.setdefault(did, [])
    index = len(entries)
    stem = f"{did.replace(':', '_')}_key-{index}"

    private_key = generate_private_key()

    key_path = os.path.join(output_dir, f"{stem}.pem")
    with open(key_path, "wb") as f:
        f.write(private_key_pem(private_key))
    print(f"Private key saved to {key_path}")

    pub_name = f"{stem}.pub.pem"
    with open(os.path.join(output_dir, pub_name), "wb") as f:
        f.write(public_key_pem(private_key.public_key()))

    entries.append(pub_name)
    with open(keyring_path, "w") as f:
        json.dump(keyring, f, indent=2)
    print(f"Registered {did}#key-{index} in {keyring_path}")
    return index


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate a DID key pair")
    parser.add_argument("--did", required=True, help="DID owning the key")
    parser.add_argument("--out", default="keys", help="Output directory")
    args = parser.parse_args()

    generate_key(args.did, args.out)
