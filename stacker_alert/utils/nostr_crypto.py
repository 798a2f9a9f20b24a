"""
Nostr event and NIP-04 direct message helpers.

Keys are hex strings: a 32-byte secp256k1 secret key and 32-byte x-only
public keys, as used on the wire.
"""

import base64
import hashlib
import json
import os
import time
from typing import Any, Dict, List, Optional

from coincurve import PrivateKey, PublicKey, PublicKeyXOnly
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

KIND_ENCRYPTED_DIRECT_MESSAGE = 4

Event = Dict[str, Any]


def public_key_hex(private_key_hex: str) -> str:
    """Derive the x-only public key for a secret key."""
    private_key = PrivateKey(bytes.fromhex(private_key_hex))
    return private_key.public_key.format(compressed=True)[1:].hex()


def compute_shared_secret(private_key_hex: str, public_key_hex_: str) -> bytes:
    """NIP-04 shared secret: the unhashed x coordinate of the ECDH point."""
    point = PublicKey(b"\x02" + bytes.fromhex(public_key_hex_))
    shared_point = point.multiply(bytes.fromhex(private_key_hex))
    return shared_point.format(compressed=True)[1:]


def encrypt(plaintext: str, shared_secret: bytes, iv: Optional[bytes] = None) -> str:
    """Encrypt ``plaintext`` into NIP-04 ``<ciphertext>?iv=<iv>`` content."""
    iv = iv or os.urandom(16)

    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(shared_secret), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return (
        base64.b64encode(ciphertext).decode("ascii")
        + "?iv="
        + base64.b64encode(iv).decode("ascii")
    )


def decrypt(content: str, shared_secret: bytes) -> str:
    """Decrypt NIP-04 content produced by :func:`encrypt`."""
    try:
        ciphertext_b64, iv_b64 = content.split("?iv=")
    except ValueError:
        raise ValueError("Encrypted content is missing its iv") from None

    ciphertext = base64.b64decode(ciphertext_b64)
    iv = base64.b64decode(iv_b64)

    decryptor = Cipher(algorithms.AES(shared_secret), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(128).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


def serialize_event(event: Event) -> bytes:
    """NIP-01 canonical serialisation used for the event id."""
    return json.dumps(
        [
            0,
            event["pubkey"],
            event["created_at"],
            event["kind"],
            event["tags"],
            event["content"],
        ],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def compute_event_id(event: Event) -> str:
    return hashlib.sha256(serialize_event(event)).hexdigest()


def sign_event(event: Event, private_key_hex: str) -> Event:
    """Set the event ``id`` and BIP-340 ``sig`` fields in place."""
    event["id"] = compute_event_id(event)
    private_key = PrivateKey(bytes.fromhex(private_key_hex))
    event["sig"] = private_key.sign_schnorr(bytes.fromhex(event["id"])).hex()
    return event


def verify_event(event: Event) -> bool:
    """Check the id and signature of a signed event."""
    if event.get("id") != compute_event_id(event):
        return False

    public_key = PublicKeyXOnly(bytes.fromhex(event["pubkey"]))
    return public_key.verify(bytes.fromhex(event["sig"]), bytes.fromhex(event["id"]))


def build_direct_message(
    plaintext: str,
    sender_private_key_hex: str,
    recipient_public_key_hex: str,
    created_at: Optional[int] = None,
) -> Event:
    """Encrypt ``plaintext`` for the recipient and wrap it in a signed kind-4 event."""
    shared_secret = compute_shared_secret(
        sender_private_key_hex, recipient_public_key_hex
    )
    tags: List[List[str]] = [["p", recipient_public_key_hex]]

    event: Event = {
        "pubkey": public_key_hex(sender_private_key_hex),
        "created_at": created_at if created_at is not None else int(time.time()),
        "kind": KIND_ENCRYPTED_DIRECT_MESSAGE,
        "tags": tags,
        "content": encrypt(plaintext, shared_secret),
    }
    return sign_event(event, sender_private_key_hex)
