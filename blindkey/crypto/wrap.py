"""AES-GCM wrap/unwrap of exported private keys.

Two nonce schemes exist:

* username scheme (`wrap`/`unwrap`): nonce = SHA-256(iv_seed), 32 bytes. The
  same (key, nonce) pair is produced for a given username, so it must only
  ever protect one plaintext. Records are immutable, which keeps that true.
* random scheme (`wrap_random`/`unwrap_random`): fresh 96-bit nonce stored in
  front of the ciphertext, like the other AES-GCM blobs in this package.

Both raise `cryptography.exceptions.InvalidTag` on a wrong key or tampered blob.
"""
from enum import Enum
from os import urandom

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .digest import digest

NONCE_LEN = 12


class NonceScheme(Enum):
    USERNAME = "username"  # legacy record format: nonce = SHA-256(username)
    RANDOM = "random"      # fresh nonce stored in front of the wrapped key


def wrap(iv_seed: str, plaintext: bytes, key: AESGCM) -> bytes:
    return key.encrypt(digest(iv_seed), bytes(plaintext), None)


def unwrap(iv_seed: str, ciphertext: bytes, key: AESGCM) -> bytes:
    return key.decrypt(digest(iv_seed), bytes(ciphertext), None)


def wrap_random(plaintext: bytes, key: AESGCM) -> bytes:
    """Header = NONCE(12) + CT."""
    nonce = urandom(NONCE_LEN)
    return nonce + key.encrypt(nonce, bytes(plaintext), None)


def unwrap_random(blob: bytes, key: AESGCM) -> bytes:
    blob = bytes(blob)
    if len(blob) < NONCE_LEN:
        # too short to even hold a nonce; same outcome as a forged tag
        raise InvalidTag()
    return key.decrypt(blob[:NONCE_LEN], blob[NONCE_LEN:], None)
