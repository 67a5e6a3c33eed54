"""Cryptography capability handed to AuthProtocol.

Everything the protocol does to keys goes through one of these methods, so a
test can swap in fixed keypairs (or count calls) without touching globals.
"""
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from blindkey.crypto import identity, serialize
from blindkey.crypto.digest import digest as sha256
from blindkey.crypto.jwk import PublicKeyRecord
from blindkey.crypto.wrap import NonceScheme, unwrap, unwrap_random, wrap, wrap_random
from .keys import derive_symmetric_key


class CryptoProvider:
    def digest(self, data: bytes | str) -> bytes:
        return sha256(data)

    def derive_key(self, username: str | bytes, password: str | bytes) -> AESGCM:
        return derive_symmetric_key(username, password)

    def generate_keypair(self) -> tuple[rsa.RSAPublicKey, rsa.RSAPrivateKey]:
        return identity.generate_keypair()

    def export_private_key(self, private_key: rsa.RSAPrivateKey) -> bytes:
        return serialize.private_key_to_bytes(private_key)

    def import_private_key(self, data: bytes) -> rsa.RSAPrivateKey:
        return serialize.bytes_to_private_key(data)

    def export_public_key(self, public_key: rsa.RSAPublicKey) -> PublicKeyRecord:
        return serialize.public_key_to_record(public_key)

    def import_public_key(self, record) -> rsa.RSAPublicKey:
        return serialize.record_to_public_key(record)

    def encrypt(self, scheme: NonceScheme, username: str, data: bytes, key: AESGCM) -> bytes:
        if scheme is NonceScheme.RANDOM:
            return wrap_random(data, key)
        return wrap(username, data, key)

    def decrypt(self, scheme: NonceScheme, username: str, data: bytes, key: AESGCM) -> bytes:
        if scheme is NonceScheme.RANDOM:
            return unwrap_random(data, key)
        return unwrap(username, data, key)
