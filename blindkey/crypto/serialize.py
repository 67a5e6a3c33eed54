"""Conversions between key objects and transport-safe representations.

- private keys  <-> unencrypted PKCS#8 DER bytes (what gets wrapped)
- public keys   <-> PublicKeyRecord (JWK, for JSON transport)
- byte buffers  <-> lists of ints in [0, 255] (for JSON transport)
"""
import base64
import binascii
from collections.abc import Iterable, Mapping

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from pydantic import ValidationError

from blindkey.errors import SchemaInvalid
from .jwk import PublicKeyRecord

RSA_KTY = "RSA"
RSA_OAEP_ALG = "RSA-OAEP-256"
PUBLIC_KEY_OPS = ["encrypt"]


def _b64url_uint(value: int) -> str:
    raw = value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _uint_from_b64url(text: str, member: str) -> int:
    padded = text + "=" * (-len(text) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SchemaInvalid(f"JWK member '{member}' is not base64url") from exc
    if not raw:
        raise SchemaInvalid(f"JWK member '{member}' is empty")
    return int.from_bytes(raw, "big")


# --- private keys ---

def private_key_to_bytes(private_key: rsa.RSAPrivateKey) -> bytes:
    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def bytes_to_private_key(data: bytes) -> rsa.RSAPrivateKey:
    try:
        key = serialization.load_der_private_key(bytes(data), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise SchemaInvalid("Private key is not a valid PKCS#8 document") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise SchemaInvalid("Private key is not an RSA key")
    return key


# --- public keys ---

def public_key_to_record(public_key: rsa.RSAPublicKey) -> PublicKeyRecord:
    numbers = public_key.public_numbers()
    return PublicKeyRecord(
        kty=RSA_KTY,
        alg=RSA_OAEP_ALG,
        n=_b64url_uint(numbers.n),
        e=_b64url_uint(numbers.e),
        ext=True,
        key_ops=list(PUBLIC_KEY_OPS),
    )


def parse_public_key_record(data: PublicKeyRecord | Mapping) -> PublicKeyRecord:
    if isinstance(data, PublicKeyRecord):
        return data
    try:
        return PublicKeyRecord.model_validate(data)
    except ValidationError as exc:
        raise SchemaInvalid(f"Malformed public key record: {exc.error_count()} error(s)") from exc


def record_to_public_key(data: PublicKeyRecord | Mapping) -> rsa.RSAPublicKey:
    """Import an RSA-OAEP public key from its JWK record."""
    record = parse_public_key_record(data)
    if record.kty != RSA_KTY:
        raise SchemaInvalid(f"Unsupported key type: {record.kty!r}")
    if record.alg is not None and record.alg != RSA_OAEP_ALG:
        raise SchemaInvalid(f"Unsupported algorithm: {record.alg!r}")
    if record.key_ops is not None and "encrypt" not in record.key_ops:
        raise SchemaInvalid("Public key record does not allow 'encrypt'")
    if record.n is None or record.e is None:
        raise SchemaInvalid("RSA public key record needs both 'n' and 'e'")

    n = _uint_from_b64url(record.n, "n")
    e = _uint_from_b64url(record.e, "e")
    try:
        return rsa.RSAPublicNumbers(e, n).public_key()
    except ValueError as exc:
        raise SchemaInvalid("Invalid RSA public numbers") from exc


# --- byte buffers ---

def bytes_to_int_array(data: bytes) -> list[int]:
    return list(bytes(data))


def int_array_to_bytes(values: Iterable[int]) -> bytes:
    out = bytearray()
    for i, v in enumerate(values):
        # bool is an int subclass, but True is not a byte
        if isinstance(v, bool) or not isinstance(v, int) or not 0 <= v <= 255:
            raise SchemaInvalid(f"Byte array element {i} is not an integer in [0, 255]: {v!r}")
        out.append(v)
    return bytes(out)
