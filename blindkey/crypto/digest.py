import hashlib

DIGEST_SIZE = 32


def digest(data: bytes | str) -> bytes:
    """SHA-256 of `data`. Strings are UTF-8 encoded first."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(bytes(data)).digest()
