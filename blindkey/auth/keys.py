from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from blindkey.crypto.digest import digest


def derive_symmetric_key(username: str | bytes, password: str | bytes) -> AESGCM:
    """AES-256-GCM key from SHA-256(username || password), no separator.

    The returned AESGCM object only encrypts and decrypts; the raw key bytes
    are not kept anywhere else.
    """
    if isinstance(username, str):
        username = username.encode("utf-8")
    if isinstance(password, str):
        password = password.encode("utf-8")
    return AESGCM(digest(bytes(username) + bytes(password)))
