import base64
import secrets

from blindkey.crypto.digest import digest


def make_login_hash(password: str | bytes, hash_fn=digest, legacy_text: bool = False) -> str:
    """base64 of the password digest.

    legacy_text renders the digest the way older clients did: the raw bytes
    read as UTF-8, invalid sequences replaced with U+FFFD.
    """
    raw = hash_fn(password)
    if legacy_text:
        return raw.decode("utf-8", errors="replace")
    return base64.b64encode(raw).decode("ascii")

def verify_login_hash(password: str | bytes, stored: str, hash_fn=digest, legacy_text: bool = False) -> bool:
    expected = make_login_hash(password, hash_fn, legacy_text)
    # surrogatepass: stored text comes from JSON and may hold lone surrogates
    return secrets.compare_digest(expected.encode("utf-8", "surrogatepass"),
                                  stored.encode("utf-8", "surrogatepass"))
