"""Register/login against a blind user-record store.

The store only ever sees a password fingerprint, the public key record and
the private key wrapped under a key derived from (username, password).
"""
import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from blindkey.crypto.identity import rsa_decrypt, rsa_encrypt
from blindkey.crypto.serialize import bytes_to_int_array, int_array_to_bytes
from blindkey.crypto.wrap import NonceScheme
from blindkey.errors import BadCredentials, StoreUnavailable, UserAlreadyExists
from blindkey.store.base import StoreOutcome, UserStore
from blindkey.store.models import StoredIdentity
from .login import make_login_hash, verify_login_hash
from .provider import CryptoProvider

logger = logging.getLogger(__name__)


class LookupOutcome(Enum):
    VERIFIED = "verified"
    MISMATCH = "mismatch"
    NOT_FOUND = "not_found"


class Credentials:
    """Username/password for the length of one register or login call.

    The password is kept in a bytearray that is zeroed when the `with` block
    exits; using it afterwards is an error.
    """

    def __init__(self, username: str, password: str):
        self.username = username
        self._password = bytearray(password.encode("utf-8"))
        self._closed = False

    @property
    def password(self) -> bytes:
        if self._closed:
            raise RuntimeError("credentials already released")
        return bytes(self._password)

    def release(self) -> None:
        for i in range(len(self._password)):
            self._password[i] = 0
        self._closed = True

    @property
    def released(self) -> bool:
        return self._closed

    def __enter__(self) -> "Credentials":
        return self

    def __exit__(self, *exc) -> None:
        self.release()


@dataclass(frozen=True)
class LocalIdentity:
    """Client-side identity. Never serialized as a whole."""
    username: str
    symmetric_key: AESGCM = field(repr=False)
    public_key: rsa.RSAPublicKey = field(repr=False)
    private_key: rsa.RSAPrivateKey = field(repr=False)

    def encrypt(self, data: bytes) -> bytes:
        return rsa_encrypt(self.public_key, data)

    def decrypt(self, data: bytes) -> bytes:
        return rsa_decrypt(self.private_key, data)


@dataclass(frozen=True)
class Verification:
    outcome: LookupOutcome
    identity: Optional[LocalIdentity] = None


class AuthProtocol:
    def __init__(self, store: UserStore, provider: Optional[CryptoProvider] = None,
                 nonce_scheme: NonceScheme = NonceScheme.RANDOM):
        self.store = store
        self.provider = provider if provider is not None else CryptoProvider()
        self.nonce_scheme = nonce_scheme

    @property
    def _legacy_text(self) -> bool:
        # USERNAME records also carry the old text rendering of the password hash
        return self.nonce_scheme is NonceScheme.USERNAME

    @staticmethod
    async def _call(fn, *args):
        return await asyncio.to_thread(fn, *args)

    # --- register ---

    async def _build(self, creds: Credentials) -> tuple[LocalIdentity, StoredIdentity]:
        p = self.provider
        public_key, private_key = await self._call(p.generate_keypair)
        key = await self._call(p.derive_key, creds.username, creds.password)

        exported = await self._call(p.export_private_key, private_key)
        wrapped = await self._call(p.encrypt, self.nonce_scheme, creds.username, exported, key)
        public_record = await self._call(p.export_public_key, public_key)
        password_hash = await self._call(make_login_hash, creds.password, p.digest,
                                          self._legacy_text)

        identity = LocalIdentity(creds.username, key, public_key, private_key)
        record = StoredIdentity(
            password_hash=password_hash,
            public_key=public_record,
            wrapped_private_key=bytes_to_int_array(wrapped),
        )
        return identity, record

    async def register(self, username: str, password: str) -> LocalIdentity:
        """Create a fresh identity and store it under `username`.

        Raises UserAlreadyExists if the name is taken, StoreUnavailable (a
        BadCredentials) for any other store outcome.
        """
        with Credentials(username, password) as creds:
            identity, record = await self._build(creds)

        outcome = await self.store.create(username, record)
        if outcome is StoreOutcome.CREATED:
            logger.info("registered user %s", username)
            return identity
        if outcome is StoreOutcome.CONFLICT:
            raise UserAlreadyExists(username)
        logger.warning("registration of %s failed, store answered %s", username, outcome.value)
        raise StoreUnavailable(f"User store refused registration ({outcome.value})")

    # --- login ---

    async def _verify(self, creds: Credentials, record: StoredIdentity) -> Verification:
        p = self.provider
        key = await self._call(p.derive_key, creds.username, creds.password)
        public_key = await self._call(p.import_public_key, record.public_key)

        wrapped = int_array_to_bytes(record.wrapped_private_key)
        try:
            exported = await self._call(p.decrypt, self.nonce_scheme, creds.username, wrapped, key)
        except InvalidTag:
            logger.info("login for %s rejected: wrapped key did not authenticate", creds.username)
            return Verification(LookupOutcome.MISMATCH)
        private_key = await self._call(p.import_private_key, exported)

        matches = await self._call(verify_login_hash, creds.password, record.password_hash,
                                   p.digest, self._legacy_text)
        if not matches:
            logger.info("login for %s rejected: password hash mismatch", creds.username)
            return Verification(LookupOutcome.MISMATCH)
        return Verification(LookupOutcome.VERIFIED,
                            LocalIdentity(creds.username, key, public_key, private_key))

    async def lookup(self, username: str, password: str) -> Verification:
        """Three-way answer: VERIFIED (with identity), MISMATCH or NOT_FOUND."""
        result = await self.store.fetch(username)
        if result.outcome is StoreOutcome.NOT_FOUND:
            return Verification(LookupOutcome.NOT_FOUND)
        if result.outcome is not StoreOutcome.FOUND or result.record is None:
            logger.warning("fetch of %s failed, store answered %s", username, result.outcome.value)
            raise StoreUnavailable(f"User store lookup failed ({result.outcome.value})",
                                   status=result.status)

        with Credentials(username, password) as creds:
            return await self._verify(creds, result.record)

    async def login(self, username: str, password: str) -> Optional[LocalIdentity]:
        """The identity on success, None if there is no such user.

        A wrong password raises BadCredentials.
        """
        verification = await self.lookup(username, password)
        if verification.outcome is LookupOutcome.NOT_FOUND:
            return None
        if verification.outcome is LookupOutcome.MISMATCH:
            raise BadCredentials()
        logger.info("user %s logged in", username)
        return verification.identity
