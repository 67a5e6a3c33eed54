"""
Register/login protocol tests against the in-memory store.
"""
import asyncio

import pytest

from blindkey.auth import (AuthProtocol, Credentials, LookupOutcome, NonceScheme,
                           derive_symmetric_key, make_login_hash)
from blindkey.crypto import (bytes_to_int_array, digest, int_array_to_bytes,
                             private_key_to_bytes, public_key_to_record, unwrap,
                             wrap, wrap_random)
from blindkey.errors import (BadCredentials, SchemaInvalid, StoreUnavailable,
                             UserAlreadyExists)
from blindkey.store import FetchResult, MemoryUserStore, StoreOutcome, StoredIdentity


class StubStore:
    """Store that always answers with fixed outcomes."""

    def __init__(self, create=StoreOutcome.OTHER, fetch=StoreOutcome.OTHER):
        self.create_outcome = create
        self.fetch_outcome = fetch

    async def create(self, username, record):
        return self.create_outcome

    async def fetch(self, username):
        return FetchResult(self.fetch_outcome, status=503)


def test_register_then_login(protocol, keypair):
    registered = asyncio.run(protocol.register("alice", "pw1"))
    logged_in = asyncio.run(protocol.login("alice", "pw1"))

    assert logged_in is not None
    assert logged_in.username == "alice"
    assert logged_in.public_key.public_numbers() == registered.public_key.public_numbers()
    assert private_key_to_bytes(logged_in.private_key) == private_key_to_bytes(keypair[1])

    # public keys behave the same in both directions
    assert registered.decrypt(logged_in.encrypt(b"to alice")) == b"to alice"
    assert logged_in.decrypt(registered.encrypt(b"again")) == b"again"


def test_login_rederives_the_same_symmetric_key(protocol):
    registered = asyncio.run(protocol.register("alice", "pw1"))
    logged_in = asyncio.run(protocol.login("alice", "pw1"))
    nonce = b"\x00" * 12
    ct = registered.symmetric_key.encrypt(nonce, b"data", None)
    assert logged_in.symmetric_key.decrypt(nonce, ct, None) == b"data"


def test_wrong_password_is_bad_credentials(protocol):
    asyncio.run(protocol.register("alice", "pw1"))
    with pytest.raises(BadCredentials):
        asyncio.run(protocol.login("alice", "wrong"))
    verification = asyncio.run(protocol.lookup("alice", "wrong"))
    assert verification.outcome is LookupOutcome.MISMATCH
    assert verification.identity is None


def test_unknown_user_is_not_an_error(protocol):
    assert asyncio.run(protocol.login("nobody", "anything")) is None
    verification = asyncio.run(protocol.lookup("nobody", "anything"))
    assert verification.outcome is LookupOutcome.NOT_FOUND


def test_verified_lookup_carries_identity(protocol):
    asyncio.run(protocol.register("alice", "pw1"))
    verification = asyncio.run(protocol.lookup("alice", "pw1"))
    assert verification.outcome is LookupOutcome.VERIFIED
    assert verification.identity.username == "alice"


def test_duplicate_registration_keeps_original_record(protocol, store):
    asyncio.run(protocol.register("alice", "pw1"))
    before = store.raw("alice")

    with pytest.raises(UserAlreadyExists):
        asyncio.run(protocol.register("alice", "pw2"))

    assert store.raw("alice") == before
    assert asyncio.run(protocol.login("alice", "pw1")) is not None
    with pytest.raises(BadCredentials):
        asyncio.run(protocol.login("alice", "pw2"))


def test_concurrent_registration_of_one_name(protocol, store):
    async def race():
        return await asyncio.gather(
            protocol.register("alice", "pw1"),
            protocol.register("alice", "pw2"),
            return_exceptions=True,
        )

    results = asyncio.run(race())
    assert sum(isinstance(r, UserAlreadyExists) for r in results) == 1
    assert len(store) == 1


def test_stored_record_holds_no_secrets(protocol, store, keypair):
    asyncio.run(protocol.register("alice", "pw1"))
    raw = store.raw("alice")

    assert set(raw) == {"hashedPassword", "publicKey", "encryptedPrivateKey"}
    assert raw["hashedPassword"] == make_login_hash("pw1")
    assert "d" not in raw["publicKey"]

    wrapped = int_array_to_bytes(raw["encryptedPrivateKey"])
    exported = private_key_to_bytes(keypair[1])
    assert wrapped != exported
    assert exported not in wrapped
    # random nonce in front, GCM tag behind
    assert len(wrapped) == len(exported) + 12 + 16


def test_hash_mismatch_alone_rejects_login(provider, store):
    # wrapped key decrypts fine, but the stored fingerprint is for another password
    source = MemoryUserStore()
    asyncio.run(AuthProtocol(source, provider).register("carol", "pw1"))
    good = StoredIdentity.from_wire(source.raw("carol"))
    forged = good.model_copy(update={"password_hash": make_login_hash("something else")})
    asyncio.run(store.create("carol", forged))

    verification = asyncio.run(AuthProtocol(store, provider).lookup("carol", "pw1"))
    assert verification.outcome is LookupOutcome.MISMATCH


def test_tampered_wrapped_key_is_bad_credentials(provider, store):
    source = MemoryUserStore()
    asyncio.run(AuthProtocol(source, provider).register("dave", "pw1"))
    good = StoredIdentity.from_wire(source.raw("dave"))
    blob = bytearray(int_array_to_bytes(good.wrapped_private_key))
    blob[-1] ^= 0xFF
    asyncio.run(store.create("dave", good.model_copy(
        update={"wrapped_private_key": bytes_to_int_array(bytes(blob))})))

    with pytest.raises(BadCredentials):
        asyncio.run(AuthProtocol(store, provider).login("dave", "pw1"))


def test_username_scheme_writes_legacy_records(provider, store, keypair):
    protocol = AuthProtocol(store, provider, nonce_scheme=NonceScheme.USERNAME)
    identity = asyncio.run(protocol.register("erin", "pw1"))
    raw = store.raw("erin")
    wrapped = int_array_to_bytes(raw["encryptedPrivateKey"])
    assert unwrap("erin", wrapped, identity.symmetric_key) == private_key_to_bytes(keypair[1])
    assert raw["hashedPassword"] == digest("pw1").decode("utf-8", errors="replace")
    assert asyncio.run(protocol.login("erin", "pw1")) is not None


def test_username_scheme_reads_hand_built_legacy_record(provider, store, keypair):
    public_key, private_key = keypair
    key = derive_symmetric_key("olga", "pw1")
    asyncio.run(store.create("olga", StoredIdentity(
        password_hash=digest("pw1").decode("utf-8", errors="replace"),
        public_key=public_key_to_record(public_key),
        wrapped_private_key=bytes_to_int_array(wrap("olga", private_key_to_bytes(private_key), key)),
    )))

    legacy = AuthProtocol(store, provider, nonce_scheme=NonceScheme.USERNAME)
    identity = asyncio.run(legacy.login("olga", "pw1"))
    assert private_key_to_bytes(identity.private_key) == private_key_to_bytes(private_key)
    with pytest.raises(BadCredentials):
        asyncio.run(legacy.login("olga", "pw2"))


def test_random_nonce_scheme_round_trip(provider, store):
    protocol = AuthProtocol(store, provider, nonce_scheme=NonceScheme.RANDOM)
    registered = asyncio.run(protocol.register("frank", "pw1"))
    logged_in = asyncio.run(protocol.login("frank", "pw1"))
    assert logged_in.public_key.public_numbers() == registered.public_key.public_numbers()
    with pytest.raises(BadCredentials):
        asyncio.run(protocol.login("frank", "pw2"))

    # a username-nonce client cannot read it
    legacy = AuthProtocol(store, provider, nonce_scheme=NonceScheme.USERNAME)
    with pytest.raises(BadCredentials):
        asyncio.run(legacy.login("frank", "pw1"))


def test_surrogates_in_stored_hash_are_bad_credentials(provider, store):
    source = MemoryUserStore()
    asyncio.run(AuthProtocol(source, provider).register("kim", "pw1"))
    good = StoredIdentity.from_wire(source.raw("kim"))
    asyncio.run(store.create("kim", good.model_copy(update={"password_hash": "\ud800"})))

    protocol = AuthProtocol(store, provider)
    assert asyncio.run(protocol.lookup("kim", "pw1")).outcome is LookupOutcome.MISMATCH
    with pytest.raises(BadCredentials):
        asyncio.run(protocol.login("kim", "pw1"))


@pytest.mark.parametrize("scheme", list(NonceScheme))
def test_authentic_wrapped_blob_that_is_not_a_key_is_schema_invalid(provider, store, keypair, scheme):
    key = derive_symmetric_key("lee", "pw1")
    if scheme is NonceScheme.RANDOM:
        blob = wrap_random(b"not a pkcs8 document", key)
    else:
        blob = wrap("lee", b"not a pkcs8 document", key)
    asyncio.run(store.create("lee", StoredIdentity(
        password_hash=make_login_hash("pw1", legacy_text=scheme is NonceScheme.USERNAME),
        public_key=public_key_to_record(keypair[0]),
        wrapped_private_key=bytes_to_int_array(blob),
    )))

    with pytest.raises(SchemaInvalid):
        asyncio.run(AuthProtocol(store, provider, nonce_scheme=scheme).login("lee", "pw1"))


def test_store_refusing_create_is_store_unavailable(provider):
    protocol = AuthProtocol(StubStore(create=StoreOutcome.OTHER), provider)
    with pytest.raises(StoreUnavailable) as info:
        asyncio.run(protocol.register("alice", "pw1"))
    assert isinstance(info.value, BadCredentials)


def test_store_failing_fetch_is_store_unavailable(provider):
    protocol = AuthProtocol(StubStore(fetch=StoreOutcome.OTHER), provider)
    with pytest.raises(StoreUnavailable) as info:
        asyncio.run(protocol.login("alice", "pw1"))
    assert info.value.status == 503


def test_provider_generates_one_keypair_per_registration(protocol, provider):
    asyncio.run(protocol.register("alice", "pw1"))
    asyncio.run(protocol.login("alice", "pw1"))
    assert provider.generated == 1


def test_default_provider_end_to_end():
    protocol = AuthProtocol(MemoryUserStore())
    a = asyncio.run(protocol.register("gina", "pw1"))
    b = asyncio.run(protocol.register("hank", "pw1"))
    assert a.public_key.public_numbers() != b.public_key.public_numbers()
    assert asyncio.run(protocol.login("gina", "pw1")).decrypt(a.encrypt(b"x")) == b"x"


def test_credentials_are_zeroed_on_exit():
    with Credentials("alice", "pw1") as creds:
        assert creds.password == b"pw1"
        buf = creds._password
    assert creds.released
    assert bytes(buf) == b"\x00\x00\x00"
    with pytest.raises(RuntimeError):
        creds.password
