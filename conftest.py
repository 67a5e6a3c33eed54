import pytest

from blindkey.auth import AuthProtocol, CryptoProvider
from blindkey.crypto.identity import generate_keypair
from blindkey.store import MemoryUserStore


class FixedKeypairProvider(CryptoProvider):
    """Hands out the same pre-generated RSA keypair, so tests skip keygen."""

    def __init__(self, keypair):
        self._keypair = keypair
        self.generated = 0

    def generate_keypair(self):
        self.generated += 1
        return self._keypair


@pytest.fixture(scope="session")
def keypair():
    return generate_keypair()


@pytest.fixture
def provider(keypair):
    return FixedKeypairProvider(keypair)


@pytest.fixture
def store():
    return MemoryUserStore()


@pytest.fixture
def protocol(store, provider):
    return AuthProtocol(store, provider)
