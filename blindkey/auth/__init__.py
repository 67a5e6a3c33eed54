"""Auth package: key derivation, password fingerprints and the register/login protocol."""
from .keys import derive_symmetric_key
from .login import make_login_hash, verify_login_hash
from .provider import CryptoProvider
from .protocol import (AuthProtocol, Credentials, LocalIdentity, LookupOutcome,
                       NonceScheme, Verification)
