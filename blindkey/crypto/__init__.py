"""Crypto primitives: SHA-256, RSA-OAEP identities, AES-GCM key wrapping, key serialization."""
from .digest import digest
from .identity import generate_keypair, rsa_encrypt, rsa_decrypt
from .wrap import NonceScheme, wrap, unwrap, wrap_random, unwrap_random
from .jwk import PublicKeyRecord, OtherPrimeInfo
from .serialize import (private_key_to_bytes, bytes_to_private_key,
                        public_key_to_record, record_to_public_key,
                        bytes_to_int_array, int_array_to_bytes)
