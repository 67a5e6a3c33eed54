from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

RSA_MODULUS_BITS = 2048
RSA_PUBLIC_EXPONENT = 65537


def generate_keypair() -> tuple[rsa.RSAPublicKey, rsa.RSAPrivateKey]:
    """Fresh RSA-2048 keypair for RSA-OAEP/SHA-256. Never cached."""
    private_key = rsa.generate_private_key(
        public_exponent=RSA_PUBLIC_EXPONENT, key_size=RSA_MODULUS_BITS
    )
    return private_key.public_key(), private_key


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def rsa_encrypt(public_key: rsa.RSAPublicKey, data: bytes) -> bytes:
    return public_key.encrypt(bytes(data), _oaep())


def rsa_decrypt(private_key: rsa.RSAPrivateKey, data: bytes) -> bytes:
    return private_key.decrypt(bytes(data), _oaep())
