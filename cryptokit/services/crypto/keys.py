"""
Key Material Provider

Generates and loads the keys consumed by the signature engine and the
encryption helpers:
- RSA / EC / Ed25519 key pairs as PEM (PKCS#8 private, SPKI public)
- Optionally passphrase-protected private keys
- Random symmetric/HMAC key material
"""

import asyncio
import secrets
from dataclasses import dataclass
from typing import Optional, Union

import structlog
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from .codec import Encoding, encode
from .errors import KeyGenerationError

log = structlog.get_logger(__name__)

PEMData = Union[str, bytes]

MIN_RSA_BITS = 1024
DEFAULT_RSA_BITS = 2048
DEFAULT_SYMMETRIC_BITS = 256

_EC_CURVES = {
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}


@dataclass(frozen=True)
class KeyPair:
    """PEM-encoded asymmetric key pair"""
    private_key: str
    public_key: str
    passphrase: Optional[str] = None


def _to_bytes(value: PEMData) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def _generate_private_key(algorithm: str, length: int):
    algorithm = algorithm.lower()
    if algorithm == "rsa":
        if length < MIN_RSA_BITS:
            raise KeyGenerationError(f"RSA modulus must be at least {MIN_RSA_BITS} bits")
        return rsa.generate_private_key(public_exponent=65537, key_size=length)
    if algorithm == "ec":
        curve = _EC_CURVES.get(length)
        if curve is None:
            raise KeyGenerationError(
                f"Unsupported EC size {length}, expected one of {sorted(_EC_CURVES)}"
            )
        return ec.generate_private_key(curve())
    if algorithm == "ed25519":
        return ed25519.Ed25519PrivateKey.generate()
    raise KeyGenerationError(f"Unsupported key pair algorithm: {algorithm}")


def create_key_pair(
    algorithm: str = "rsa",
    length: int = DEFAULT_RSA_BITS,
    encrypted: bool = False,
    passphrase: Optional[str] = None,
) -> KeyPair:
    """
    Generate an asymmetric key pair.

    Args:
        algorithm: "rsa", "ec" or "ed25519"
        length: RSA modulus bits, or EC curve size (256, 384, 521).
                Ignored for ed25519.
        encrypted: Protect the private PEM with a passphrase
        passphrase: Passphrase to use; a random one is generated if omitted

    Returns:
        KeyPair with PEM strings (and the passphrase when encrypted)

    Raises:
        KeyGenerationError: If the algorithm or size is unsupported
    """
    private_key = _generate_private_key(algorithm, length)

    if encrypted:
        passphrase = passphrase or secrets.token_hex(32)
        protection = serialization.BestAvailableEncryption(passphrase.encode("utf-8"))
    else:
        passphrase = None
        protection = serialization.NoEncryption()

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=protection,
    ).decode("ascii")
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")

    log.debug("keys.pair_created", algorithm=algorithm, length=length, encrypted=encrypted)
    return KeyPair(private_key=private_pem, public_key=public_pem, passphrase=passphrase)


async def create_key_pair_async(
    algorithm: str = "rsa",
    length: int = DEFAULT_RSA_BITS,
    encrypted: bool = False,
    passphrase: Optional[str] = None,
) -> KeyPair:
    """Generate a key pair without blocking the event loop"""
    return await asyncio.to_thread(create_key_pair, algorithm, length, encrypted, passphrase)


def create_key(
    length: int = DEFAULT_SYMMETRIC_BITS,
    encoding: Encoding | str = Encoding.HEX,
) -> str:
    """
    Generate random symmetric (HMAC/AES) key material.

    Args:
        length: Key size in bits, a positive multiple of 8
        encoding: Text encoding of the result

    Returns:
        Encoded key string
    """
    if length <= 0 or length % 8:
        raise KeyGenerationError("Key length must be a positive multiple of 8 bits")
    return encode(secrets.token_bytes(length // 8), encoding)


async def create_key_async(
    length: int = DEFAULT_SYMMETRIC_BITS,
    encoding: Encoding | str = Encoding.HEX,
) -> str:
    return await asyncio.to_thread(create_key, length, encoding)


def load_private_key(pem: PEMData, passphrase: Optional[PEMData] = None):
    """
    Load a PEM private key.

    Raises:
        KeyGenerationError: If the PEM is malformed or the passphrase is wrong
    """
    password = _to_bytes(passphrase) if passphrase is not None else None
    try:
        return serialization.load_pem_private_key(_to_bytes(pem), password=password)
    except (ValueError, TypeError) as e:
        raise KeyGenerationError(f"Invalid private key: {e}") from e


def load_public_key(pem: PEMData, passphrase: Optional[PEMData] = None):
    """
    Load a PEM public key.

    A private key PEM is also accepted; its public half is returned.

    Raises:
        KeyGenerationError: If the PEM cannot be parsed
    """
    data = _to_bytes(pem)
    if b"PRIVATE KEY" in data:
        return load_private_key(data, passphrase).public_key()
    try:
        return serialization.load_pem_public_key(data)
    except (ValueError, TypeError) as e:
        raise KeyGenerationError(f"Invalid public key: {e}") from e


def public_key_pem(key) -> str:
    """Render a public (or private) key object as an SPKI PEM string"""
    if hasattr(key, "private_bytes"):
        key = key.public_key()
    return key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
