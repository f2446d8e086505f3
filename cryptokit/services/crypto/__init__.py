"""
cryptokit Cryptographic Services Module

Provides the toolkit's cryptographic building blocks:
- Transport encodings and canonical payload serialization
- Digital signatures over payloads
- Salted scrypt credential hashing with constant-time comparison
- Signed bearer tokens with optional expiry
- Key generation and symmetric/asymmetric encryption
"""

from .codec import Encoding, decode, deserialize, encode, serialize
from .encryption import private_decrypt, public_encrypt, symmetric_decrypt, symmetric_encrypt
from .errors import (
    CryptoError,
    DecryptionError,
    DerivationFailed,
    EncryptionError,
    InvalidExpirySpec,
    InvalidStoredFormat,
    KeyGenerationError,
    MalformedEncoding,
    MalformedToken,
    SerializationError,
    SignatureFailed,
)
from .expiry import resolve_expiry
from .hashing import (
    CredentialHash,
    CredentialHasher,
    HashOptions,
    compare_secret,
    compare_secret_async,
    hash_secret,
    hash_secret_async,
)
from .keys import KeyPair, create_key, create_key_async, create_key_pair, create_key_pair_async
from .signature import SignatureAlgorithm, SignatureEngine, SignedMessage, sign, verify
from .token_models import BearerToken, PayloadSource, TokenOptions, TokenVerification, VerifyOptions
from .tokens import IssuedToken, TokenService, create_token, verify_token

__all__ = [
    "Encoding",
    "encode",
    "decode",
    "serialize",
    "deserialize",
    "symmetric_encrypt",
    "symmetric_decrypt",
    "public_encrypt",
    "private_decrypt",
    "CryptoError",
    "DecryptionError",
    "DerivationFailed",
    "EncryptionError",
    "InvalidExpirySpec",
    "InvalidStoredFormat",
    "KeyGenerationError",
    "MalformedEncoding",
    "MalformedToken",
    "SerializationError",
    "SignatureFailed",
    "resolve_expiry",
    "CredentialHash",
    "CredentialHasher",
    "HashOptions",
    "hash_secret",
    "compare_secret",
    "hash_secret_async",
    "compare_secret_async",
    "KeyPair",
    "create_key",
    "create_key_async",
    "create_key_pair",
    "create_key_pair_async",
    "SignatureAlgorithm",
    "SignatureEngine",
    "SignedMessage",
    "sign",
    "verify",
    "BearerToken",
    "PayloadSource",
    "TokenOptions",
    "TokenVerification",
    "VerifyOptions",
    "IssuedToken",
    "TokenService",
    "create_token",
    "verify_token",
]
