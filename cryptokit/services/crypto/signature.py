"""
Signature Engine

Produces and checks digital signatures over payloads:
- RSA PKCS#1 v1.5 and PSS, ECDSA and Ed25519 with PEM or key-object keys
- HMAC with symmetric keys
- SignedMessage pairs with a text wire form
"""

import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

import structlog
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa

from .codec import Encoding, decode, encode, serialize
from .errors import KeyGenerationError, MalformedEncoding, SignatureFailed
from .keys import load_private_key, load_public_key

log = structlog.get_logger(__name__)

Key = Union[str, bytes, Any]


class SignatureAlgorithm(str, Enum):
    """Supported digest + signature combinations"""
    RSA_SHA256 = "RSA-SHA256"
    RSA_SHA384 = "RSA-SHA384"
    RSA_SHA512 = "RSA-SHA512"
    RSA_PSS_SHA256 = "RSA-PSS-SHA256"
    ECDSA_SHA256 = "ECDSA-SHA256"
    ECDSA_SHA384 = "ECDSA-SHA384"
    ED25519 = "Ed25519"
    HMAC_SHA256 = "HMAC-SHA256"
    HMAC_SHA512 = "HMAC-SHA512"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None

    @property
    def family(self) -> str:
        return _FAMILIES[self][0]

    @property
    def is_symmetric(self) -> bool:
        return self.family == "hmac"


DEFAULT_ALGORITHM = SignatureAlgorithm.RSA_SHA256

_FAMILIES = {
    SignatureAlgorithm.RSA_SHA256: ("rsa", hashes.SHA256),
    SignatureAlgorithm.RSA_SHA384: ("rsa", hashes.SHA384),
    SignatureAlgorithm.RSA_SHA512: ("rsa", hashes.SHA512),
    SignatureAlgorithm.RSA_PSS_SHA256: ("rsa-pss", hashes.SHA256),
    SignatureAlgorithm.ECDSA_SHA256: ("ecdsa", hashes.SHA256),
    SignatureAlgorithm.ECDSA_SHA384: ("ecdsa", hashes.SHA384),
    SignatureAlgorithm.ED25519: ("ed25519", None),
    SignatureAlgorithm.HMAC_SHA256: ("hmac", hashlib.sha256),
    SignatureAlgorithm.HMAC_SHA512: ("hmac", hashlib.sha512),
}

_PRIVATE_TYPES = {
    "rsa": rsa.RSAPrivateKey,
    "rsa-pss": rsa.RSAPrivateKey,
    "ecdsa": ec.EllipticCurvePrivateKey,
    "ed25519": ed25519.Ed25519PrivateKey,
}

_PUBLIC_TYPES = {
    "rsa": rsa.RSAPublicKey,
    "rsa-pss": rsa.RSAPublicKey,
    "ecdsa": ec.EllipticCurvePublicKey,
    "ed25519": ed25519.Ed25519PublicKey,
}


def resolve_algorithm(algorithm: SignatureAlgorithm | str) -> SignatureAlgorithm:
    """
    Look up an algorithm by name, case-insensitively.

    Raises:
        SignatureFailed: If the algorithm is not supported
    """
    try:
        return SignatureAlgorithm(algorithm)
    except ValueError:
        raise SignatureFailed(f"Unsupported signature algorithm: {algorithm!r}")


def _payload_bytes(payload: Any) -> bytes:
    if isinstance(payload, bytes):
        return payload
    if not isinstance(payload, str):
        payload = serialize(payload)
    return payload.encode("utf-8")


def _symmetric_key(key: Key) -> bytes:
    if isinstance(key, str):
        return key.encode("utf-8")
    if isinstance(key, (bytes, bytearray)):
        return bytes(key)
    raise SignatureFailed("HMAC algorithms require a str or bytes key")


def _private_key(key: Key, passphrase: Optional[Union[str, bytes]]):
    if hasattr(key, "private_bytes"):
        return key
    if isinstance(key, (str, bytes)):
        try:
            return load_private_key(key, passphrase)
        except KeyGenerationError as e:
            raise SignatureFailed(str(e)) from e
    raise SignatureFailed(f"Unusable signing key of type {type(key).__name__}")


def _public_key(key: Key, passphrase: Optional[Union[str, bytes]]):
    if hasattr(key, "private_bytes"):
        return key.public_key()
    if hasattr(key, "public_bytes"):
        return key
    if isinstance(key, (str, bytes)):
        try:
            return load_public_key(key, passphrase)
        except KeyGenerationError as e:
            raise SignatureFailed(str(e)) from e
    raise SignatureFailed(f"Unusable verification key of type {type(key).__name__}")


def _pss_padding(digest) -> padding.PSS:
    return padding.PSS(mgf=padding.MGF1(digest()), salt_length=padding.PSS.DIGEST_LENGTH)


@dataclass(frozen=True)
class SignedMessage:
    """
    A payload together with its signature.

    ``payload`` holds the exact bytes that were signed. The pair carries no
    verification state; call ``SignatureEngine.verify_message`` every time.
    """
    payload: bytes
    signature: bytes
    algorithm: SignatureAlgorithm = DEFAULT_ALGORITHM

    def to_string(self, encoding: Encoding | str = Encoding.HEX) -> str:
        """Render as ``encodedPayload:encodedSignature``"""
        return f"{encode(self.payload, encoding)}:{encode(self.signature, encoding)}"

    @classmethod
    def from_string(
        cls,
        text: str,
        algorithm: SignatureAlgorithm | str = DEFAULT_ALGORITHM,
        encoding: Encoding | str = Encoding.HEX,
    ) -> "SignedMessage":
        """
        Parse the output of ``to_string``.

        Raises:
            MalformedEncoding: If the separator is missing or a half is undecodable
        """
        parts = text.split(":")
        if len(parts) != 2:
            raise MalformedEncoding("Signed message must have exactly two ':' separated parts")
        return cls(
            payload=decode(parts[0], encoding),
            signature=decode(parts[1], encoding),
            algorithm=resolve_algorithm(algorithm),
        )


class SignatureEngine:
    """
    Signs payloads and verifies signatures.

    Stateless; a single instance can be shared across threads.

    Payloads that are ``bytes`` are signed as-is, ``str`` payloads as UTF-8
    and anything else after canonical JSON serialization.
    """

    def sign(
        self,
        payload: Any,
        key: Key,
        algorithm: SignatureAlgorithm | str = DEFAULT_ALGORITHM,
        passphrase: Optional[Union[str, bytes]] = None,
    ) -> bytes:
        """
        Sign a payload.

        Args:
            payload: Data to sign
            key: Private key (PEM or key object), or secret for HMAC
            algorithm: Signature algorithm (default: RSA-SHA256)
            passphrase: Passphrase for an encrypted private PEM

        Returns:
            Raw signature bytes

        Raises:
            SignatureFailed: If the key is malformed or unfit for the algorithm
        """
        alg = resolve_algorithm(algorithm)
        data = _payload_bytes(payload)
        family, digest = _FAMILIES[alg]

        if family == "hmac":
            return hmac.new(_symmetric_key(key), data, digest).digest()

        private_key = _private_key(key, passphrase)
        if not isinstance(private_key, _PRIVATE_TYPES[family]):
            raise SignatureFailed(
                f"{alg.value} cannot sign with a {type(private_key).__name__}"
            )

        try:
            if family == "rsa":
                return private_key.sign(data, padding.PKCS1v15(), digest())
            if family == "rsa-pss":
                return private_key.sign(data, _pss_padding(digest), digest())
            if family == "ecdsa":
                return private_key.sign(data, ec.ECDSA(digest()))
            return private_key.sign(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise SignatureFailed(f"Signing failed: {e}") from e

    def verify(
        self,
        payload: Any,
        signature: bytes,
        key: Key,
        algorithm: SignatureAlgorithm | str = DEFAULT_ALGORITHM,
        passphrase: Optional[Union[str, bytes]] = None,
    ) -> bool:
        """
        Check a signature against a payload.

        Public and private keys are both accepted. A signature that simply
        does not match (tampered payload, wrong key, key of another family)
        yields False.

        Raises:
            SignatureFailed: If the key cannot be parsed or the algorithm is unknown
        """
        alg = resolve_algorithm(algorithm)
        data = _payload_bytes(payload)
        family, digest = _FAMILIES[alg]

        if family == "hmac":
            if not isinstance(key, (str, bytes, bytearray)):
                return False
            expected = hmac.new(_symmetric_key(key), data, digest).digest()
            return hmac.compare_digest(expected, signature)

        public_key = _public_key(key, passphrase)
        if not isinstance(public_key, _PUBLIC_TYPES[family]):
            log.debug("signature.key_mismatch", algorithm=alg.value)
            return False

        try:
            if family == "rsa":
                public_key.verify(signature, data, padding.PKCS1v15(), digest())
            elif family == "rsa-pss":
                public_key.verify(signature, data, _pss_padding(digest), digest())
            elif family == "ecdsa":
                public_key.verify(signature, data, ec.ECDSA(digest()))
            else:
                public_key.verify(signature, data)
        except InvalidSignature:
            return False
        return True

    def sign_message(
        self,
        payload: Any,
        key: Key,
        algorithm: SignatureAlgorithm | str = DEFAULT_ALGORITHM,
        passphrase: Optional[Union[str, bytes]] = None,
    ) -> SignedMessage:
        """Sign a payload and return it paired with its signature"""
        alg = resolve_algorithm(algorithm)
        data = _payload_bytes(payload)
        signature = self.sign(data, key, alg, passphrase)
        return SignedMessage(payload=data, signature=signature, algorithm=alg)

    def verify_message(self, message: SignedMessage, key: Key) -> bool:
        """Recompute and check the signature of a SignedMessage"""
        return self.verify(message.payload, message.signature, key, message.algorithm)


_default_engine = SignatureEngine()


def sign(
    payload: Any,
    key: Key,
    algorithm: SignatureAlgorithm | str = DEFAULT_ALGORITHM,
    passphrase: Optional[Union[str, bytes]] = None,
) -> bytes:
    """Sign with the default engine"""
    return _default_engine.sign(payload, key, algorithm, passphrase)


def verify(
    payload: Any,
    signature: bytes,
    key: Key,
    algorithm: SignatureAlgorithm | str = DEFAULT_ALGORITHM,
    passphrase: Optional[Union[str, bytes]] = None,
) -> bool:
    """Verify with the default engine"""
    return _default_engine.verify(payload, signature, key, algorithm, passphrase)
