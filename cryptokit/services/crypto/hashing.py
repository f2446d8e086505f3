"""
Credential Hasher

Salted scrypt hashing for secrets such as passwords. Stored values have the
form ``salt:derivedKey`` with both halves in the configured text encoding.
Blocking and awaitable entry points share one implementation; the awaitable
ones run the derivation on a bounded thread pool.
"""

import asyncio
import hmac
import secrets
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Optional, Union

import structlog
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .codec import Encoding, decode, encode
from .errors import DerivationFailed, InvalidStoredFormat, MalformedEncoding

log = structlog.get_logger(__name__)

Secret = Union[str, bytes]

SEPARATOR = ":"
DEFAULT_LENGTH = 64
MAX_LENGTH = 1024


class HashOptions(BaseModel):
    """
    Per-call hashing options.

    ``length`` is used for both the salt and the derived key. The scrypt
    cost defaults match the common N=16384, r=8, p=1 profile.
    """
    model_config = ConfigDict(frozen=True)

    length: int = Field(default=DEFAULT_LENGTH, ge=1, le=MAX_LENGTH)
    encoding: Encoding = Encoding.HEX
    n: int = Field(default=16384, ge=2, description="scrypt CPU/memory cost")
    r: int = Field(default=8, ge=1, description="scrypt block size")
    p: int = Field(default=1, ge=1, description="scrypt parallelism")

    @field_validator("encoding", mode="before")
    @classmethod
    def normalize_encoding(cls, v):
        return Encoding(v) if isinstance(v, str) else v


@dataclass(frozen=True)
class CredentialHash:
    """Salt and derived key of a hashed secret"""
    salt: bytes
    derived_key: bytes

    def to_string(self, encoding: Encoding | str = Encoding.HEX) -> str:
        return f"{encode(self.salt, encoding)}{SEPARATOR}{encode(self.derived_key, encoding)}"

    @classmethod
    def parse(cls, text: str, encoding: Encoding | str = Encoding.HEX) -> "CredentialHash":
        """
        Parse a stored ``salt:derivedKey`` string.

        Raises:
            InvalidStoredFormat: If the separator is missing or a half is undecodable
        """
        if not isinstance(text, str) or text.count(SEPARATOR) != 1:
            raise InvalidStoredFormat("Stored hash must have the form salt:derivedKey")
        salt_text, key_text = text.split(SEPARATOR)
        try:
            return cls(salt=decode(salt_text, encoding), derived_key=decode(key_text, encoding))
        except MalformedEncoding as e:
            raise InvalidStoredFormat(f"Stored hash is not valid {encoding} text: {e}") from e


def _secret_bytes(secret: Secret) -> bytes:
    if isinstance(secret, str):
        return secret.encode("utf-8")
    if isinstance(secret, (bytes, bytearray)):
        return bytes(secret)
    raise TypeError(f"Secret must be str or bytes, got {type(secret).__name__}")


def derive_key(secret: Secret, salt: bytes, options: HashOptions) -> bytes:
    """
    Run scrypt over a secret and salt.

    Raises:
        DerivationFailed: If scrypt rejects the parameters
    """
    try:
        kdf = Scrypt(salt=salt, length=options.length, n=options.n, r=options.r, p=options.p)
        return kdf.derive(_secret_bytes(secret))
    except (ValueError, TypeError, MemoryError, UnsupportedAlgorithm) as e:
        raise DerivationFailed(f"Key derivation failed: {e}") from e


class CredentialHasher:
    """
    Hashes and compares secrets.

    Holds no per-call state. The thread pool only backs the ``*_async``
    methods and bounds how many derivations run concurrently.
    """

    def __init__(self, max_workers: int = 4):
        """
        Initialize CredentialHasher

        Args:
            max_workers: Size of the pool used by the async entry points
        """
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    @property
    def executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._max_workers,
                    thread_name_prefix="cryptokit-kdf",
                )
            return self._executor

    def hash(self, secret: Secret, options: Optional[HashOptions] = None) -> str:
        """
        Hash a secret with a fresh random salt.

        Args:
            secret: Secret to hash (str is encoded as UTF-8)
            options: Hash options (defaults: 64 bytes, hex)

        Returns:
            ``salt:derivedKey`` string

        Raises:
            DerivationFailed: If the key derivation fails
        """
        options = options or HashOptions()
        salt = secrets.token_bytes(options.length)
        derived = derive_key(secret, salt, options)
        log.debug("credential.hashed", length=options.length, encoding=options.encoding.value)
        return CredentialHash(salt=salt, derived_key=derived).to_string(options.encoding)

    def compare(
        self,
        stored: str,
        candidate: Secret,
        options: Optional[HashOptions] = None,
    ) -> bool:
        """
        Check a candidate secret against a stored hash.

        The derived keys are compared in constant time. A stored key whose
        length differs from the configured length compares as False.

        Raises:
            InvalidStoredFormat: If ``stored`` is not ``salt:derivedKey``
            DerivationFailed: If the key derivation fails
        """
        options = options or HashOptions()
        parsed = CredentialHash.parse(stored, options.encoding)
        derived = derive_key(candidate, parsed.salt, options)
        match = hmac.compare_digest(derived, parsed.derived_key)
        log.debug("credential.compared", match=match)
        return match

    async def hash_async(self, secret: Secret, options: Optional[HashOptions] = None) -> str:
        """Awaitable ``hash``; failures are raised from the await"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, partial(self.hash, secret, options))

    async def compare_async(
        self,
        stored: str,
        candidate: Secret,
        options: Optional[HashOptions] = None,
    ) -> bool:
        """Awaitable ``compare``; failures are raised from the await"""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, partial(self.compare, stored, candidate, options)
        )

    def shutdown(self, wait: bool = True) -> None:
        """Shut down the worker pool"""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
            log.info("credential.hasher_shutdown")


_default_hasher = CredentialHasher()


def hash_secret(secret: Secret, options: Optional[HashOptions] = None) -> str:
    return _default_hasher.hash(secret, options)


def compare_secret(stored: str, candidate: Secret, options: Optional[HashOptions] = None) -> bool:
    return _default_hasher.compare(stored, candidate, options)


async def hash_secret_async(secret: Secret, options: Optional[HashOptions] = None) -> str:
    return await _default_hasher.hash_async(secret, options)


async def compare_secret_async(
    stored: str,
    candidate: Secret,
    options: Optional[HashOptions] = None,
) -> bool:
    return await _default_hasher.compare_async(stored, candidate, options)
