"""
Symmetric and asymmetric encryption helpers.

Symmetric wire format: ``ciphertext.iv`` where the IV is 16 ASCII hex
characters whose UTF-8 bytes are used directly as the AES IV. Payloads are
serialized as canonical JSON before encryption and parsed back on
decryption when possible.
"""

import json
import secrets
from typing import Any, Optional, Union

import structlog
from cryptography.hazmat.primitives import hashes, padding as sym_padding
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .codec import Encoding, decode, encode, serialize
from .errors import DecryptionError, EncryptionError, KeyGenerationError, MalformedEncoding
from .keys import load_private_key, load_public_key

log = structlog.get_logger(__name__)

IV_SEPARATOR = "."
IV_SIZE = 16

_KEY_SIZES = {
    "aes-256-cbc": 32,
    "aes256": 32,
    "aes-192-cbc": 24,
    "aes192": 24,
    "aes-128-cbc": 16,
    "aes128": 16,
}


def _key_size(algorithm: str) -> int:
    try:
        return _KEY_SIZES[algorithm.lower()]
    except KeyError:
        raise EncryptionError(f"Unsupported cipher: {algorithm}")


def _symmetric_key(key: Union[str, bytes], size: int) -> bytes:
    if isinstance(key, str):
        key = key.encode("utf-8")[:size]
    if len(key) != size:
        raise EncryptionError(f"Cipher key must be {size} bytes, got {len(key)}")
    return key


def _parse_plaintext(text: str) -> Any:
    # plaintexts that are not JSON come back as the raw string
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def symmetric_encrypt(
    payload: Any,
    key: Union[str, bytes],
    algorithm: str = "aes-256-cbc",
    encoding: Encoding | str = Encoding.HEX,
) -> str:
    """
    Encrypt a payload with AES-CBC.

    Args:
        payload: Any JSON-serializable value
        key: Raw key bytes, or a str whose leading UTF-8 bytes form the key
        algorithm: aes-256-cbc (default), aes-192-cbc or aes-128-cbc
        encoding: Text encoding of the ciphertext

    Returns:
        ``ciphertext.iv`` string

    Raises:
        EncryptionError: If the cipher or key is invalid
    """
    cipher_key = _symmetric_key(key, _key_size(algorithm))
    iv_text = secrets.token_hex(IV_SIZE // 2)

    padder = sym_padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(serialize(payload).encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(cipher_key), modes.CBC(iv_text.encode("utf-8"))).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return f"{encode(ciphertext, encoding)}{IV_SEPARATOR}{iv_text}"


def symmetric_decrypt(
    ciphertext: str,
    key: Union[str, bytes],
    algorithm: str = "aes-256-cbc",
    encoding: Encoding | str = Encoding.HEX,
) -> Any:
    """
    Decrypt the output of ``symmetric_encrypt``.

    Returns:
        The parsed JSON payload, or the raw plaintext if it is not JSON

    Raises:
        DecryptionError: If the format, key or padding is wrong
    """
    try:
        cipher_key = _symmetric_key(key, _key_size(algorithm))
    except EncryptionError as e:
        raise DecryptionError(str(e)) from e

    parts = ciphertext.split(IV_SEPARATOR)
    if len(parts) != 2:
        raise DecryptionError("Ciphertext must have the form ciphertext.iv")
    body_text, iv_text = parts
    iv = iv_text.encode("utf-8")
    if len(iv) != IV_SIZE:
        raise DecryptionError(f"IV must be {IV_SIZE} bytes")

    try:
        body = decode(body_text, encoding)
        decryptor = Cipher(algorithms.AES(cipher_key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()
        unpadder = sym_padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
    except (MalformedEncoding, ValueError) as e:
        log.warning("decryption.failed", cipher=algorithm)
        raise DecryptionError(f"Decryption failed: {e}") from e

    return _parse_plaintext(plaintext)


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def public_encrypt(
    payload: Any,
    public_key,
    encoding: Encoding | str = Encoding.HEX,
) -> str:
    """
    Encrypt a payload for the holder of an RSA private key (OAEP-SHA256).

    Args:
        payload: Any JSON-serializable value
        public_key: RSA public key as PEM or key object (a private key works too)
        encoding: Text encoding of the ciphertext

    Raises:
        EncryptionError: If the key is not RSA or the payload is too large
    """
    try:
        if isinstance(public_key, (str, bytes)):
            public_key = load_public_key(public_key)
        elif hasattr(public_key, "private_bytes"):
            public_key = public_key.public_key()
    except KeyGenerationError as e:
        raise EncryptionError(str(e)) from e
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise EncryptionError("Asymmetric encryption requires an RSA key")

    try:
        ciphertext = public_key.encrypt(serialize(payload).encode("utf-8"), _oaep())
    except ValueError as e:
        raise EncryptionError(f"Encryption failed: {e}") from e
    return encode(ciphertext, encoding)


def private_decrypt(
    ciphertext: str,
    private_key,
    passphrase: Optional[Union[str, bytes]] = None,
    encoding: Encoding | str = Encoding.HEX,
) -> Any:
    """
    Decrypt the output of ``public_encrypt``.

    Raises:
        DecryptionError: If the key is wrong or the ciphertext corrupt
    """
    try:
        if isinstance(private_key, (str, bytes)):
            private_key = load_private_key(private_key, passphrase)
    except KeyGenerationError as e:
        raise DecryptionError(str(e)) from e
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise DecryptionError("Asymmetric decryption requires an RSA private key")

    try:
        plaintext = private_key.decrypt(decode(ciphertext, encoding), _oaep()).decode("utf-8")
    except (MalformedEncoding, ValueError) as e:
        raise DecryptionError(f"Decryption failed: {e}") from e
    return _parse_plaintext(plaintext)
