"""
Exception taxonomy for cryptokit cryptographic operations
"""


class CryptoError(Exception):
    """Base exception for cryptographic operations"""
    pass


class MalformedEncoding(CryptoError, ValueError):
    """Raised when text is not valid for the requested transport encoding"""
    pass


class SerializationError(CryptoError, ValueError):
    """Raised when a payload cannot be serialized to canonical JSON"""
    pass


class MalformedToken(CryptoError, ValueError):
    """Raised when a bearer token cannot be parsed at all"""
    pass


class InvalidStoredFormat(CryptoError, ValueError):
    """Raised when a stored credential hash is not in salt:key form"""
    pass


class InvalidExpirySpec(CryptoError, ValueError):
    """Raised when an expiry is neither a number, a shorthand nor a date"""
    pass


class DerivationFailed(CryptoError):
    """Raised when the key-derivation function rejects its input"""
    pass


class SignatureFailed(CryptoError):
    """Raised when signing fails or key material is unusable"""
    pass


class KeyGenerationError(CryptoError):
    """Raised when key generation or key loading fails"""
    pass


class EncryptionError(CryptoError):
    """Raised when encryption fails"""
    pass


class DecryptionError(CryptoError):
    """Raised when decryption fails"""
    pass
