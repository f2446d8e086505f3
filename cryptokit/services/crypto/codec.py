"""
Transport encodings and canonical payload serialization.

Every segment that crosses the wire (token fields, credential hash halves,
signatures) goes through ``encode``/``decode``. Payloads are always rendered
with ``serialize`` before they are signed, so a bare string payload is
JSON-encoded too (``"abc"`` becomes ``"\\"abc\\""``).
"""

import base64
import binascii
import json
import re
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from .errors import MalformedEncoding, SerializationError

_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_BASE64URL_RE = re.compile(r"^[A-Za-z0-9_-]*$")


class Encoding(str, Enum):
    """Lossless byte-to-text encodings usable inside token segments"""
    HEX = "hex"
    BASE64 = "base64"
    BASE64URL = "base64url"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            lowered = value.lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None


def _resolve(encoding: "Encoding | str") -> Encoding:
    try:
        return Encoding(encoding)
    except ValueError:
        raise MalformedEncoding(f"Unsupported encoding: {encoding!r}")


def encode(data: bytes, encoding: Encoding | str = Encoding.HEX) -> str:
    """
    Encode bytes to text.

    Args:
        data: Bytes to encode (may be empty)
        encoding: Target encoding (default: hex)

    Returns:
        ASCII string that never contains '.' or ':'
    """
    scheme = _resolve(encoding)
    if scheme is Encoding.HEX:
        return data.hex()
    if scheme is Encoding.BASE64:
        return base64.b64encode(data).decode("ascii")
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def decode(text: str, encoding: Encoding | str = Encoding.HEX) -> bytes:
    """
    Decode text produced by ``encode`` back to bytes.

    Decoding is strict: whitespace, odd-length hex and characters outside
    the alphabet are rejected.

    Raises:
        MalformedEncoding: If text is not valid for the encoding
    """
    scheme = _resolve(encoding)
    if not isinstance(text, str):
        raise MalformedEncoding(f"Expected str, got {type(text).__name__}")
    try:
        if scheme is Encoding.HEX:
            return binascii.unhexlify(text)
        if scheme is Encoding.BASE64:
            if not _BASE64_RE.match(text) or len(text) % 4:
                raise MalformedEncoding("Invalid base64 text")
            return base64.b64decode(text, validate=True)
        if not _BASE64URL_RE.match(text) or len(text) % 4 == 1:
            raise MalformedEncoding("Invalid base64url text")
        return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except (binascii.Error, ValueError) as e:
        if isinstance(e, MalformedEncoding):
            raise
        raise MalformedEncoding(f"Invalid {scheme.value} text: {e}") from e


def encode_text(text: str, encoding: Encoding | str = Encoding.HEX) -> str:
    """Encode a unicode string as UTF-8 and then as transport text"""
    return encode(text.encode("utf-8"), encoding)


def decode_text(text: str, encoding: Encoding | str = Encoding.HEX) -> str:
    """Decode transport text and interpret the result as UTF-8"""
    raw = decode(text, encoding)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedEncoding(f"Decoded bytes are not UTF-8: {e}") from e


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize(payload: Any) -> str:
    """
    Serialize any payload to canonical JSON.

    Keys are sorted and separators are compact so the same value always
    yields the same string. Strings are JSON-encoded like any other value.

    Raises:
        SerializationError: If the payload has no JSON representation
    """
    try:
        return json.dumps(
            payload,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Payload is not JSON serializable: {e}") from e


def deserialize(text: str) -> Any:
    """Parse canonical JSON produced by ``serialize``"""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedEncoding(f"Invalid JSON payload: {e}") from e
