"""
Option, result and wire models for bearer tokens
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .codec import Encoding
from .errors import MalformedToken
from .signature import DEFAULT_ALGORITHM, SignatureAlgorithm, resolve_algorithm

SEGMENT_SEPARATOR = "."


class PayloadSource(str, Enum):
    """Where verification takes the signed payload from"""
    EMBEDDED = "embedded"
    SUPPLIED = "supplied"


class _CryptoOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    algorithm: SignatureAlgorithm = DEFAULT_ALGORITHM
    encoding: Encoding = Encoding.HEX

    @field_validator("algorithm", mode="before")
    @classmethod
    def normalize_algorithm(cls, v):
        return resolve_algorithm(v)

    @field_validator("encoding", mode="before")
    @classmethod
    def normalize_encoding(cls, v):
        return Encoding(v) if isinstance(v, str) else v


class TokenOptions(_CryptoOptions):
    """
    Options for token creation.

    ``expiry`` accepts seconds from now, a timedelta, a datetime, a relative
    shorthand such as "24hrs" or "2 hours", or an absolute date string.
    With ``embed_payload=False`` the payload segment is left empty and the
    token must be verified with ``PayloadSource.SUPPLIED``.
    """
    expiry: Any = None
    embed_payload: bool = True
    passphrase: Optional[str] = Field(default=None, repr=False)


class VerifyOptions(_CryptoOptions):
    """
    Options for token verification.

    ``payload_source`` selects whether the signature is checked against the
    payload embedded in the token or against ``payload`` supplied by the
    caller. The two modes are never mixed implicitly.
    ``passphrase`` unlocks an encrypted private PEM used as the verification key.
    """
    payload_source: PayloadSource = PayloadSource.EMBEDDED
    payload: Any = None
    passphrase: Optional[str] = Field(default=None, repr=False)

    @model_validator(mode="after")
    def check_payload_source(self) -> "VerifyOptions":
        supplied = "payload" in self.model_fields_set
        if self.payload_source is PayloadSource.SUPPLIED and not supplied:
            raise ValueError("payload_source=SUPPLIED requires a payload")
        if self.payload_source is PayloadSource.EMBEDDED and supplied:
            raise ValueError("A payload was supplied but payload_source is EMBEDDED")
        return self


@dataclass(frozen=True)
class BearerToken:
    """The three transport segments of a token, still encoded"""
    encoded_payload: str
    signature: str
    encoded_expiry: Optional[str] = None

    def to_string(self) -> str:
        segments = [self.encoded_payload, self.signature]
        if self.encoded_expiry is not None:
            segments.append(self.encoded_expiry)
        return SEGMENT_SEPARATOR.join(segments)

    @classmethod
    def parse(cls, text: str) -> "BearerToken":
        """
        Split a token string into its segments.

        Raises:
            MalformedToken: If the token does not have 2 or 3 segments
        """
        if not isinstance(text, str):
            raise MalformedToken(f"Token must be a string, got {type(text).__name__}")
        segments = text.split(SEGMENT_SEPARATOR)
        if len(segments) not in (2, 3):
            raise MalformedToken(f"Token must have 2 or 3 segments, got {len(segments)}")
        if len(segments) == 3 and not segments[2]:
            raise MalformedToken("Token has an empty expiry segment")
        return cls(*segments)


class TokenVerification(BaseModel):
    """
    Result of verifying a token.

    ``verified`` and ``expired`` are independent; accept a token only when
    it is verified and not expired (see ``valid``).
    """
    expires_at: Optional[datetime] = None
    expired: bool = False
    verified: bool = False
    payload: Any = None

    @property
    def valid(self) -> bool:
        return self.verified and not self.expired
