from datetime import datetime
from typing import Any
from pydantic import BaseModel, Field


class IssueTokenRequest(BaseModel):
    payload: Any = None
    # seconds from now, shorthand ("24hrs", "30 minutes") or an absolute date
    expiry: Any = None


class IssueTokenResponse(BaseModel):
    token: str
    expires_at: datetime | None = None
    algorithm: str
    encoding: str


class VerifyTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)
    payload: Any = None
    use_supplied_payload: bool = Field(
        default=False,
        description="Verify against `payload` instead of the payload embedded in the token",
    )


class VerifyTokenResponse(BaseModel):
    verified: bool
    expired: bool
    valid: bool
    expires_at: datetime | None = None
    payload: Any = None


class PublicKeyResponse(BaseModel):
    algorithm: str
    public_key: str


class HashRequest(BaseModel):
    secret: str = Field(..., min_length=1)


class HashResponse(BaseModel):
    hash: str


class CompareRequest(BaseModel):
    hash: str = Field(..., min_length=1)
    secret: str


class CompareResponse(BaseModel):
    match: bool
