"""
API Router for bearer token issuance and verification
"""

from datetime import timedelta
from functools import lru_cache
from typing import Tuple

from fastapi import APIRouter, HTTPException, status
import structlog

from ..config import get_settings
from ..metrics import metrics
from ..services.crypto import (
    MalformedToken,
    PayloadSource,
    SignatureAlgorithm,
    TokenService,
    create_key,
    create_key_pair,
)
from ..services.crypto.expiry import utc_now
from ..services.crypto.keys import load_private_key, public_key_pem
from .schemas import (
    IssueTokenRequest,
    IssueTokenResponse,
    PublicKeyResponse,
    VerifyTokenRequest,
    VerifyTokenResponse,
)

log = structlog.get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/tokens", tags=["tokens"])

# Global token service instance
_token_service: TokenService = TokenService()

_GENERATED_KEY_PARAMS = {
    "rsa": ("rsa", 2048),
    "rsa-pss": ("rsa", 2048),
    "ecdsa": ("ec", 256),
    "ed25519": ("ed25519", 0),
}


def get_token_service() -> TokenService:
    """Get the global token service instance"""
    return _token_service


def get_algorithm() -> SignatureAlgorithm:
    return SignatureAlgorithm(settings.SIGNATURE_ALGORITHM)


@lru_cache(maxsize=1)
def get_signing_keys() -> Tuple[str, str | None]:
    """
    Resolve the service signing key.

    Returns:
        (signing key, public PEM). The public PEM is None for HMAC algorithms.
    """
    algorithm = get_algorithm()
    if settings.SIGNING_KEY_PEM:
        if algorithm.is_symmetric:
            return settings.SIGNING_KEY_PEM, None
        private_key = load_private_key(settings.SIGNING_KEY_PEM, settings.SIGNING_KEY_PASSPHRASE)
        log.info("signing_key.loaded", algorithm=algorithm.value)
        return settings.SIGNING_KEY_PEM, public_key_pem(private_key)

    log.warning("signing_key.ephemeral", algorithm=algorithm.value)
    if algorithm.is_symmetric:
        return create_key(), None
    key_type, length = _GENERATED_KEY_PARAMS[algorithm.family]
    pair = create_key_pair(key_type, length)
    return pair.private_key, pair.public_key


@router.post(
    "/issue",
    response_model=IssueTokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue bearer token",
    description="Sign a payload into a bearer token with an optional expiry"
)
async def issue_token(request: IssueTokenRequest) -> IssueTokenResponse:
    """
    Issue a new bearer token

    - **payload**: Any JSON value to embed and sign
    - **expiry**: Seconds from now, a shorthand like "24hrs", or a date

    Returns the token and its absolute expiry.
    """
    algorithm = get_algorithm()
    signing_key, _ = get_signing_keys()

    issued = _token_service.issue(
        request.payload,
        signing_key,
        expiry=request.expiry,
        algorithm=algorithm,
        encoding=settings.TEXT_ENCODING,
        passphrase=settings.SIGNING_KEY_PASSPHRASE if settings.SIGNING_KEY_PEM else None,
    )

    max_ttl = timedelta(seconds=settings.MAX_TOKEN_TTL_SECONDS)
    if issued.expires_at is not None and issued.expires_at - utc_now() > max_ttl:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Expiry cannot exceed {settings.MAX_TOKEN_TTL_SECONDS} seconds"
        )

    metrics.record_token_issued(algorithm.value)
    log.info("token.issued", algorithm=algorithm.value, has_expiry=issued.expires_at is not None)
    return IssueTokenResponse(
        token=issued.token,
        expires_at=issued.expires_at,
        algorithm=algorithm.value,
        encoding=settings.TEXT_ENCODING,
    )


@router.post(
    "/verify",
    response_model=VerifyTokenResponse,
    summary="Verify bearer token",
    description="Check a token's signature and expiry"
)
async def verify_token(request: VerifyTokenRequest) -> VerifyTokenResponse:
    """
    Verify a token

    - **token**: Token string to verify
    - **payload**: Payload to verify against when `use_supplied_payload` is set

    Signature and expiry are reported separately; `valid` combines both.
    """
    signing_key, public_key = get_signing_keys()
    overrides = {}
    if request.use_supplied_payload:
        overrides = {"payload_source": PayloadSource.SUPPLIED, "payload": request.payload}

    try:
        result = _token_service.verify_token(
            request.token,
            public_key or signing_key,
            algorithm=get_algorithm(),
            encoding=settings.TEXT_ENCODING,
            **overrides,
        )
    except MalformedToken:
        metrics.record_token_malformed()
        raise

    metrics.record_token_verification(result.verified, result.expired)
    return VerifyTokenResponse(
        verified=result.verified,
        expired=result.expired,
        valid=result.valid,
        expires_at=result.expires_at,
        payload=result.payload,
    )


@router.get(
    "/public-key",
    response_model=PublicKeyResponse,
    summary="Get verification key",
    description="Public key that verifies tokens issued by this service"
)
async def get_public_key() -> PublicKeyResponse:
    _, public_key = get_signing_keys()
    if public_key is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Service signs with a symmetric key"
        )
    return PublicKeyResponse(algorithm=get_algorithm().value, public_key=public_key)
