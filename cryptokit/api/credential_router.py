"""
API Router for credential hashing
"""

import time

from fastapi import APIRouter, status
import structlog

from ..config import get_settings
from ..metrics import metrics
from ..services.crypto import CredentialHasher, HashOptions, InvalidStoredFormat
from .schemas import CompareRequest, CompareResponse, HashRequest, HashResponse

log = structlog.get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/credentials", tags=["credentials"])

# Global hasher; derivations run on its bounded pool off the event loop
_hasher: CredentialHasher = CredentialHasher(max_workers=settings.HASH_WORKERS)


def get_hasher() -> CredentialHasher:
    """Get the global credential hasher"""
    return _hasher


def get_hash_options() -> HashOptions:
    return HashOptions(length=settings.HASH_LENGTH, encoding=settings.TEXT_ENCODING)


@router.post(
    "/hash",
    response_model=HashResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Hash a secret",
    description="Derive a salted scrypt hash suitable for storage"
)
async def hash_secret(request: HashRequest) -> HashResponse:
    started = time.perf_counter()
    try:
        hashed = await _hasher.hash_async(request.secret, get_hash_options())
    except Exception:
        metrics.record_credential_operation("hash", "error", time.perf_counter() - started)
        raise
    metrics.record_credential_operation("hash", "ok", time.perf_counter() - started)
    return HashResponse(hash=hashed)


@router.post(
    "/compare",
    response_model=CompareResponse,
    summary="Compare a secret",
    description="Check a secret against a stored hash in constant time"
)
async def compare_secret(request: CompareRequest) -> CompareResponse:
    started = time.perf_counter()
    try:
        match = await _hasher.compare_async(request.hash, request.secret, get_hash_options())
    except InvalidStoredFormat:
        metrics.record_credential_operation("compare", "malformed", time.perf_counter() - started)
        raise
    result = "match" if match else "mismatch"
    metrics.record_credential_operation("compare", result, time.perf_counter() - started)
    log.debug("credential.compare", result=result)
    return CompareResponse(match=match)
