"""
cryptokit - Bearer token and credential hashing service.

Features:
- Signed bearer tokens with optional expiry
- Salted scrypt credential hashing
- Structured logging
- Prometheus metrics
"""
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from . import __version__
from .config import get_settings
from .logging import setup_logging, get_logger
from .metrics import metrics
from .api.token_router import router as token_router
from .api.credential_router import router as credential_router, get_hasher
from .services.crypto import CryptoError

# Initialize configuration
settings = get_settings()

# Setup logging
setup_logging(json_output=settings.LOG_JSON, service_name="cryptokit")
logger = get_logger(__name__)

app = FastAPI(
    title="cryptokit",
    version=__version__,
    description="Signed bearer tokens, credential hashing and key utilities",
)

app.include_router(token_router)
app.include_router(credential_router)

# Mount Prometheus metrics endpoint
metrics_app = make_asgi_app(registry=metrics.registry)
app.mount("/metrics", metrics_app)


def _error_response(request: Request, exc: Exception, status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.__class__.__name__,
            "message": message,
            "path": str(request.url.path),
        },
    )


@app.exception_handler(CryptoError)
async def crypto_error_handler(request: Request, exc: CryptoError) -> JSONResponse:
    """
    Map cryptographic errors to structured responses.

    Input errors (malformed tokens, bad expiry specs, bad stored hashes)
    are the caller's fault and map to 400; anything else is a 500.
    """
    if isinstance(exc, ValueError):
        logger.warning("crypto.rejected", error_type=exc.__class__.__name__, error=str(exc),
                       path=request.url.path)
        return _error_response(request, exc, 400, str(exc))

    logger.error("crypto.failed", error_type=exc.__class__.__name__, error=str(exc),
                 path=request.url.path, exc_info=True)
    return _error_response(request, exc, 500, "Cryptographic operation failed")


@app.get("/health")
async def health():
    """
    Liveness probe - basic health check.

    Returns 200 if service is running.
    """
    return {
        "status": "ok",
        "service": "cryptokit",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.on_event("startup")
async def startup_event():
    logger.info("service_starting", version=__version__, env=settings.ENV,
                algorithm=settings.SIGNATURE_ALGORITHM)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("service_stopping")
    get_hasher().shutdown(wait=False)
    metrics.app_up.labels(service="cryptokit", version=__version__).set(0)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cryptokit.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=True,
    )
