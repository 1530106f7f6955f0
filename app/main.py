"""
FastAPI application entrypoint.

Run locally:  uvicorn app.main:app --reload
Requires PII_ENCRYPTION_KEY and BLIND_INDEX_KEY (64 hex characters each).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routes import router
from app.config import settings
from app.models.database import init_db
from app.services.encryption import FieldCrypto
from app.services.errors import (
    FatalConfigurationError,
    MissingValueError,
    NotFoundError,
    PIIProtectionError,
    UniquenessError,
)
from app.services.keys import load_key_material

logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s | %(name)s | %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Clinical Records PII Vault",
    description=(
        "Field-level AES-256-GCM encryption for patient and staff PII with "
        "HMAC-SHA256 blind indexes for exact-match lookup and uniqueness."
    ),
    version="1.0.0",
)

app.include_router(router, prefix="/api/v1")


@app.on_event("startup")
def on_startup():
    try:
        keys = load_key_material()
    except FatalConfigurationError:
        logger.critical("Refusing to start: PII key material is missing or malformed")
        raise
    app.state.field_crypto = FieldCrypto.from_keys(keys)
    init_db()


# ---------------------------------------------------------------------------
# Error boundary – nothing about fields or values leaves the process
# ---------------------------------------------------------------------------

@app.exception_handler(NotFoundError)
def handle_not_found(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": "Record not found"})


@app.exception_handler(UniquenessError)
def handle_duplicate(request: Request, exc: UniquenessError):
    return JSONResponse(status_code=409, content={"detail": "Record already exists"})


@app.exception_handler(PIIProtectionError)
def handle_processing_error(request: Request, exc: PIIProtectionError):
    logger.error("%s on %s %s", type(exc).__name__, request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "processing error"})


@app.exception_handler(MissingValueError)
def handle_missing_value(request: Request, exc: MissingValueError):
    return JSONResponse(status_code=422, content={"detail": "Required value missing"})


@app.exception_handler(RequestValidationError)
def handle_request_validation(request: Request, exc: RequestValidationError):
    # FastAPI's default body echoes the rejected input, which may be PII
    errors = [{"loc": e["loc"], "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": errors})
