# clareia/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import ExtractionError, ServiceError, TransportError
from .fallback import FallbackKind, fallback
from .pipeline import process_statement
from .schema import ErrorResponse, ProcessedStatement, UploadedDocument

# Console logger
logger = logging.getLogger("clareia")
if not logger.handlers:
    logger.setLevel(logging.INFO)
    _h = logging.StreamHandler(sys.stdout)
    _h.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s"))
    logger.addHandler(_h)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Fails at startup when the endpoint or credential is missing
    settings = get_settings()
    logger.setLevel(settings.log_level.upper())
    logger.info("Clareia started (demo_mode=%s)", settings.demo_mode)
    yield


app = FastAPI(
    title="Clareia",
    description="Upload a bank or utility statement and get every line item explained in plain language.",
    version="0.1.0",
    lifespan=lifespan,
)


def _status_for(exc: ExtractionError) -> int:
    if isinstance(exc, TransportError):
        return 503
    return 502


@app.exception_handler(ExtractionError)
async def extraction_error_handler(request: Request, exc: ExtractionError):
    status = exc.status if isinstance(exc, ServiceError) else None
    logger.error("Extraction failed on %s: %s (%s)", request.url.path, exc.kind, exc.message)
    payload = ErrorResponse(error=exc.kind, detail=exc.message, status=status)
    return JSONResponse(status_code=_status_for(exc), content=payload.model_dump())


_READ_CHUNK = 64 * 1024


async def _read_capped(file: UploadFile, limit: int) -> Optional[bytes]:
    """Read the upload in chunks; None as soon as it grows past ``limit``."""
    if file.size is not None and file.size > limit:
        return None
    buf = bytearray()
    while True:
        chunk = await file.read(_READ_CHUNK)
        if not chunk:
            return bytes(buf)
        buf.extend(chunk)
        if len(buf) > limit:
            return None


def _upload_rejected(status_code: int, error: str, detail: str) -> JSONResponse:
    logger.warning("Upload rejected: %s", error)
    payload = ErrorResponse(error=error, detail=detail)
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.get("/health", summary="Liveness check")
def health():
    return {"status": "ok"}


@app.post(
    "/api/v1/statements",
    response_model=ProcessedStatement,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Explain the line items of an uploaded statement",
)
async def analyze_statement(
    file: UploadFile = File(..., description="Statement as PDF, JPEG/PNG image or plain text"),
    settings: Settings = Depends(get_settings),
):
    raw_bytes = await _read_capped(file, settings.max_upload_bytes)
    if raw_bytes is None:
        return _upload_rejected(413, "upload_too_large", f"File too large (limit {settings.max_upload_mb} MB).")
    if not raw_bytes:
        return _upload_rejected(400, "empty_upload", "Uploaded file is empty.")

    document = UploadedDocument(
        filename=file.filename or "extrato",
        media_type=file.content_type or "application/octet-stream",
        content=raw_bytes,
    )
    return await process_statement(document, settings)


@app.get(
    "/api/v1/examples/{kind}",
    response_model=ProcessedStatement,
    summary="Fixed example statement for demos",
)
def get_example(kind: str):
    try:
        return fallback(kind)
    except KeyError:
        known = ", ".join(k.value for k in FallbackKind)
        raise HTTPException(status_code=404, detail=f"Unknown example '{kind}'. Known: {known}")
