"""
Global Exception Handling

Typed pipeline errors and the FastAPI handlers that turn them into
structured JSON responses.
"""

import traceback
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.logging import get_logger, request_id_var

logger = get_logger(__name__)


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# =============================================================================
# Custom Exceptions
# =============================================================================

class StickerExportError(Exception):
    """Base exception for the sticker export service."""

    def __init__(
        self,
        message: str,
        code: int = 500,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.stage = stage
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(StickerExportError):
    """Raised when request input is unusable."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, code=400, **kwargs)


class DecodeError(StickerExportError):
    """Raised when source bytes are not a decodable raster image."""

    def __init__(self, message: str, stage: str = "decode", **kwargs):
        super().__init__(message, code=422, stage=stage, **kwargs)


class EncodeError(StickerExportError):
    """Raised when the encoder cannot produce output."""

    def __init__(self, message: str, quality: Optional[int] = None, **kwargs):
        super().__init__(message, code=500, stage="encode", **kwargs)
        self.details["quality"] = quality


class FetchError(StickerExportError):
    """Raised when a source image cannot be retrieved."""

    def __init__(
        self,
        message: str,
        url: str,
        http_status: Optional[int] = None,
        **kwargs
    ):
        super().__init__(message, code=502, stage="fetch", **kwargs)
        self.details["url"] = url
        self.details["http_status"] = http_status


# =============================================================================
# Exception Handlers
# =============================================================================

def error_payload(exc: StickerExportError) -> Dict[str, Any]:
    """Structured error body shared by all handlers."""
    return {
        "error": exc.message,
        "request_id": request_id_var.get(),
        "code": exc.code,
        "stage": exc.stage,
        "details": exc.details,
        "timestamp": _utc_timestamp()
    }


def register_exception_handlers(app: FastAPI):
    """Register custom exception handlers with FastAPI app."""

    @app.exception_handler(StickerExportError)
    async def sticker_exception_handler(request: Request, exc: StickerExportError):
        log = logger.warning if exc.code < 500 else logger.error
        log(
            "sticker_export_exception",
            error=exc.message,
            error_type=type(exc).__name__,
            code=exc.code,
            stage=exc.stage,
            details=exc.details
        )

        return JSONResponse(
            status_code=exc.code,
            content=error_payload(exc)
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
            traceback=traceback.format_exc()
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "request_id": request_id_var.get(),
                "code": 500,
                "timestamp": _utc_timestamp()
            }
        )
