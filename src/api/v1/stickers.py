"""
Sticker Export Endpoints

POST /api/v1/stickers/export - Export stickers from image URLs
POST /api/v1/stickers/upload - Export stickers from uploaded files

One source (or ``single=true``) returns a WebP sticker; several sources
return a zip pack with a pack.json manifest.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from src.api.dependencies import get_sticker_export_service
from src.core.config import settings
from src.core.exceptions import ValidationError
from src.core.logging import get_logger
from src.modules.stickers.schemas import StickerExportRequest
from src.modules.stickers.service import ExportResult, StickerExportService

logger = get_logger(__name__)
router = APIRouter()

UPLOAD_CHUNK_BYTES = 64 * 1024


def _attachment(result: ExportResult) -> Response:
    return Response(
        content=result.data,
        media_type=result.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "Cache-Control": "no-store",
        },
    )


def _upload_too_large(upload: UploadFile, size_bytes: int, max_bytes: int) -> ValidationError:
    return ValidationError(
        f"File '{upload.filename}' exceeds maximum allowed size",
        details={"size_bytes": size_bytes, "max_bytes": max_bytes}
    )


async def _read_upload(upload: UploadFile, max_bytes: int) -> bytes:
    """Read an upload in chunks, rejecting it once it passes ``max_bytes``."""
    if upload.size is not None and upload.size > max_bytes:
        raise _upload_too_large(upload, upload.size, max_bytes)

    buffer = bytearray()
    while True:
        chunk = await upload.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > max_bytes:
            raise _upload_too_large(upload, len(buffer), max_bytes)
    return bytes(buffer)


@router.post("/export")
async def export_stickers(
    request: StickerExportRequest,
    service: StickerExportService = Depends(get_sticker_export_service),
):
    """
    Export stickers from image URLs.

    The pipeline is CPU bound, so it runs in the threadpool; pack items are
    fetched and processed in order.
    """
    urls = request.urls()
    if not urls:
        raise ValidationError("No images provided")

    logger.info(
        "sticker_export_received",
        source_count=len(urls),
        single=request.single,
        cover_index=request.cover_index
    )

    result = await run_in_threadpool(
        service.export_urls,
        urls,
        name=request.name,
        author=request.author,
        single=request.single,
        cover_index=request.cover_index,
    )
    return _attachment(result)


@router.post("/upload")
async def upload_stickers(
    files: List[UploadFile] = File(...),
    name: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    single: bool = Form(False),
    cover_index: int = Form(0),
    service: StickerExportService = Depends(get_sticker_export_service),
):
    """Export stickers from directly uploaded image files."""
    buffers = []
    for upload in files:
        content = await _read_upload(upload, settings.MAX_IMAGE_SIZE_BYTES)
        if content:
            buffers.append(content)

    if not buffers:
        raise ValidationError("No images provided")

    logger.info("sticker_upload_received", source_count=len(buffers), single=single)

    result = await run_in_threadpool(
        service.export_buffers,
        buffers,
        name=name,
        author=author,
        single=single,
        cover_index=cover_index,
    )
    return _attachment(result)
