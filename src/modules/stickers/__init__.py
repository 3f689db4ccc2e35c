"""
Stickers Module - Export Service

Request schemas and the orchestration that dispatches single-sticker and
pack exports.
"""

from src.modules.stickers.schemas import StickerExportRequest, StickerImageRef
from src.modules.stickers.service import ExportResult, StickerExportService

__all__ = ["ExportResult", "StickerExportRequest", "StickerExportService", "StickerImageRef"]
