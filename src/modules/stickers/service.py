"""
Sticker Export Service

Request-level orchestration: a single source (or an explicit ``single``
request) yields one WebP sticker, several sources yield a zipped pack.
"""

from typing import Optional, Sequence, Union

from src.core.exceptions import ValidationError
from src.core.logging import get_logger
from src.pipeline.fetch import HttpImageFetcher
from src.pipeline.pack import Fetch, PackArchive, PackBuilder
from src.pipeline.stickers import SingleStickerBuilder, StickerAsset

logger = get_logger(__name__)

ExportResult = Union[StickerAsset, PackArchive]


class StickerExportService:
    def __init__(
        self,
        sticker_builder: SingleStickerBuilder,
        pack_builder: PackBuilder,
        fetch: Optional[Fetch] = None,
        default_name: str = "Sticker Pack",
        default_author: str = "Sticker Export",
    ):
        self.sticker_builder = sticker_builder
        self.pack_builder = pack_builder
        self.fetch = fetch or HttpImageFetcher()
        self.default_name = default_name
        self.default_author = default_author

    def export_urls(
        self,
        urls: Sequence[str],
        name: Optional[str] = None,
        author: Optional[str] = None,
        single: bool = False,
        cover_index: int = 0,
    ) -> ExportResult:
        """Fetch and export remote images."""
        if not urls:
            raise ValidationError("No images provided")

        if single or len(urls) == 1:
            logger.info("export_single_requested", source_count=len(urls))
            return self.sticker_builder.build(self.fetch(urls[0]))

        logger.info("export_pack_requested", source_count=len(urls), cover_index=cover_index)
        return self.pack_builder.build(
            list(urls),
            name=self.default_name if name is None else name,
            author=self.default_author if author is None else author,
            cover_index=cover_index,
        )

    def export_buffers(
        self,
        buffers: Sequence[bytes],
        name: Optional[str] = None,
        author: Optional[str] = None,
        single: bool = False,
        cover_index: int = 0,
    ) -> ExportResult:
        """Export images whose bytes are already in hand."""
        if not buffers:
            raise ValidationError("No images provided")

        if single or len(buffers) == 1:
            logger.info("export_single_requested", source_count=len(buffers))
            return self.sticker_builder.build(buffers[0])

        logger.info("export_pack_requested", source_count=len(buffers), cover_index=cover_index)
        return self.pack_builder.build(
            list(buffers),
            name=self.default_name if name is None else name,
            author=self.default_author if author is None else author,
            cover_index=cover_index,
        )
