"""
FastAPI Dependencies for the Sticker Export Service

The pipeline objects hold configuration only, no per-request state, so a
single instance per process is shared by all requests.
"""

from functools import lru_cache

from src.core.config import settings
from src.modules.stickers.service import StickerExportService
from src.pipeline.background import BorderBackgroundRemover
from src.pipeline.encoder import BudgetedEncoder, WebPEncoder
from src.pipeline.fetch import HttpImageFetcher
from src.pipeline.normalize import SquareNormalizer
from src.pipeline.pack import PackBuilder, ZipArchiveWriter
from src.pipeline.raster import PillowDecoder
from src.pipeline.stickers import SingleStickerBuilder


def build_sticker_builder() -> SingleStickerBuilder:
    decoder = PillowDecoder()
    return SingleStickerBuilder(
        decoder=decoder,
        remover=BorderBackgroundRemover(tolerance=settings.STICKER_BG_TOLERANCE),
        normalizer=SquareNormalizer(
            output_size=settings.STICKER_OUTPUT_SIZE,
            decoder=decoder,
            default_dimension=settings.STICKER_DEFAULT_DIMENSION,
        ),
        encoder=BudgetedEncoder(
            encoder=WebPEncoder(),
            ladder=settings.STICKER_QUALITY_LADDER,
            max_bytes=settings.STICKER_MAX_BYTES,
            fallback_quality=settings.STICKER_FALLBACK_QUALITY,
        ),
    )


@lru_cache(maxsize=1)
def get_sticker_export_service() -> StickerExportService:
    """Process-wide export service wired from settings."""
    fetcher = HttpImageFetcher(
        timeout=settings.STICKER_FETCH_TIMEOUT_SECONDS,
        max_bytes=settings.MAX_IMAGE_SIZE_BYTES,
    )
    sticker_builder = build_sticker_builder()
    pack_builder = PackBuilder(
        sticker_builder=sticker_builder,
        archive_writer=ZipArchiveWriter(),
        fetch=fetcher,
        max_items=settings.STICKER_PACK_MAX_ITEMS,
        concurrency=settings.STICKER_PACK_CONCURRENCY,
    )
    return StickerExportService(
        sticker_builder=sticker_builder,
        pack_builder=pack_builder,
        fetch=fetcher,
        default_name=settings.STICKER_PACK_DEFAULT_NAME,
        default_author=settings.STICKER_PACK_DEFAULT_AUTHOR,
    )
