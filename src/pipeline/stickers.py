"""
Single Sticker Builder

Composes decode, background removal, square normalization and budgeted
encoding for one source image. Background removal is best effort: any
failure there falls back to the untouched source bytes. Failures after
that point propagate to the caller.
"""

from dataclasses import dataclass
from typing import Optional, Union

from src.core.logging import LogContext, get_logger
from src.core.metrics import (
    record_background_fallback,
    record_encode_outcome,
    track_stage_latency,
)
from src.pipeline.background import BorderBackgroundRemover
from src.pipeline.encoder import BudgetedEncoder
from src.pipeline.normalize import SquareNormalizer
from src.pipeline.raster import Decoder, PillowDecoder, RasterImage

logger = get_logger(__name__)


@dataclass(frozen=True)
class StickerAsset:
    """An encoded sticker ready to be served or archived."""
    data: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)


class SingleStickerBuilder:
    """Builds one sticker asset from one source buffer."""

    def __init__(
        self,
        decoder: Optional[Decoder] = None,
        remover: Optional[BorderBackgroundRemover] = None,
        normalizer: Optional[SquareNormalizer] = None,
        encoder: Optional[BudgetedEncoder] = None,
    ):
        self.decoder = decoder or PillowDecoder()
        self.remover = remover or BorderBackgroundRemover()
        self.normalizer = normalizer or SquareNormalizer(decoder=self.decoder)
        self.encoder = encoder or BudgetedEncoder()

    @property
    def default_filename(self) -> str:
        return f"sticker.{self.encoder.extension}"

    def build(self, data: bytes, filename: Optional[str] = None) -> StickerAsset:
        source = self._remove_background(data)

        with LogContext(stage="normalize"), track_stage_latency("normalize"):
            normalized = self.normalizer.normalize(source)

        with LogContext(stage="encode"), track_stage_latency("encode"):
            result = self.encoder.encode(normalized)
        record_encode_outcome(result.quality, result.within_budget)

        asset = StickerAsset(
            data=result.data,
            filename=filename or self.default_filename,
            content_type=self.encoder.content_type,
        )
        logger.info(
            "sticker_built",
            filename=asset.filename,
            input_size=len(data),
            output_size=asset.size,
            quality=result.quality,
            within_budget=result.within_budget,
            background_removed=isinstance(source, RasterImage)
        )
        return asset

    def _remove_background(self, data: bytes) -> Union[RasterImage, bytes]:
        """Decoded raster with background cleared, or the original bytes on failure."""
        with LogContext(stage="background"):
            try:
                with track_stage_latency("background"):
                    raster = self.decoder.decode(data)
                    return self.remover.remove(raster)
            except Exception as e:
                record_background_fallback()
                logger.warning(
                    "background_removal_skipped",
                    error=str(e),
                    error_type=type(e).__name__,
                    input_size=len(data)
                )
                return data
