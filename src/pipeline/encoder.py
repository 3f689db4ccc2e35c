"""
Budgeted Sticker Encoding

Walks a fixed quality ladder from highest to lowest and keeps the first
encode that fits the byte budget. When nothing fits, a final low-quality
encode is returned regardless of its size.
"""

import io
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable

from src.core.exceptions import EncodeError
from src.core.logging import get_logger
from src.pipeline.raster import RasterImage

logger = get_logger(__name__)

QUALITY_LADDER = (90, 80, 70, 60, 50, 40)
FALLBACK_QUALITY = 35
MAX_STICKER_BYTES = 100 * 1024


@runtime_checkable
class Encoder(Protocol):
    """Lossy raster encoder producing a single output format."""

    extension: str
    content_type: str

    def encode(self, raster: RasterImage, quality: int) -> bytes:
        ...


class WebPEncoder:
    """Lossy WebP encoding through Pillow."""

    extension = "webp"
    content_type = "image/webp"

    def __init__(self, method: int = 4):
        self.method = method

    def encode(self, raster: RasterImage, quality: int) -> bytes:
        buffer = io.BytesIO()
        try:
            raster.to_pil().save(
                buffer,
                format="WEBP",
                quality=quality,
                lossless=False,
                method=self.method,
            )
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"WebP encode failed: {e}", quality=quality) from e
        return buffer.getvalue()


@dataclass(frozen=True)
class EncodeResult:
    data: bytes
    quality: int
    within_budget: bool

    @property
    def size(self) -> int:
        return len(self.data)


class BudgetedEncoder:
    """Quality-ladder search for an encode strictly below ``max_bytes``."""

    def __init__(
        self,
        encoder: Optional[Encoder] = None,
        ladder: Sequence[int] = QUALITY_LADDER,
        max_bytes: int = MAX_STICKER_BYTES,
        fallback_quality: int = FALLBACK_QUALITY,
    ):
        self.encoder = encoder or WebPEncoder()
        self.ladder = tuple(ladder)
        self.max_bytes = max_bytes
        self.fallback_quality = fallback_quality

    @property
    def extension(self) -> str:
        return self.encoder.extension

    @property
    def content_type(self) -> str:
        return self.encoder.content_type

    def encode(self, raster: RasterImage) -> EncodeResult:
        for quality in self.ladder:
            data = self.encoder.encode(raster, quality)
            if len(data) < self.max_bytes:
                logger.debug("sticker_encoded", quality=quality, size_bytes=len(data))
                return EncodeResult(data=data, quality=quality, within_budget=True)
            logger.debug(
                "sticker_encode_over_budget",
                quality=quality,
                size_bytes=len(data),
                max_bytes=self.max_bytes
            )

        # Best effort: the fallback may still exceed the budget
        data = self.encoder.encode(raster, self.fallback_quality)
        within_budget = len(data) < self.max_bytes
        if not within_budget:
            logger.warning(
                "budget_missed",
                quality=self.fallback_quality,
                size_bytes=len(data),
                max_bytes=self.max_bytes
            )
        return EncodeResult(data=data, quality=self.fallback_quality, within_budget=within_budget)
