"""
Square Normalization

Pads a raster symmetrically onto a transparent square canvas, then resizes
it to the fixed sticker resolution with a cover fit.
"""

from dataclasses import dataclass
from typing import Optional, Union

from PIL import Image, ImageOps

from src.core.exceptions import DecodeError
from src.core.logging import get_logger
from src.pipeline.raster import (
    DEFAULT_DIMENSION,
    Decoder,
    ImageMetadata,
    PillowDecoder,
    RasterImage,
)

logger = get_logger(__name__)

DEFAULT_OUTPUT_SIZE = 512
TRANSPARENT = (0, 0, 0, 0)


@dataclass(frozen=True)
class Padding:
    top: int
    bottom: int
    left: int
    right: int


def compute_padding(width: int, height: int) -> Padding:
    """Symmetric padding that turns ``width x height`` into a square.

    Odd remainders put the extra pixel on the bottom/right side.
    """
    max_side = max(width, height)
    dy = max_side - height
    dx = max_side - width
    return Padding(
        top=dy // 2,
        bottom=dy - dy // 2,
        left=dx // 2,
        right=dx - dx // 2,
    )


class SquareNormalizer:
    """Pad-to-square followed by a cover-fit resize to ``output_size``."""

    def __init__(
        self,
        output_size: int = DEFAULT_OUTPUT_SIZE,
        decoder: Optional[Decoder] = None,
        default_dimension: int = DEFAULT_DIMENSION,
    ):
        self.output_size = output_size
        self.decoder = decoder or PillowDecoder()
        self.default_dimension = default_dimension

    def normalize(self, source: Union[RasterImage, bytes]) -> RasterImage:
        """
        Normalize a decoded raster, or raw bytes when background removal was skipped.

        Raw bytes are probed for their dimensions (falling back to the default
        dimension for unknown sides) and decoded here; a DecodeError at this
        point is fatal to the caller.
        """
        if isinstance(source, RasterImage):
            raster = source
            metadata = raster.metadata
        else:
            metadata = self.decoder.probe(source)
            try:
                raster = self.decoder.decode(source)
            except DecodeError as e:
                raise DecodeError(e.message, stage="normalize", details=e.details) from e

        return self._pad_and_resize(raster, metadata)

    def _pad_and_resize(self, raster: RasterImage, metadata: ImageMetadata) -> RasterImage:
        width, height = metadata.resolved(self.default_dimension)
        padding = compute_padding(width, height)

        image = raster.to_pil()
        canvas = Image.new(
            "RGBA",
            (
                image.width + padding.left + padding.right,
                image.height + padding.top + padding.bottom,
            ),
            TRANSPARENT,
        )
        canvas.paste(image, (padding.left, padding.top))

        target = (self.output_size, self.output_size)
        resized = ImageOps.fit(
            canvas,
            target,
            method=Image.Resampling.LANCZOS,
            centering=(0.5, 0.5),
        )

        logger.debug(
            "raster_normalized",
            source_dimensions=[raster.width, raster.height],
            padded_dimensions=list(canvas.size),
            padding=[padding.top, padding.bottom, padding.left, padding.right],
            output_size=self.output_size
        )
        return RasterImage.from_pil(resized)
