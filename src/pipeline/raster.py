"""
Raster Model and Pixel Decoding

RasterImage is the exclusively owned RGBA pixel buffer that flows through
the sticker pipeline. Decoding is a pluggable capability so pipeline logic
can be exercised with stub decoders.
"""

import io
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, runtime_checkable

from PIL import Image, UnidentifiedImageError

from src.core.exceptions import DecodeError

RGBA_CHANNELS = 4
DEFAULT_DIMENSION = 1024


@dataclass
class ImageMetadata:
    """Dimensions probed from an encoded image; either side may be unknown."""
    width: Optional[int] = None
    height: Optional[int] = None

    def resolved(self, default: int = DEFAULT_DIMENSION) -> Tuple[int, int]:
        """Concrete (width, height), substituting ``default`` for unknown sides."""
        return (self.width or default, self.height or default)


@dataclass(eq=False)
class RasterImage:
    """Interleaved RGBA pixels, row-major, ``width * height * channels`` bytes."""
    data: bytearray
    width: int
    height: int
    channels: int = RGBA_CHANNELS

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid raster dimensions {self.width}x{self.height}")
        if not isinstance(self.data, bytearray):
            self.data = bytearray(self.data)
        expected = self.width * self.height * self.channels
        if len(self.data) != expected:
            raise ValueError(
                f"Raster buffer holds {len(self.data)} bytes, expected {expected} "
                f"for {self.width}x{self.height}x{self.channels}"
            )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def metadata(self) -> ImageMetadata:
        return ImageMetadata(width=self.width, height=self.height)

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(bytearray(image.tobytes()), image.width, image.height)

    def to_pil(self) -> Image.Image:
        if self.channels != RGBA_CHANNELS:
            raise ValueError(f"Expected an RGBA raster, got {self.channels} channels")
        return Image.frombytes("RGBA", self.size, bytes(self.data))


@runtime_checkable
class Decoder(Protocol):
    """Turns encoded bytes of unknown format into pixels."""

    def decode(self, data: bytes) -> RasterImage:
        ...

    def probe(self, data: bytes) -> ImageMetadata:
        ...


class PillowDecoder:
    """Decoder backed by Pillow; handles JPEG, PNG, WebP, GIF and friends."""

    def decode(self, data: bytes) -> RasterImage:
        try:
            with Image.open(io.BytesIO(data)) as image:
                # Animated sources contribute their first frame only
                image.seek(0)
                rgba = image.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(
                f"Source is not a decodable image: {e}",
                details={"input_size": len(data)}
            ) from e
        return RasterImage.from_pil(rgba)

    def probe(self, data: bytes) -> ImageMetadata:
        """Read dimensions from the header without decoding pixels."""
        try:
            with Image.open(io.BytesIO(data)) as image:
                width, height = image.size
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError):
            return ImageMetadata()
        return ImageMetadata(width=width or None, height=height or None)
