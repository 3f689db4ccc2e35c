"""
Border-Sampled Background Removal

Estimates the background colour from the four corner pixels and clears the
alpha of every pixel within a chroma distance of it. There is no
connectivity analysis: interior pixels matching the sampled colour are
cleared as well.
"""

from typing import Tuple

import numpy as np

from src.core.logging import get_logger
from src.pipeline.raster import RGBA_CHANNELS, RasterImage

logger = get_logger(__name__)

DEFAULT_TOLERANCE = 28


class BorderBackgroundRemover:
    """Chroma-distance background remover seeded from the image corners."""

    def __init__(self, tolerance: int = DEFAULT_TOLERANCE):
        if tolerance < 0:
            raise ValueError("tolerance must be non-negative")
        self.tolerance = tolerance

    @property
    def threshold(self) -> int:
        """Squared-distance threshold; a pixel at or below it is background."""
        return self.tolerance * self.tolerance

    @staticmethod
    def reference_color(raster: RasterImage) -> Tuple[int, int, int]:
        """Mean RGB of the four corner pixels, rounded half up."""
        pixels = _pixel_view(raster)
        corners = pixels[[0, 0, -1, -1], [0, -1, 0, -1], :3].astype(np.int64)
        mean = np.floor(corners.sum(axis=0) / 4.0 + 0.5).astype(np.int64)
        return int(mean[0]), int(mean[1]), int(mean[2])

    def remove(self, raster: RasterImage) -> RasterImage:
        """
        Clear background alpha in place and return the same raster.

        Only the alpha channel is written; RGB values are left untouched.
        """
        if raster.channels != RGBA_CHANNELS:
            raise ValueError(f"Background removal needs RGBA input, got {raster.channels} channels")

        pixels = _pixel_view(raster)
        reference = np.array(self.reference_color(raster), dtype=np.int64)

        diff = pixels[..., :3].astype(np.int64) - reference
        distance = np.einsum("ijk,ijk->ij", diff, diff)
        mask = distance <= self.threshold

        alpha = pixels[..., 3]
        alpha[mask] = 0

        logger.debug(
            "background_removed",
            reference_color=[int(c) for c in reference],
            cleared_pixels=int(mask.sum()),
            total_pixels=int(mask.size),
            tolerance=self.tolerance
        )
        return raster


def _pixel_view(raster: RasterImage) -> np.ndarray:
    """Writable (height, width, channels) view over the raster's own buffer."""
    return np.frombuffer(raster.data, dtype=np.uint8).reshape(
        raster.height, raster.width, raster.channels
    )
