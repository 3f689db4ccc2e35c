import numpy as np
import pytest

from src.pipeline.background import BorderBackgroundRemover
from src.pipeline.raster import RasterImage
from tests.conftest import solid_raster


def _pixels(raster: RasterImage) -> np.ndarray:
    return np.frombuffer(bytes(raster.data), dtype=np.uint8).reshape(raster.height, raster.width, 4)


def test_default_threshold_is_tolerance_squared():
    remover = BorderBackgroundRemover()
    assert remover.tolerance == 28
    assert remover.threshold == 784


def test_reference_color_is_rounded_corner_mean():
    raster = solid_raster(4, 4, (50, 50, 50, 255))
    pixels = np.frombuffer(raster.data, dtype=np.uint8).reshape(4, 4, 4)
    pixels[0, 0, :3] = (0, 0, 0)
    pixels[0, -1, :3] = (0, 0, 0)
    pixels[-1, 0, :3] = (1, 1, 1)
    pixels[-1, -1, :3] = (1, 2, 3)

    # means 0.5, 0.75, 1.0 round half up
    assert BorderBackgroundRemover.reference_color(raster) == (1, 1, 1)


def test_solid_image_is_fully_cleared():
    raster = solid_raster(16, 9, (12, 200, 99, 255))

    BorderBackgroundRemover().remove(raster)

    assert (_pixels(raster)[..., 3] == 0).all()


def test_single_pixel_image_is_cleared():
    raster = solid_raster(1, 1, (255, 0, 0, 255))

    BorderBackgroundRemover().remove(raster)

    assert bytes(raster.data) == bytes((255, 0, 0, 0))


def test_only_alpha_channel_changes():
    rng = np.random.default_rng(7)
    data = rng.integers(0, 256, size=(20, 30, 4), dtype=np.uint8)
    data[0, 0, :3] = data[0, -1, :3] = data[-1, 0, :3] = data[-1, -1, :3] = (128, 128, 128)
    raster = RasterImage(bytearray(data.tobytes()), 30, 20)
    before = _pixels(raster).copy()

    BorderBackgroundRemover().remove(raster)

    after = _pixels(raster)
    assert np.array_equal(before[..., :3], after[..., :3])
    changed = before[..., 3] != after[..., 3]
    assert (after[..., 3][changed] == 0).all()


def test_interior_pixels_matching_background_are_cleared():
    # White frame, red block, white hole inside the red block
    raster = solid_raster(9, 9, (255, 255, 255, 255))
    pixels = np.frombuffer(raster.data, dtype=np.uint8).reshape(9, 9, 4)
    pixels[2:7, 2:7, :3] = (220, 0, 0)
    pixels[4, 4, :3] = (255, 255, 255)

    BorderBackgroundRemover().remove(raster)

    alpha = _pixels(raster)[..., 3]
    assert alpha[4, 4] == 0
    assert alpha[3, 3] == 255
    assert alpha[0, 0] == 0


@pytest.mark.parametrize(
    "rgb, expected_alpha",
    [
        ((128, 100, 100), 0),    # distance^2 == 784, inclusive
        ((129, 100, 100), 255),  # distance^2 == 841
        ((116, 116, 116), 0),    # 3 * 16^2 == 768
        ((117, 117, 117), 255),  # 3 * 17^2 == 867
    ],
)
def test_tolerance_boundary(rgb, expected_alpha):
    raster = solid_raster(3, 3, (100, 100, 100, 255))
    pixels = np.frombuffer(raster.data, dtype=np.uint8).reshape(3, 3, 4)
    pixels[1, 1, :3] = rgb

    BorderBackgroundRemover().remove(raster)

    assert _pixels(raster)[1, 1, 3] == expected_alpha


def test_custom_tolerance_zero_only_clears_exact_matches():
    raster = solid_raster(3, 3, (10, 10, 10, 255))
    pixels = np.frombuffer(raster.data, dtype=np.uint8).reshape(3, 3, 4)
    pixels[1, 1, :3] = (11, 10, 10)

    BorderBackgroundRemover(tolerance=0).remove(raster)

    alpha = _pixels(raster)[..., 3]
    assert alpha[1, 1] == 255
    assert alpha[0, 0] == 0


def test_rejects_non_rgba_raster():
    raster = RasterImage(bytearray(3 * 4), 2, 2, channels=3)
    with pytest.raises(ValueError):
        BorderBackgroundRemover().remove(raster)


def test_negative_tolerance_rejected():
    with pytest.raises(ValueError):
        BorderBackgroundRemover(tolerance=-1)
