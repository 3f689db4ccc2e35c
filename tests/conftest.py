import io
import pytest
from httpx import AsyncClient, ASGITransport
from PIL import Image
from typing import AsyncGenerator, Tuple

from src.main import app
from src.pipeline.raster import RasterImage


def make_image_bytes(
    size: Tuple[int, int] = (64, 48),
    background: Tuple[int, int, int] = (255, 255, 255),
    subject: Tuple[int, int, int] = (200, 30, 30),
    fmt: str = "PNG",
) -> bytes:
    """Flat background with a centred square subject."""
    width, height = size
    image = Image.new("RGB", size, background)
    side = max(1, min(width, height) // 2)
    left = (width - side) // 2
    top = (height - side) // 2
    image.paste(subject, (left, top, left + side, top + side))
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def solid_raster(width: int, height: int, rgba: Tuple[int, int, int, int]) -> RasterImage:
    return RasterImage(bytearray(bytes(rgba) * (width * height)), width, height)


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    # Trigger lifespan events (startup/shutdown)
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    app.dependency_overrides.clear()
