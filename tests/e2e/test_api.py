import io
import json
import zipfile

import pytest

from src.api.dependencies import build_sticker_builder, get_sticker_export_service
from src.core.config import settings
from src.core.exceptions import FetchError
from src.main import app
from src.modules.stickers.service import StickerExportService
from src.pipeline.pack import PackBuilder
from tests.conftest import make_image_bytes

SOURCES = {
    "https://cdn.example.com/1.png": make_image_bytes(size=(64, 48), subject=(220, 0, 0)),
    "https://cdn.example.com/2.jpg": make_image_bytes(size=(40, 80), subject=(0, 200, 0), fmt="JPEG"),
    "https://cdn.example.com/3.png": make_image_bytes(size=(50, 50), subject=(0, 0, 210)),
}


def fake_fetch(url: str) -> bytes:
    if url not in SOURCES:
        raise FetchError(f"fetch {url} -> 404", url=url, http_status=404)
    return SOURCES[url]


@pytest.fixture
def offline_service():
    sticker_builder = build_sticker_builder()
    service = StickerExportService(
        sticker_builder=sticker_builder,
        pack_builder=PackBuilder(sticker_builder=sticker_builder, fetch=fake_fetch),
        fetch=fake_fetch,
    )
    app.dependency_overrides[get_sticker_export_service] = lambda: service
    return service


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_export_without_images_is_rejected(client, offline_service):
    response = await client.post("/api/v1/stickers/export", json={"images": [{"url": ""}]})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "No images provided"
    assert body["request_id"] == response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_export_single_sticker(client, offline_service):
    response = await client.post(
        "/api/v1/stickers/export",
        json={"images": [{"url": "https://cdn.example.com/1.png"}]},
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/webp"
    assert response.headers["content-disposition"] == 'attachment; filename="sticker.webp"'
    assert response.headers["cache-control"] == "no-store"
    assert response.content[8:12] == b"WEBP"


@pytest.mark.asyncio
async def test_export_pack(client, offline_service):
    response = await client.post(
        "/api/v1/stickers/export",
        json={
            "images": [{"url": url} for url in SOURCES],
            "name": "Pack",
            "author": "A",
            "coverIndex": 1,
        },
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert response.headers["content-disposition"] == 'attachment; filename="whatsapp-pack.zip"'

    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert archive.namelist() == ["001.webp", "002.webp", "003.webp", "pack.json"]
        manifest = json.loads(archive.read("pack.json"))

    assert manifest == {
        "name": "Pack",
        "author": "A",
        "cover": "002.webp",
        "stickers": ["001.webp", "002.webp", "003.webp"],
    }


@pytest.mark.asyncio
async def test_export_pack_fetch_failure_aborts(client, offline_service):
    response = await client.post(
        "/api/v1/stickers/export",
        json={"images": [{"url": "https://cdn.example.com/1.png"}, {"url": "https://cdn.example.com/gone.png"}]},
    )

    assert response.status_code == 502
    body = response.json()
    assert body["stage"] == "fetch"
    assert body["details"]["http_status"] == 404


@pytest.mark.asyncio
async def test_upload_pack(client, offline_service):
    files = [
        ("files", (f"{i}.png", data, "image/png"))
        for i, data in enumerate(SOURCES.values())
    ]

    response = await client.post(
        "/api/v1/stickers/upload",
        files=files,
        data={"name": "Uploaded", "author": "Me", "cover_index": "7"},
    )

    assert response.status_code == 200
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        manifest = json.loads(archive.read("pack.json"))
    assert manifest["name"] == "Uploaded"
    assert manifest["cover"] == "001.webp"


@pytest.mark.asyncio
async def test_upload_non_image_fails_at_normalize(client, offline_service):
    response = await client.post(
        "/api/v1/stickers/upload",
        files=[("files", ("notes.txt", b"plain text, not pixels", "text/plain"))],
    )

    assert response.status_code == 422
    assert response.json()["stage"] == "normalize"


@pytest.mark.asyncio
async def test_metrics_endpoint(client):
    response = await client.get("/api/v1/metrics")
    assert response.status_code == 200
    assert b"sticker_stage_latency_seconds" in response.content


@pytest.mark.asyncio
async def test_upload_over_size_limit_is_rejected(client, offline_service, monkeypatch):
    monkeypatch.setattr(settings, "MAX_IMAGE_SIZE_BYTES", 64)
    files = [
        ("files", ("small.txt", b"tiny", "text/plain")),
        ("files", ("big.png", b"x" * 200, "image/png")),
    ]

    response = await client.post("/api/v1/stickers/upload", files=files)

    assert response.status_code == 400
    body = response.json()
    assert "big.png" in body["error"]
    assert body["details"]["max_bytes"] == 64
    assert body["details"]["size_bytes"] == 200
