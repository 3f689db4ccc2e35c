from unittest.mock import MagicMock

import pytest

from src.core.exceptions import ValidationError
from src.modules.stickers.schemas import StickerExportRequest
from src.modules.stickers.service import StickerExportService
from src.pipeline.pack import PackBuilder
from src.pipeline.stickers import SingleStickerBuilder


@pytest.fixture
def collaborators():
    sticker_builder = MagicMock(spec=SingleStickerBuilder)
    pack_builder = MagicMock(spec=PackBuilder)
    fetch = MagicMock(side_effect=lambda url: f"bytes:{url}".encode())
    service = StickerExportService(
        sticker_builder,
        pack_builder,
        fetch=fetch,
        default_name="Default Pack",
        default_author="Default Author",
    )
    return service, sticker_builder, pack_builder, fetch


def test_single_url_builds_one_sticker(collaborators):
    service, sticker_builder, pack_builder, fetch = collaborators

    result = service.export_urls(["https://x/a.png"])

    fetch.assert_called_once_with("https://x/a.png")
    sticker_builder.build.assert_called_once_with(b"bytes:https://x/a.png")
    pack_builder.build.assert_not_called()
    assert result is sticker_builder.build.return_value


def test_single_flag_uses_first_url_only(collaborators):
    service, sticker_builder, pack_builder, fetch = collaborators

    service.export_urls(["https://x/a.png", "https://x/b.png"], single=True)

    fetch.assert_called_once_with("https://x/a.png")
    pack_builder.build.assert_not_called()


def test_several_urls_build_pack_with_defaults(collaborators):
    service, sticker_builder, pack_builder, fetch = collaborators
    urls = ["https://x/a.png", "https://x/b.png"]

    service.export_urls(urls, cover_index=1)

    pack_builder.build.assert_called_once_with(
        urls, name="Default Pack", author="Default Author", cover_index=1
    )
    # Fetching is the pack builder's job, item by item
    fetch.assert_not_called()


def test_explicit_empty_name_is_kept(collaborators):
    service, _, pack_builder, _ = collaborators

    service.export_urls(["a", "b"], name="", author="Me")

    assert pack_builder.build.call_args.kwargs["name"] == ""
    assert pack_builder.build.call_args.kwargs["author"] == "Me"


def test_no_urls_rejected(collaborators):
    service = collaborators[0]
    with pytest.raises(ValidationError):
        service.export_urls([])


def test_buffers_dispatch(collaborators):
    service, sticker_builder, pack_builder, fetch = collaborators

    service.export_buffers([b"one"])
    sticker_builder.build.assert_called_once_with(b"one")

    service.export_buffers([b"one", b"two"], name="P", author="A")
    pack_builder.build.assert_called_once_with([b"one", b"two"], name="P", author="A", cover_index=0)
    fetch.assert_not_called()

    with pytest.raises(ValidationError):
        service.export_buffers([])


def test_request_schema_drops_blank_urls_and_accepts_camel_case():
    request = StickerExportRequest.model_validate({
        "images": [{"url": "https://x/a.png"}, {}, {"url": "  "}, {"url": "https://x/b.png"}],
        "coverIndex": 2,
    })

    assert request.urls() == ["https://x/a.png", "https://x/b.png"]
    assert request.cover_index == 2
    assert request.single is False
    assert request.name is None
