"""
Sticker Pack Builder

Runs the single sticker pipeline over an ordered list of sources, names the
results by sequence number, and packages them with a ``pack.json`` manifest
into a zip archive. Any failing item aborts the whole pack.
"""

import io
import json
import time
import zipfile
from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional, Protocol, Sequence, Tuple, Union

from src.core.exceptions import ValidationError
from src.core.logging import LogContext, get_logger
from src.core.metrics import record_pack_build, track_stage_latency
from src.pipeline.executor import run_ordered
from src.pipeline.stickers import SingleStickerBuilder, StickerAsset

logger = get_logger(__name__)

MAX_PACK_ITEMS = 30
MANIFEST_FILENAME = "pack.json"
PACK_FILENAME = "whatsapp-pack.zip"
PACK_CONTENT_TYPE = "application/zip"

# Raw bytes, or a reference (URL) the fetch collaborator resolves to bytes
PackSource = Union[bytes, bytearray, str]
Fetch = Callable[[str], bytes]


@dataclass
class StickerPackManifest:
    name: str
    author: str
    cover: str
    stickers: List[str] = field(default_factory=list)

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2, ensure_ascii=False)


def resolve_cover(filenames: Sequence[str], cover_index: int) -> str:
    """Filename at ``cover_index``, or the first filename when out of range."""
    if not filenames:
        raise ValidationError("A sticker pack needs at least one sticker")
    if 0 <= cover_index < len(filenames):
        return filenames[cover_index]
    return filenames[0]


class ArchiveWriter(Protocol):
    def write(self, entries: Sequence[Tuple[str, bytes]]) -> bytes:
        ...


class ZipArchiveWriter:
    """Writes entries, in order, into an in-memory zip file."""

    def __init__(self, compression: int = zipfile.ZIP_DEFLATED):
        self.compression = compression

    def write(self, entries: Sequence[Tuple[str, bytes]]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=self.compression) as archive:
            for name, data in entries:
                archive.writestr(name, data)
        return buffer.getvalue()


@dataclass(frozen=True)
class PackArchive:
    data: bytes
    manifest: StickerPackManifest
    assets: Tuple[StickerAsset, ...]
    filename: str = PACK_FILENAME
    content_type: str = PACK_CONTENT_TYPE


class PackBuilder:
    """Builds a sticker pack archive from up to ``max_items`` sources."""

    def __init__(
        self,
        sticker_builder: Optional[SingleStickerBuilder] = None,
        archive_writer: Optional[ArchiveWriter] = None,
        fetch: Optional[Fetch] = None,
        max_items: int = MAX_PACK_ITEMS,
        concurrency: int = 1,
    ):
        self.sticker_builder = sticker_builder or SingleStickerBuilder()
        self.archive_writer = archive_writer or ZipArchiveWriter()
        self.fetch = fetch
        self.max_items = max_items
        self.concurrency = max(1, concurrency)

    def sticker_filename(self, index: int) -> str:
        """Sequence-based filename for the item at zero-based ``index``."""
        return f"{index + 1:03d}.{self.sticker_builder.encoder.extension}"

    def build(
        self,
        sources: Sequence[PackSource],
        name: str,
        author: str,
        cover_index: int = 0,
    ) -> PackArchive:
        if not sources:
            raise ValidationError("No images provided")

        selected = list(sources[:self.max_items])
        if len(sources) > self.max_items:
            logger.info(
                "pack_sources_truncated",
                received=len(sources),
                max_items=self.max_items
            )

        start_time = time.perf_counter()
        try:
            with LogContext(stage="pack"), track_stage_latency("pack"):
                assets = run_ordered(self._build_item, selected, max_workers=self.concurrency)
                filenames = [asset.filename for asset in assets]
                manifest = StickerPackManifest(
                    name=name,
                    author=author,
                    cover=resolve_cover(filenames, cover_index),
                    stickers=filenames,
                )
                entries = [(asset.filename, asset.data) for asset in assets]
                entries.append((MANIFEST_FILENAME, manifest.to_json().encode("utf-8")))
                data = self.archive_writer.write(entries)
        except Exception as e:
            record_pack_build("failed")
            logger.error(
                "pack_build_failed",
                error=str(e),
                error_type=type(e).__name__,
                item_count=len(selected)
            )
            raise

        record_pack_build("completed")
        logger.info(
            "pack_built",
            sticker_count=len(assets),
            cover=manifest.cover,
            archive_size=len(data),
            duration_ms=int((time.perf_counter() - start_time) * 1000)
        )
        return PackArchive(data=data, manifest=manifest, assets=tuple(assets))

    def _build_item(self, index: int, source: PackSource) -> StickerAsset:
        data = self._resolve(source)
        return self.sticker_builder.build(data, filename=self.sticker_filename(index))

    def _resolve(self, source: PackSource) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        if self.fetch is None:
            raise ValidationError(
                "Pack source is a reference but no fetcher is configured",
                details={"source": str(source)}
            )
        return self.fetch(source)
