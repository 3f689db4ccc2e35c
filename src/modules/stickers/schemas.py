"""
Sticker Export Request Schemas

Pydantic models for the JSON export endpoint. Image references without a
URL are accepted and dropped, and ``coverIndex`` is accepted in camel case.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StickerImageRef(BaseModel):
    """One source image; entries without a URL are ignored."""
    url: Optional[str] = None


class StickerExportRequest(BaseModel):
    """Request for a single sticker or a sticker pack export."""
    model_config = ConfigDict(populate_by_name=True)

    images: List[StickerImageRef] = Field(default_factory=list)
    name: Optional[str] = Field(None, max_length=128, description="Pack display name")
    author: Optional[str] = Field(None, max_length=128, description="Pack author")
    single: bool = Field(False, description="Export only the first image as one sticker")
    cover_index: int = Field(0, alias="coverIndex", description="Index of the cover sticker")

    def urls(self) -> List[str]:
        """Non-blank URLs in request order."""
        return [image.url for image in self.images if image.url and image.url.strip()]
