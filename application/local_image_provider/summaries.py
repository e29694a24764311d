"""ORM 行からワイヤ表現の値オブジェクトを組み立てる."""

from __future__ import annotations

from core.models.photo_models import Asset, AssetCollection
from domain.photo_library import AlbumSummary, ImageSummary


def image_summary(asset: Asset) -> ImageSummary:
    return ImageSummary(
        id=asset.local_identifier,
        creation_date=asset.creation_date,
        pixel_width=asset.pixel_width,
        pixel_height=asset.pixel_height,
    )


def album_summary(collection: AssetCollection, cover: Asset, image_count: int) -> AlbumSummary:
    return AlbumSummary(
        id=collection.local_identifier,
        title=collection.display_title,
        cover_img=image_summary(cover),
        image_count=image_count,
    )


__all__ = ["album_summary", "image_summary"]
