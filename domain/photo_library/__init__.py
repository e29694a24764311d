"""フォトライブラリのドメイン値オブジェクト定義."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from core.time import isoformat_utc

if TYPE_CHECKING:  # pragma: no cover
    from PIL import Image


UNTITLED_ALBUM_TITLE = "n/a"


class AuthorizationStatus(Enum):
    """フォトライブラリへのアクセス許可状態."""

    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    AUTHORIZED = "authorized"


class MediaType(Enum):
    """インデックスに登録されるアセットの種別."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


class AssetCollectionType(IntEnum):
    """アセットコレクションの大分類."""

    ALBUM = 1
    SMART_ALBUM = 2
    MOMENT = 3


class AssetCollectionSubtype(IntEnum):
    """アセットコレクションの小分類."""

    ALBUM_REGULAR = 2
    ALBUM_SYNCED_EVENT = 3
    ALBUM_SYNCED_FACES = 4
    ALBUM_SYNCED_ALBUM = 5
    ALBUM_IMPORTED = 6
    ALBUM_MY_PHOTO_STREAM = 100
    ALBUM_CLOUD_SHARED = 101
    SMART_ALBUM_GENERIC = 200
    SMART_ALBUM_FAVORITES = 203
    SMART_ALBUM_RECENTLY_ADDED = 206
    SMART_ALBUM_USER_LIBRARY = 209


# Subtypes enumerated by the ``albums`` operation, in emission order.
ALBUM_LISTING_SUBTYPES: tuple[AssetCollectionSubtype, ...] = (
    AssetCollectionSubtype.ALBUM_REGULAR,
    AssetCollectionSubtype.ALBUM_SYNCED_EVENT,
    AssetCollectionSubtype.ALBUM_SYNCED_FACES,
    AssetCollectionSubtype.ALBUM_SYNCED_ALBUM,
    AssetCollectionSubtype.ALBUM_IMPORTED,
    AssetCollectionSubtype.ALBUM_CLOUD_SHARED,
)


class ImageContentMode(Enum):
    """レンダリング時のターゲットサイズへの合わせ方."""

    ASPECT_FIT = "aspect_fit"
    ASPECT_FILL = "aspect_fill"


class DeliveryMode(Enum):
    """画像の配信方式."""

    OPPORTUNISTIC = "opportunistic"
    HIGH_QUALITY = "high_quality"
    FAST = "fast"

    @classmethod
    def from_value(cls, value: str, default: "DeliveryMode") -> "DeliveryMode":
        normalised = (value or "").strip().lower()
        for mode in cls:
            if mode.value == normalised:
                return mode
        return default


class ResizeMode(Enum):
    """リサイズ時の精度."""

    NONE = "none"
    FAST = "fast"
    EXACT = "exact"


@dataclass(frozen=True)
class ImageRequestOptions:
    """画像レンダリング要求のオプション."""

    network_access_allowed: bool = False
    delivery_mode: DeliveryMode = DeliveryMode.OPPORTUNISTIC
    resize_mode: ResizeMode = ResizeMode.FAST


@dataclass(frozen=True)
class AssetSnapshot:
    """レンダリングスレッドへ渡すアセット情報（ORM から切り離したもの）."""

    local_identifier: str
    pixel_width: int
    pixel_height: int
    creation_date: datetime
    source_path: Optional[Path] = None
    remote_url: Optional[str] = None


@dataclass(frozen=True)
class ImageDelivery:
    """画像マネージャからの 1 回分の配信結果."""

    request_id: int
    image: Optional["Image.Image"] = None
    degraded: bool = False
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class ImageSummary:
    """画像アセットのワイヤ表現."""

    id: str
    creation_date: datetime
    pixel_width: int
    pixel_height: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "creationDate": isoformat_utc(self.creation_date),
            "pixelWidth": int(self.pixel_width),
            "pixelHeight": int(self.pixel_height),
        }


@dataclass(frozen=True)
class AlbumSummary:
    """アルバムのワイヤ表現."""

    id: str
    title: str
    cover_img: ImageSummary
    image_count: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "coverImg": self.cover_img.to_wire(),
            "imageCount": int(self.image_count),
        }


__all__ = [
    "ALBUM_LISTING_SUBTYPES",
    "UNTITLED_ALBUM_TITLE",
    "AlbumSummary",
    "AssetCollectionSubtype",
    "AssetCollectionType",
    "AssetSnapshot",
    "AuthorizationStatus",
    "DeliveryMode",
    "ImageContentMode",
    "ImageDelivery",
    "ImageRequestOptions",
    "ImageSummary",
    "MediaType",
    "ResizeMode",
]
