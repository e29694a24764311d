"""インデックス作成で利用する画像メタデータ関連のユーティリティ。"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from PIL import Image
from PIL.ExifTags import IFD, TAGS

from core.utils import (
    get_file_date_from_exif,
    get_file_date_from_name,
    open_image_compat,
    register_heif_support,
)

register_heif_support()

# EXIF Orientation values that swap width and height.
_ROTATED_ORIENTATIONS = {5, 6, 7, 8}

MIME_TYPE_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
    ".bmp": "image/bmp",
    ".heic": "image/heic",
    ".heif": "image/heif",
}

SUPPORTED_IMAGE_EXTENSIONS = frozenset(MIME_TYPE_BY_EXTENSION)


@dataclass(frozen=True)
class ImageMetadata:
    """向き補正後の画素数と EXIF タグ."""

    pixel_width: int
    pixel_height: int
    orientation: Optional[int] = None
    exif: Dict[str, Any] = field(default_factory=dict)


def calculate_file_hash(file_path: Path) -> str:
    """ファイルのSHA-256ハッシュを計算"""

    sha256_hash = hashlib.sha256()
    with open(file_path, "rb") as f:
        for byte_block in iter(lambda: f.read(65536), b""):
            sha256_hash.update(byte_block)
    return sha256_hash.hexdigest()


def _decode_exif(img: Image.Image) -> Dict[str, Any]:
    exif = img.getexif()
    if not exif:
        return {}

    decoded: Dict[str, Any] = {}
    for tag, value in exif.items():
        decoded[TAGS.get(tag, tag)] = value

    # DateTimeOriginal などは Exif IFD 側に格納されている
    try:
        sub_ifd = exif.get_ifd(IFD.Exif)
    except (KeyError, ValueError):
        sub_ifd = {}
    for tag, value in sub_ifd.items():
        decoded.setdefault(TAGS.get(tag, tag), value)

    return decoded


def read_image_metadata(file_path: Path) -> ImageMetadata:
    """画像の幅・高さ（向き補正後）と EXIF を取得"""

    with open_image_compat(file_path) as img:
        width, height = img.size
        exif = _decode_exif(img)

    orientation = exif.get("Orientation")
    try:
        orientation = int(orientation) if orientation is not None else None
    except (TypeError, ValueError):
        orientation = None

    if orientation in _ROTATED_ORIENTATIONS:
        width, height = height, width

    return ImageMetadata(
        pixel_width=width,
        pixel_height=height,
        orientation=orientation,
        exif=exif,
    )


def resolve_creation_date(file_path: Path, metadata: ImageMetadata) -> datetime:
    """EXIF、ファイル名、更新日時の順で作成日時を決定"""

    return (
        get_file_date_from_exif(metadata.exif)
        or get_file_date_from_name(file_path.name)
        or datetime.fromtimestamp(file_path.stat().st_mtime, tz=timezone.utc)
    )


__all__ = [
    "ImageMetadata",
    "MIME_TYPE_BY_EXTENSION",
    "SUPPORTED_IMAGE_EXTENSIONS",
    "calculate_file_hash",
    "read_image_metadata",
    "resolve_creation_date",
]
