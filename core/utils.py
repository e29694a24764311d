"""Utility helpers shared by the indexer and the render pipeline."""

import importlib
import importlib.util
import re
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Final, Iterator
from zoneinfo import ZoneInfo

from PIL import Image, UnidentifiedImageError

from core.settings import settings

_HEIF_PLUGIN_NAME: Final[str] = "pillow_heif"
_HEIF_REGISTERED: bool = False

_EXIF_OFFSET_TAGS: dict[str, tuple[str, ...]] = {
    "DateTimeOriginal": ("OffsetTimeOriginal", "OffsetTime"),
    "CreateDate": (
        "OffsetTimeDigitized",
        "OffsetTimeOriginal",
        "OffsetTime",
    ),
    "DateTimeDigitized": ("OffsetTimeDigitized", "OffsetTime"),
    "DateTime": ("OffsetTime",),
}

_FILENAME_DATE_PATTERN = re.compile(r"(?:IMG_|PXL_)?(\d{8})_(\d{6})")


def register_heif_support() -> bool:
    """Register HEIF/HEIC format support if the Pillow plugin is available."""

    global _HEIF_REGISTERED
    if _HEIF_REGISTERED:
        return True

    spec = importlib.util.find_spec(_HEIF_PLUGIN_NAME)
    if spec is None:
        return False

    module = importlib.import_module(_HEIF_PLUGIN_NAME)
    register = getattr(module, "register_heif_opener", None)
    if callable(register):
        register()
        _HEIF_REGISTERED = True
        return True

    return False


@contextmanager
def open_image_compat(path: str | Path) -> Iterator[Image.Image]:
    """Open an image file handling HEIC/HEIF without Pillow plugin support.

    This helper first attempts to open the file via :func:`PIL.Image.open`.
    When Pillow cannot identify the file (for example because the HEIF plugin
    was not registered), it falls back to :mod:`pillow_heif` so that HEIC files
    can still be processed.  The returned image object is automatically closed
    when the context exits.
    """

    image_obj: Image.Image | None = None

    try:
        image_obj = Image.open(path)
    except UnidentifiedImageError:
        if importlib.util.find_spec(_HEIF_PLUGIN_NAME) is None:
            raise
        from pillow_heif import open_heif  # type: ignore

        heif_file = open_heif(str(path))
        image_obj = heif_file.to_pillow()

    try:
        yield image_obj
    finally:
        if image_obj is not None:
            image_obj.close()


def get_file_date_from_name(filename: str) -> datetime | None:
    """Extract a capture timestamp from names like ``IMG_20240815_143052.jpg``."""

    match = _FILENAME_DATE_PATTERN.search(filename)
    if not match:
        return None

    try:
        dt = datetime.strptime(f"{match.group(1)}{match.group(2)}", "%Y%m%d%H%M%S")
    except ValueError:
        return None
    return dt.replace(tzinfo=timezone.utc)


def _default_library_timezone() -> timezone | ZoneInfo:
    """Return the timezone assumed for EXIF timestamps without an offset."""

    tz_name = settings.library_default_timezone
    if tz_name:
        try:
            return ZoneInfo(tz_name)
        except Exception:
            pass

    return timezone.utc


def _extract_offset_timezone(tag: str, exif_data: dict) -> timezone | None:
    """Return a timezone derived from EXIF offset tags if available.

    EXIF 2.31 introduces dedicated offset tags that accompany the primary
    timestamp fields.  When those are present we respect their value instead
    of falling back to the library default timezone.
    """

    for offset_tag in _EXIF_OFFSET_TAGS.get(tag, ()):  # pragma: no branch
        if offset_tag not in exif_data:
            continue

        raw_value = exif_data[offset_tag]
        if isinstance(raw_value, bytes):
            offset_str = raw_value.decode("utf-8", errors="ignore")
        else:
            offset_str = str(raw_value)

        offset_str = offset_str.strip().strip("\x00")
        if not offset_str:
            continue

        if len(offset_str) == 6 and offset_str[3] == ":":
            normalized = offset_str[:3] + offset_str[4:]
        else:
            normalized = offset_str

        try:
            tz_info = datetime.strptime(normalized, "%z").tzinfo
        except ValueError:
            continue

        if tz_info is not None:
            return tz_info

    return None


def get_file_date_from_exif(exif_data: dict) -> datetime | None:
    """Extract the capture timestamp from decoded EXIF tags (UTC)."""

    if not exif_data:
        return None

    default_tz = _default_library_timezone()

    for tag in ("DateTimeOriginal", "CreateDate", "DateTime", "DateTimeDigitized"):
        if tag not in exif_data:
            continue

        raw_value = exif_data[tag]
        if isinstance(raw_value, bytes):
            date_str = raw_value.decode("utf-8", errors="ignore")
        else:
            date_str = str(raw_value)

        date_str = date_str.strip().strip("\x00")
        if not date_str:
            continue

        # EXIF format: "YYYY:MM:DD HH:MM:SS"
        try:
            dt = datetime.strptime(date_str, "%Y:%m:%d %H:%M:%S")
            tz_info = _extract_offset_timezone(tag, exif_data) or default_tz
            return dt.replace(tzinfo=tz_info).astimezone(timezone.utc)
        except ValueError:
            pass

        normalized = date_str.replace("Z", "+00:00")
        try:
            dt = datetime.fromisoformat(normalized)
        except ValueError:
            continue

        if dt.tzinfo is None:
            tz_info = _extract_offset_timezone(tag, exif_data) or default_tz
            dt = dt.replace(tzinfo=tz_info)
        return dt.astimezone(timezone.utc)

    return None
