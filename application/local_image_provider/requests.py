"""Marshmallow schemas validating method channel arguments."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate

from domain.photo_library.errors import MissingOrInvalidArg


class LocalImageProviderMethods(str, Enum):
    """Method names understood by the dispatcher."""

    HAS_PERMISSION = "has_permission"
    INITIALIZE = "initialize"
    ALBUMS = "albums"
    LATEST_IMAGES = "latest_images"
    IMAGES_IN_ALBUM = "images_in_album"
    IMAGE_BYTES = "image_bytes"


class StrictInteger(fields.Integer):
    """Integer field that only accepts real JSON integers.

    ``bool`` is a subclass of ``int`` in Python, so ``true`` would otherwise be
    read as ``1``.
    """

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("strict", True)
        super().__init__(**kwargs)

    def _deserialize(self, value: Any, attr, data, **kwargs):  # type: ignore[override]
        if isinstance(value, bool):
            raise self.make_error("invalid", input=value)
        return super()._deserialize(value, attr, data, **kwargs)


@dataclass(frozen=True)
class AlbumsRequest:
    album_type: int


@dataclass(frozen=True)
class LatestImagesRequest:
    max_images: int


@dataclass(frozen=True)
class ImagesInAlbumRequest:
    album_id: str
    max_images: int


@dataclass(frozen=True)
class ImageBytesRequest:
    id: str
    pixel_width: int
    pixel_height: int

    @property
    def target_size(self) -> tuple[int, int]:
        return (self.pixel_width, self.pixel_height)


class ImagesInAlbumSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    albumId = fields.String(required=True)
    maxImages = StrictInteger(required=True)

    @post_load
    def make_request(self, data, **kwargs):
        return ImagesInAlbumRequest(album_id=data["albumId"], max_images=data["maxImages"])


class ImageBytesSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.String(required=True)
    pixelWidth = StrictInteger(required=True, validate=validate.Range(min=1))
    pixelHeight = StrictInteger(required=True, validate=validate.Range(min=1))

    @post_load
    def make_request(self, data, **kwargs):
        return ImageBytesRequest(
            id=data["id"],
            pixel_width=data["pixelWidth"],
            pixel_height=data["pixelHeight"],
        )


_SCALAR_INTEGER = StrictInteger(required=True)


def _load_scalar_integer(arguments: Any, name: str) -> int:
    try:
        return _SCALAR_INTEGER.deserialize(arguments)
    except ValidationError as exc:
        raise MissingOrInvalidArg(f"Missing arg {name}", details=exc.messages) from exc


def _load_mapping(schema: Schema, arguments: Any, message: str):
    if not isinstance(arguments, dict):
        raise MissingOrInvalidArg(message, details={"_schema": ["Expected an object."]})
    try:
        return schema.load(arguments)
    except ValidationError as exc:
        raise MissingOrInvalidArg(message, details=exc.messages) from exc


def parse_albums_request(arguments: Any) -> AlbumsRequest:
    return AlbumsRequest(album_type=_load_scalar_integer(arguments, "albumType"))


def parse_latest_images_request(arguments: Any) -> LatestImagesRequest:
    return LatestImagesRequest(max_images=_load_scalar_integer(arguments, "maxImages"))


def parse_images_in_album_request(arguments: Any) -> ImagesInAlbumRequest:
    return _load_mapping(
        ImagesInAlbumSchema(),
        arguments,
        "Missing args requires albumId, maxImages",
    )


def parse_image_bytes_request(arguments: Any) -> ImageBytesRequest:
    return _load_mapping(
        ImageBytesSchema(),
        arguments,
        "Missing args requires id, pixelWidth, pixelHeight",
    )


__all__ = [
    "AlbumsRequest",
    "ImageBytesRequest",
    "ImageBytesSchema",
    "ImagesInAlbumRequest",
    "ImagesInAlbumSchema",
    "LatestImagesRequest",
    "LocalImageProviderMethods",
    "StrictInteger",
    "parse_albums_request",
    "parse_image_bytes_request",
    "parse_images_in_album_request",
    "parse_latest_images_request",
]
