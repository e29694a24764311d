"""Provider session: the handle through which image bytes are produced."""

from __future__ import annotations

from concurrent.futures import Future

from core.logging_config import structured_logger
from domain.photo_library import (
    DeliveryMode,
    ImageContentMode,
    ImageRequestOptions,
    ResizeMode,
)
from domain.photo_library.errors import ImgNotFound
from infrastructure.photo_library.image_manager import PillowImageManager
from infrastructure.photo_library.repository import FetchOptions, SqlAlchemyPhotoLibrary

from .image_request import ImageResultFuture
from .requests import ImageBytesRequest

_logger = structured_logger(__name__, component="session")


class ProviderSession:
    """Created by a successful ``initialize``; read-only afterwards."""

    def __init__(
        self,
        library: SqlAlchemyPhotoLibrary,
        image_manager: PillowImageManager,
        *,
        jpeg_quality: int,
        delivery_mode: DeliveryMode = DeliveryMode.HIGH_QUALITY,
    ) -> None:
        self._library = library
        self._image_manager = image_manager
        self._jpeg_quality = jpeg_quality
        self._options = ImageRequestOptions(
            network_access_allowed=True,
            delivery_mode=delivery_mode,
            resize_mode=ResizeMode.FAST,
        )

    @property
    def request_options(self) -> ImageRequestOptions:
        return self._options

    def image_bytes(self, request: ImageBytesRequest) -> "Future[bytes]":
        """Render the asset into the requested box and return a future of JPEG bytes.

        Raises :class:`ImgNotFound` synchronously when the identifier does not
        resolve to exactly one image asset.
        """

        assets = self._library.fetch_assets_with_identifiers(
            [request.id], FetchOptions.newest_images()
        )
        if assets.count != 1:
            _logger.info("session.image_bytes.not_found", asset_id=request.id)
            raise ImgNotFound(f"Image not found: {request.id}")

        asset = assets.first_object()
        snapshot = self._library.snapshot(asset)

        pending = ImageResultFuture(
            request.id,
            request.target_size,
            jpeg_quality=self._jpeg_quality,
        )
        request_id = self._image_manager.request_image(
            snapshot,
            request.target_size,
            ImageContentMode.ASPECT_FIT,
            self._options,
            pending.handle_delivery,
        )
        _logger.debug(
            "session.image_bytes.requested",
            asset_id=request.id,
            request_id=request_id,
            target_size=list(request.target_size),
        )
        return pending.future


__all__ = ["ProviderSession"]
