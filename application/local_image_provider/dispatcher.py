"""Method channel dispatcher for the local image provider.

Every call is answered through a :class:`concurrent.futures.Future` that is
settled exactly once, either with the method result or with a
:class:`~domain.photo_library.errors.LocalImageProviderError`.  Callers wait on
the future from their own thread, so results always reach the context that
issued the call.
"""

from __future__ import annotations

import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from core.logging_config import log_error, structured_logger
from domain.photo_library import ALBUM_LISTING_SUBTYPES, AuthorizationStatus, DeliveryMode
from domain.photo_library.errors import (
    ImgLoadFailed,
    LocalImageProviderError,
    Unimplemented,
)
from infrastructure.photo_library.authorization import ConsentPrompt, LibraryAuthorizationStore
from infrastructure.photo_library.image_manager import PillowImageManager
from infrastructure.photo_library.repository import FetchOptions, SqlAlchemyPhotoLibrary

from .requests import (
    LocalImageProviderMethods,
    parse_albums_request,
    parse_image_bytes_request,
    parse_images_in_album_request,
    parse_latest_images_request,
)
from .session import ProviderSession
from .summaries import album_summary, image_summary

CHANNEL_NAME = "plugin.csdcorp.com/local_image_provider"

_logger = structured_logger(__name__, component="dispatcher")


@dataclass(frozen=True)
class MethodCall:
    """A single inbound call: method name plus its JSON-compatible arguments."""

    method: str
    arguments: Any = None


class LocalImageProviderPlugin:
    """Route method calls to the photo library operations."""

    def __init__(
        self,
        *,
        library: SqlAlchemyPhotoLibrary,
        authorization: LibraryAuthorizationStore,
        consent_prompt: ConsentPrompt,
        image_manager: PillowImageManager,
        jpeg_quality: int = 70,
        delivery_mode: DeliveryMode = DeliveryMode.HIGH_QUALITY,
    ) -> None:
        self._library = library
        self._authorization = authorization
        self._consent_prompt = consent_prompt
        self._image_manager = image_manager
        self._jpeg_quality = jpeg_quality
        self._delivery_mode = delivery_mode
        self._session: Optional[ProviderSession] = None
        self._session_guard = threading.Lock()
        self._handlers: Dict[str, Callable[[Any], Any]] = {
            LocalImageProviderMethods.HAS_PERMISSION.value: self._has_permission,
            LocalImageProviderMethods.INITIALIZE.value: self._initialize,
            LocalImageProviderMethods.ALBUMS.value: self._albums,
            LocalImageProviderMethods.LATEST_IMAGES.value: self._latest_images,
            LocalImageProviderMethods.IMAGES_IN_ALBUM.value: self._images_in_album,
            LocalImageProviderMethods.IMAGE_BYTES.value: self._image_bytes,
        }

    @property
    def session(self) -> Optional[ProviderSession]:
        with self._session_guard:
            return self._session

    @property
    def methods(self) -> List[str]:
        return sorted(self._handlers)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def handle(self, call: MethodCall) -> "Future[Any]":
        """Dispatch *call* and return a future settled exactly once."""

        log = _logger.bind(method=call.method)
        handler = self._handlers.get(call.method)
        if handler is None:
            log.warning("local_image_provider.call.unimplemented")
            return _failed(Unimplemented(f"Unrecognized method: {call.method}"))

        log.debug("local_image_provider.call.received")
        try:
            outcome = handler(call.arguments)
        except LocalImageProviderError as exc:
            log.info(
                "local_image_provider.call.rejected",
                code=exc.code.value,
                error=exc.message,
            )
            return _failed(exc)
        except Exception as exc:
            log_error(
                _logger.logger,
                f"local_image_provider call {call.method} failed: {exc}",
                event="local_image_provider.call.failed",
            )
            error = ImgLoadFailed(
                f"Unexpected failure in {call.method}",
                details=f"{type(exc).__name__}: {exc}",
            )
            error.__cause__ = exc
            return _failed(error)

        if isinstance(outcome, Future):
            return outcome
        future: "Future[Any]" = Future()
        future.set_result(outcome)
        return future

    def invoke(self, method: str, arguments: Any = None, timeout: Optional[float] = None) -> Any:
        """Dispatch and block until the call settles; errors are raised."""

        return self.handle(MethodCall(method, arguments)).result(timeout=timeout)

    def close(self) -> None:
        self._image_manager.shutdown()

    def initialize_session(self) -> Optional[ProviderSession]:
        """Obtain authorization (prompting once) and return the provider session.

        Returns ``None`` when the library access is denied.
        """

        status = self._authorization.status()
        if status is AuthorizationStatus.NOT_DETERMINED:
            status = self._consent_prompt.request_authorization()
            self._authorization.set_status(status)
            _logger.info("local_image_provider.authorization.prompted", status=status.value)

        if status is not AuthorizationStatus.AUTHORIZED:
            return None

        with self._session_guard:
            if self._session is None:
                self._session = ProviderSession(
                    self._library,
                    self._image_manager,
                    jpeg_quality=self._jpeg_quality,
                    delivery_mode=self._delivery_mode,
                )
                _logger.info("local_image_provider.session.created")
            return self._session

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def _has_permission(self, arguments: Any) -> bool:
        return self._authorization.status() is AuthorizationStatus.AUTHORIZED

    def _initialize(self, arguments: Any) -> bool:
        return self.initialize_session() is not None

    def _albums(self, arguments: Any) -> List[dict]:
        request = parse_albums_request(arguments)
        summaries: List[dict] = []
        for subtype in ALBUM_LISTING_SUBTYPES:
            collections = list(
                self._library.fetch_asset_collections(request.album_type, int(subtype))
            )
            for collection in collections:
                images = self._library.fetch_assets_in(collection, FetchOptions.newest_images())
                cover = images.first_object()
                if cover is None:
                    continue
                summaries.append(album_summary(collection, cover, images.count).to_wire())
        return summaries

    def _latest_images(self, arguments: Any) -> List[dict]:
        request = parse_latest_images_request(arguments)
        assets = self._library.fetch_assets(FetchOptions.newest_images(request.max_images))
        return [image_summary(asset).to_wire() for asset in assets]

    def _images_in_album(self, arguments: Any) -> List[dict]:
        request = parse_images_in_album_request(arguments)
        collection = self._library.fetch_asset_collections_with_identifiers(
            [request.album_id]
        ).first_object()
        if collection is None:
            return []
        assets = self._library.fetch_assets_in(
            collection, FetchOptions.newest_images(request.max_images)
        )
        return [image_summary(asset).to_wire() for asset in assets]

    def _image_bytes(self, arguments: Any) -> "Future[bytes]":
        request = parse_image_bytes_request(arguments)
        session = self.session
        if session is None:
            raise ImgLoadFailed("Image manager is not initialized", details="not_initialized")
        return session.image_bytes(request)


def _failed(error: BaseException) -> "Future[Any]":
    future: "Future[Any]" = Future()
    future.set_exception(error)
    return future


__all__ = ["CHANNEL_NAME", "LocalImageProviderPlugin", "MethodCall"]
