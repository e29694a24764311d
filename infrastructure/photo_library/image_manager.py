"""Asynchronous image rendering built on Pillow.

Rendering requests are executed on a bounded thread pool.  Each request loads
the original (from the originals directory, or from its remote copy when
network access is allowed), applies EXIF orientation and resizes it into the
requested target box.  Results are handed to the caller supplied
``result_handler`` on the worker thread, once per delivery:

* ``opportunistic`` delivery emits a degraded preview followed by the final
  image;
* ``high_quality`` and ``fast`` delivery emit exactly one result.

Failures are reported as a delivery carrying ``error`` instead of an image.
"""

from __future__ import annotations

import itertools
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from typing import Callable, Optional, Tuple

import requests
from PIL import Image, ImageOps

from core.logging_config import structured_logger
from core.utils import open_image_compat, register_heif_support
from domain.photo_library import (
    AssetSnapshot,
    DeliveryMode,
    ImageContentMode,
    ImageDelivery,
    ImageRequestOptions,
    ResizeMode,
)

register_heif_support()


ResultHandler = Callable[[ImageDelivery], None]

_logger = structured_logger(__name__, component="image_manager")

# Degraded previews are rendered at this fraction of the target box.
DEGRADED_PREVIEW_DIVISOR = 4


class SourceUnavailableError(FileNotFoundError):
    """Raised when neither the local original nor a usable remote copy exists."""


class PillowImageManager:
    """Render images for assets and deliver them asynchronously."""

    def __init__(
        self,
        *,
        max_workers: int = 4,
        remote_timeout: float = 10.0,
        http_session: Optional[requests.Session] = None,
    ) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="image-render",
        )
        self._remote_timeout = remote_timeout
        self._http = http_session or requests.Session()
        self._ids = itertools.count(1)
        self._ids_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def request_image(
        self,
        asset: AssetSnapshot,
        target_size: Tuple[int, int],
        content_mode: ImageContentMode,
        options: ImageRequestOptions,
        result_handler: ResultHandler,
    ) -> int:
        """Queue a render of *asset* and return the request identifier."""

        with self._ids_guard:
            request_id = next(self._ids)

        _logger.debug(
            "image_manager.request.queued",
            request_id=request_id,
            asset_id=asset.local_identifier,
            target_size=list(target_size),
            content_mode=content_mode.value,
            delivery_mode=options.delivery_mode.value,
        )
        self._executor.submit(
            self._render,
            request_id,
            asset,
            target_size,
            content_mode,
            options,
            result_handler,
        )
        return request_id

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------
    def _render(
        self,
        request_id: int,
        asset: AssetSnapshot,
        target_size: Tuple[int, int],
        content_mode: ImageContentMode,
        options: ImageRequestOptions,
        result_handler: ResultHandler,
    ) -> None:
        log = _logger.bind(request_id=request_id, asset_id=asset.local_identifier)

        try:
            source = self._load_source(asset, options)
        except Exception as exc:
            log.warning("image_manager.source.failed", error=str(exc))
            self._deliver(result_handler, ImageDelivery(request_id=request_id, error=exc), log)
            return

        try:
            if options.delivery_mode is DeliveryMode.OPPORTUNISTIC:
                preview_box = (
                    max(1, target_size[0] // DEGRADED_PREVIEW_DIVISOR),
                    max(1, target_size[1] // DEGRADED_PREVIEW_DIVISOR),
                )
                preview = self._fit(source, preview_box, content_mode, Image.Resampling.NEAREST)
                self._deliver(
                    result_handler,
                    ImageDelivery(request_id=request_id, image=preview, degraded=True),
                    log,
                )

            final = self._resize(source, target_size, content_mode, options.resize_mode)
        except Exception as exc:
            log.warning("image_manager.resize.failed", error=str(exc))
            self._deliver(result_handler, ImageDelivery(request_id=request_id, error=exc), log)
            return
        finally:
            source.close()

        log.debug("image_manager.request.rendered", size=list(final.size))
        self._deliver(result_handler, ImageDelivery(request_id=request_id, image=final), log)

    @staticmethod
    def _deliver(result_handler: ResultHandler, delivery: ImageDelivery, log) -> None:
        try:
            result_handler(delivery)
        except Exception as exc:
            log.error("image_manager.handler.failed", error=str(exc), degraded=delivery.degraded)

    def _load_source(self, asset: AssetSnapshot, options: ImageRequestOptions) -> Image.Image:
        path = asset.source_path
        if path is not None and path.exists():
            with open_image_compat(path) as opened:
                return self._normalise(opened)

        if asset.remote_url and options.network_access_allowed:
            response = self._http.get(asset.remote_url, timeout=self._remote_timeout)
            response.raise_for_status()
            with Image.open(BytesIO(response.content)) as opened:
                return self._normalise(opened)

        raise SourceUnavailableError(f"original not available for {asset.local_identifier}")

    @staticmethod
    def _normalise(opened: Image.Image) -> Image.Image:
        oriented = ImageOps.exif_transpose(opened)
        has_alpha = oriented.mode in ("RGBA", "LA") or (
            oriented.mode == "P" and "transparency" in oriented.info
        )
        return oriented.convert("RGBA" if has_alpha else "RGB")

    def _resize(
        self,
        source: Image.Image,
        target_size: Tuple[int, int],
        content_mode: ImageContentMode,
        resize_mode: ResizeMode,
    ) -> Image.Image:
        if resize_mode is ResizeMode.NONE:
            return source.copy()
        resample = Image.Resampling.LANCZOS if resize_mode is ResizeMode.EXACT else Image.Resampling.BICUBIC
        return self._fit(source, target_size, content_mode, resample)

    @staticmethod
    def _fit(
        source: Image.Image,
        target_size: Tuple[int, int],
        content_mode: ImageContentMode,
        resample: Image.Resampling,
    ) -> Image.Image:
        """Scale *source* into *target_size* preserving aspect ratio, never upscaling."""

        width, height = source.size
        target_w, target_h = target_size
        if content_mode is ImageContentMode.ASPECT_FILL:
            scale = max(target_w / width, target_h / height)
        else:
            scale = min(target_w / width, target_h / height)

        if scale >= 1.0:
            return source.copy()

        if content_mode is ImageContentMode.ASPECT_FILL:
            new_size = (math.ceil(width * scale), math.ceil(height * scale))
        else:
            new_size = (max(1, math.floor(width * scale)), max(1, math.floor(height * scale)))
        return source.resize(new_size, resample)


__all__ = ["PillowImageManager", "ResultHandler", "SourceUnavailableError"]
