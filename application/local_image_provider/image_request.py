"""画像要求の結果を 1 回だけ呼び出し元へ返すためのラッパー."""

from __future__ import annotations

import threading
from concurrent.futures import Future
from io import BytesIO
from typing import Optional, Tuple

from PIL import Image

from core.logging_config import StructuredLogger, structured_logger
from domain.photo_library import ImageDelivery
from domain.photo_library.errors import ImgLoadFailed, LocalImageProviderError


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    """Pillow 画像を JPEG バイト列へ変換する (アルファは白背景に合成)."""

    if image.mode in ("RGBA", "LA"):
        background = Image.new("RGB", image.size, (255, 255, 255))
        background.paste(image, mask=image.getchannel("A"))
        image = background
    elif image.mode != "RGB":
        image = image.convert("RGB")

    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


class ImageResultFuture:
    """画像マネージャからの配信を受け取り、最初の確定結果だけを返す.

    劣化プレビューは無視し、最初の非劣化配信またはエラーで Future を確定させる。
    以降の配信は破棄する。
    """

    def __init__(
        self,
        asset_id: str,
        target_size: Tuple[int, int],
        *,
        jpeg_quality: int,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._asset_id = asset_id
        self._target_size = target_size
        self._jpeg_quality = jpeg_quality
        self._future: "Future[bytes]" = Future()
        self._guard = threading.Lock()
        self._settled = False
        self._logger = (logger or structured_logger(__name__, component="image_request")).bind(
            asset_id=asset_id
        )

    @property
    def future(self) -> "Future[bytes]":
        return self._future

    @property
    def settled(self) -> bool:
        with self._guard:
            return self._settled

    def handle_delivery(self, delivery: ImageDelivery) -> None:
        if delivery.degraded:
            self._logger.debug("image_request.degraded_ignored", request_id=delivery.request_id)
            return
        if self.settled:
            self._logger.debug("image_request.late_delivery_ignored", request_id=delivery.request_id)
            return

        if delivery.error is not None or delivery.image is None:
            width, height = self._target_size
            self._reject(
                ImgLoadFailed(
                    f"Request image failed: {self._asset_id} - {width}x{height}",
                    details=str(delivery.error) if delivery.error is not None else None,
                )
            )
            return

        try:
            data = encode_jpeg(delivery.image, self._jpeg_quality)
        except Exception as exc:
            self._reject(
                ImgLoadFailed(f"Could not convert image: {self._asset_id}", details=str(exc))
            )
            return
        self._resolve(data)

    def _claim(self) -> bool:
        with self._guard:
            if self._settled:
                return False
            self._settled = True
            return True

    def _resolve(self, data: bytes) -> None:
        if not self._claim():
            return
        self._logger.info("image_request.completed", size=len(data))
        self._future.set_result(data)

    def _reject(self, error: LocalImageProviderError) -> None:
        if not self._claim():
            return
        self._logger.warning("image_request.failed", code=error.code.value, error=error.message)
        self._future.set_exception(error)


__all__ = ["ImageResultFuture", "encode_jpeg"]
