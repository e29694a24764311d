"""PillowImageManager のテスト"""

import threading
from datetime import datetime, timezone
from io import BytesIO

import pytest
import requests
from PIL import Image

from conftest import write_image
from domain.photo_library import (
    AssetSnapshot,
    DeliveryMode,
    ImageContentMode,
    ImageRequestOptions,
    ResizeMode,
)
from infrastructure.photo_library.image_manager import PillowImageManager, SourceUnavailableError


class _Collector:
    def __init__(self, expected):
        self.deliveries = []
        self._expected = expected
        self._done = threading.Event()

    def __call__(self, delivery):
        self.deliveries.append(delivery)
        if len(self.deliveries) >= self._expected:
            self._done.set()

    def wait(self):
        assert self._done.wait(timeout=10)
        return self.deliveries


class _FakeResponse:
    def __init__(self, content, status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


class _FakeHttpSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        return self.response


def _snapshot(path=None, remote_url=None, size=(400, 200)):
    return AssetSnapshot(
        local_identifier="ASSET/L0/001",
        pixel_width=size[0],
        pixel_height=size[1],
        creation_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        source_path=path,
        remote_url=remote_url,
    )


@pytest.fixture
def manager():
    manager = PillowImageManager(max_workers=2)
    yield manager
    manager.shutdown()


def test_high_quality_delivers_single_fitted_image(tmp_path, manager):
    source = write_image(tmp_path / "wide.jpg", (400, 200))
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(source),
        (100, 100),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(delivery_mode=DeliveryMode.HIGH_QUALITY),
        collector,
    )

    [delivery] = collector.wait()
    manager.shutdown()
    assert delivery.degraded is False
    assert delivery.error is None
    assert delivery.image.size == (100, 50)
    assert len(collector.deliveries) == 1


def test_opportunistic_delivers_degraded_preview_first(tmp_path, manager):
    source = write_image(tmp_path / "wide.jpg", (400, 200))
    collector = _Collector(expected=2)

    request_id = manager.request_image(
        _snapshot(source),
        (200, 200),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(delivery_mode=DeliveryMode.OPPORTUNISTIC),
        collector,
    )

    preview, final = collector.wait()
    assert preview.degraded is True
    assert preview.image.size == (50, 25)
    assert final.degraded is False
    assert final.image.size == (200, 100)
    assert preview.request_id == final.request_id == request_id


def test_aspect_fill_covers_target(tmp_path, manager):
    source = write_image(tmp_path / "wide.jpg", (400, 200))
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(source),
        (100, 100),
        ImageContentMode.ASPECT_FILL,
        ImageRequestOptions(delivery_mode=DeliveryMode.FAST, resize_mode=ResizeMode.EXACT),
        collector,
    )

    [delivery] = collector.wait()
    assert delivery.image.size == (200, 100)


def test_small_images_are_never_upscaled(tmp_path, manager):
    source = write_image(tmp_path / "tiny.png", (10, 8))
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(source, size=(10, 8)),
        (500, 500),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(delivery_mode=DeliveryMode.HIGH_QUALITY),
        collector,
    )

    [delivery] = collector.wait()
    assert delivery.image.size == (10, 8)


def test_missing_source_delivers_error(tmp_path, manager):
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(tmp_path / "gone.jpg"),
        (100, 100),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(delivery_mode=DeliveryMode.OPPORTUNISTIC),
        collector,
    )

    [delivery] = collector.wait()
    assert delivery.image is None
    assert isinstance(delivery.error, SourceUnavailableError)


def test_remote_original_is_downloaded_when_network_allowed(tmp_path):
    buffer = BytesIO()
    Image.new("RGB", (300, 300), (0, 128, 0)).save(buffer, format="JPEG")
    http = _FakeHttpSession(_FakeResponse(buffer.getvalue()))
    manager = PillowImageManager(max_workers=1, remote_timeout=3.0, http_session=http)
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(tmp_path / "missing.jpg", remote_url="https://photos.example.com/a.jpg"),
        (30, 30),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(network_access_allowed=True, delivery_mode=DeliveryMode.HIGH_QUALITY),
        collector,
    )

    [delivery] = collector.wait()
    manager.shutdown()
    assert delivery.image.size == (30, 30)
    assert http.calls == [("https://photos.example.com/a.jpg", 3.0)]


def test_remote_original_is_not_fetched_without_network_access(tmp_path):
    http = _FakeHttpSession(_FakeResponse(b""))
    manager = PillowImageManager(max_workers=1, http_session=http)
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(remote_url="https://photos.example.com/a.jpg"),
        (30, 30),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(network_access_allowed=False),
        collector,
    )

    [delivery] = collector.wait()
    manager.shutdown()
    assert isinstance(delivery.error, SourceUnavailableError)
    assert http.calls == []


def test_remote_http_error_is_delivered(tmp_path):
    http = _FakeHttpSession(_FakeResponse(b"", status_code=503))
    manager = PillowImageManager(max_workers=1, http_session=http)
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(remote_url="https://photos.example.com/a.jpg"),
        (30, 30),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(network_access_allowed=True),
        collector,
    )

    [delivery] = collector.wait()
    manager.shutdown()
    assert isinstance(delivery.error, requests.HTTPError)


def test_decompression_bomb_is_delivered_as_error(tmp_path, manager, monkeypatch):
    source = write_image(tmp_path / "wide.jpg", (400, 200))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 10)
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(source),
        (100, 100),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(delivery_mode=DeliveryMode.HIGH_QUALITY),
        collector,
    )

    [delivery] = collector.wait()
    assert delivery.image is None
    assert isinstance(delivery.error, Image.DecompressionBombError)


def test_unexpected_resize_error_is_delivered(tmp_path, manager, monkeypatch):
    source = write_image(tmp_path / "wide.jpg", (400, 200))

    def _explode(*args, **kwargs):
        raise RuntimeError("resampler crashed")

    monkeypatch.setattr(manager, "_resize", _explode)
    collector = _Collector(expected=1)

    manager.request_image(
        _snapshot(source),
        (100, 100),
        ImageContentMode.ASPECT_FIT,
        ImageRequestOptions(delivery_mode=DeliveryMode.HIGH_QUALITY),
        collector,
    )

    [delivery] = collector.wait()
    assert delivery.image is None
    assert str(delivery.error) == "resampler crashed"
