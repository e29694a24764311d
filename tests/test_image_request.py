"""ImageResultFuture (単発の結果通知) のテスト"""

import threading
from io import BytesIO

import pytest
from PIL import Image

from application.local_image_provider.image_request import ImageResultFuture, encode_jpeg
from domain.photo_library import ImageDelivery
from domain.photo_library.errors import ImgLoadFailed


def _pending():
    return ImageResultFuture("ASSET/L0/001", (200, 200), jpeg_quality=70)


def _decode(data):
    with Image.open(BytesIO(data)) as img:
        img.load()
        return img.format, img.size


def test_degraded_delivery_is_ignored():
    pending = _pending()

    pending.handle_delivery(
        ImageDelivery(request_id=1, image=Image.new("RGB", (5, 5)), degraded=True)
    )

    assert not pending.future.done()
    assert pending.settled is False


def test_final_delivery_resolves_with_jpeg_bytes():
    pending = _pending()

    pending.handle_delivery(
        ImageDelivery(request_id=1, image=Image.new("RGB", (5, 5)), degraded=True)
    )
    pending.handle_delivery(ImageDelivery(request_id=1, image=Image.new("RGB", (120, 80))))

    assert _decode(pending.future.result(timeout=1)) == ("JPEG", (120, 80))


def test_later_deliveries_do_not_change_the_result():
    pending = _pending()

    pending.handle_delivery(ImageDelivery(request_id=1, image=Image.new("RGB", (120, 80))))
    first = pending.future.result(timeout=1)
    pending.handle_delivery(ImageDelivery(request_id=1, image=Image.new("RGB", (10, 10))))
    pending.handle_delivery(ImageDelivery(request_id=1, error=OSError("late failure")))

    assert pending.future.result(timeout=1) == first


def test_error_delivery_rejects_with_img_load_failed():
    pending = _pending()

    pending.handle_delivery(ImageDelivery(request_id=1, error=OSError("disk gone")))

    with pytest.raises(ImgLoadFailed) as excinfo:
        pending.future.result(timeout=1)
    assert "ASSET/L0/001" in excinfo.value.message
    assert excinfo.value.details == "disk gone"


def test_delivery_without_image_rejects():
    pending = _pending()

    pending.handle_delivery(ImageDelivery(request_id=1))

    with pytest.raises(ImgLoadFailed):
        pending.future.result(timeout=1)


def test_encoding_failure_rejects_with_convert_message(monkeypatch):
    from application.local_image_provider import image_request

    def _broken(image, quality):
        raise OSError("encoder missing")

    monkeypatch.setattr(image_request, "encode_jpeg", _broken)
    pending = _pending()

    pending.handle_delivery(ImageDelivery(request_id=1, image=Image.new("RGB", (4, 4))))

    with pytest.raises(ImgLoadFailed, match="Could not convert image"):
        pending.future.result(timeout=1)


def test_concurrent_deliveries_settle_exactly_once():
    pending = _pending()
    barrier = threading.Barrier(8)

    def _deliver(index):
        barrier.wait()
        pending.handle_delivery(
            ImageDelivery(request_id=1, image=Image.new("RGB", (10 + index, 10)))
        )

    threads = [threading.Thread(target=_deliver, args=(i,)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    fmt, size = _decode(pending.future.result(timeout=1))
    assert fmt == "JPEG"
    assert 10 <= size[0] < 18


def test_encode_jpeg_flattens_alpha():
    data = encode_jpeg(Image.new("RGBA", (6, 6), (255, 0, 0, 0)), 70)

    with Image.open(BytesIO(data)) as img:
        assert img.mode == "RGB"
        assert img.getpixel((3, 3))[0] > 240


def test_unexpected_encoding_error_still_settles(monkeypatch):
    from application.local_image_provider import image_request

    def _broken(image, quality):
        raise RuntimeError("codec exploded")

    monkeypatch.setattr(image_request, "encode_jpeg", _broken)
    pending = _pending()

    pending.handle_delivery(ImageDelivery(request_id=1, image=Image.new("RGB", (4, 4))))

    assert pending.settled is True
    with pytest.raises(ImgLoadFailed) as excinfo:
        pending.future.result(timeout=1)
    assert excinfo.value.details == "codec exploded"
