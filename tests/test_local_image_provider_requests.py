"""メソッド引数スキーマのテスト"""

import pytest

from application.local_image_provider.requests import (
    ImageBytesRequest,
    ImagesInAlbumRequest,
    parse_albums_request,
    parse_image_bytes_request,
    parse_images_in_album_request,
    parse_latest_images_request,
)
from domain.photo_library.errors import LocalImageProviderErrors, MissingOrInvalidArg


def test_scalar_requests_accept_integers():
    assert parse_albums_request(1).album_type == 1
    assert parse_latest_images_request(0).max_images == 0


@pytest.mark.parametrize("value", [None, "10", 2.5, True, [1], {"maxImages": 1}])
def test_scalar_requests_reject_non_integers(value):
    with pytest.raises(MissingOrInvalidArg) as excinfo:
        parse_latest_images_request(value)

    assert excinfo.value.code is LocalImageProviderErrors.MISSING_OR_INVALID_ARG
    assert excinfo.value.message == "Missing arg maxImages"


def test_albums_request_error_names_album_type():
    with pytest.raises(MissingOrInvalidArg, match="albumType"):
        parse_albums_request(None)


def test_images_in_album_request_is_parsed():
    request = parse_images_in_album_request({"albumId": "ALBUM/L0/040", "maxImages": 5})

    assert request == ImagesInAlbumRequest(album_id="ALBUM/L0/040", max_images=5)


def test_images_in_album_request_ignores_unknown_keys():
    request = parse_images_in_album_request(
        {"albumId": "A", "maxImages": 1, "extra": "ignored"}
    )

    assert request.album_id == "A"


@pytest.mark.parametrize(
    "arguments",
    [
        None,
        7,
        {"albumId": "A"},
        {"maxImages": 3},
        {"albumId": 12, "maxImages": 3},
        {"albumId": "A", "maxImages": "3"},
    ],
)
def test_images_in_album_request_rejects_bad_arguments(arguments):
    with pytest.raises(MissingOrInvalidArg) as excinfo:
        parse_images_in_album_request(arguments)

    assert excinfo.value.message == "Missing args requires albumId, maxImages"
    assert excinfo.value.details


def test_image_bytes_request_is_parsed():
    request = parse_image_bytes_request({"id": "X/L0/001", "pixelWidth": 200, "pixelHeight": 100})

    assert request == ImageBytesRequest(id="X/L0/001", pixel_width=200, pixel_height=100)
    assert request.target_size == (200, 100)


@pytest.mark.parametrize(
    "arguments",
    [
        {"pixelWidth": 200, "pixelHeight": 200},
        {"id": "X", "pixelHeight": 200},
        {"id": "X", "pixelWidth": 200},
        {"id": "X", "pixelWidth": 0, "pixelHeight": 200},
        {"id": "X", "pixelWidth": 200, "pixelHeight": -1},
        {"id": "X", "pixelWidth": False, "pixelHeight": 200},
        "X",
    ],
)
def test_image_bytes_request_rejects_bad_arguments(arguments):
    with pytest.raises(MissingOrInvalidArg) as excinfo:
        parse_image_bytes_request(arguments)

    assert excinfo.value.message == "Missing args requires id, pixelWidth, pixelHeight"
