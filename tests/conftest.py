import os
from pathlib import Path

import pytest
from PIL import Image

os.environ.setdefault("TESTING", "true")


def write_image(path: Path, size=(64, 48), color=(200, 40, 40), *, fmt=None, exif=None) -> Path:
    """Pillow で単色のテスト画像を書き出す."""

    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", size, color)
    params = {}
    if exif is not None:
        params["exif"] = exif
    img.save(path, format=fmt, **params)
    return path


@pytest.fixture
def originals_dir(tmp_path):
    directory = tmp_path / "originals"
    directory.mkdir()
    return directory


@pytest.fixture
def app(originals_dir):
    """テスト用の in-memory DB と一時オリジナルディレクトリを持つアプリ"""
    from webapp import create_app
    from webapp.config import TestConfig
    from webapp.extensions import db

    app = create_app(TestConfig)
    app.config.update(
        MEDIA_ORIGINALS_DIRECTORY=str(originals_dir),
        LOCAL_IMAGE_PROVIDER_CONSENT="grant",
        LOCAL_IMAGE_PROVIDER_RENDER_WORKERS=2,
    )

    yield app

    plugin = app.extensions.pop("local_image_provider", None)
    if plugin is not None:
        plugin.close()
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_context(app):
    with app.app_context():
        yield app


@pytest.fixture
def trips_library(app_context, originals_dir):
    """``Trips`` アルバム (3 枚) とルート直下の 1 枚をインデックスしたライブラリ.

    作成日時はファイル名から決まる: loose が最新、Trips 内は c > b > a。
    """
    from infrastructure.photo_library.indexer import LibraryIndexer
    from webapp.extensions import db

    write_image(originals_dir / "Trips" / "IMG_20240101_080000.jpg", (640, 480), (10, 10, 10))
    write_image(originals_dir / "Trips" / "IMG_20240102_080000.jpg", (480, 640), (20, 20, 20))
    write_image(originals_dir / "Trips" / "IMG_20240103_080000.png", (800, 600), (30, 30, 30))
    write_image(originals_dir / "IMG_20240201_120000.jpg", (100, 50), (40, 40, 40))

    report = LibraryIndexer(db.session, originals_dir).index()
    assert report.added == 4
    return originals_dir


def asset_id_for(filename: str) -> str:
    from core.models.photo_models import Asset

    asset = Asset.query.filter_by(filename=filename).one()
    return asset.local_identifier


@pytest.fixture
def asset_id():
    return asset_id_for
