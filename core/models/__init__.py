"""ORM models shared across applications."""

# モデルの循環インポートを避けるため、ここで一括インポート
from .photo_models import Asset, AssetCollection, collection_asset
from .library_authorization import LibraryAuthorization
from .log import Log

__all__ = [
    'Asset',
    'AssetCollection',
    'LibraryAuthorization',
    'Log',
    'collection_asset',
]
