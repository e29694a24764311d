"""フォトインデックス・認可・画像レンダリングのインフラ実装."""

from .authorization import ConsentPrompt, LibraryAuthorizationStore, StaticConsentPrompt
from .image_manager import PillowImageManager, SourceUnavailableError
from .indexer import IndexReport, LibraryIndexer
from .repository import FetchOptions, FetchResult, SqlAlchemyPhotoLibrary

__all__ = [
    "ConsentPrompt",
    "FetchOptions",
    "FetchResult",
    "IndexReport",
    "LibraryAuthorizationStore",
    "LibraryIndexer",
    "PillowImageManager",
    "SourceUnavailableError",
    "SqlAlchemyPhotoLibrary",
    "StaticConsentPrompt",
]
