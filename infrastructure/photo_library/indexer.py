"""オリジナル格納ディレクトリを走査してフォトインデックスを構築する."""
from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from PIL import Image, UnidentifiedImageError

from core.logging_config import StructuredLogger, structured_logger
from core.models.photo_models import Asset, AssetCollection
from domain.photo_library import AssetCollectionSubtype, AssetCollectionType, MediaType

from .metadata import (
    MIME_TYPE_BY_EXTENSION,
    SUPPORTED_IMAGE_EXTENSIONS,
    calculate_file_hash,
    read_image_metadata,
    resolve_creation_date,
)

_ASSET_ID_SUFFIX = "/L0/001"
_COLLECTION_ID_SUFFIX = "/L0/040"
_ID_NAMESPACE = uuid.UUID("6f1f3a52-52a7-4b8e-9d0c-5d1c1e6b7a10")


def asset_identifier_for_hash(file_hash: str) -> str:
    """ファイル内容から安定したアセット識別子を生成"""

    return f"{str(uuid.uuid5(_ID_NAMESPACE, file_hash)).upper()}{_ASSET_ID_SUFFIX}"


def collection_identifier_for_path(rel_dir: str) -> str:
    """ディレクトリの相対パスから安定したアルバム識別子を生成"""

    return f"{str(uuid.uuid5(_ID_NAMESPACE, 'album:' + rel_dir)).upper()}{_COLLECTION_ID_SUFFIX}"


@dataclass
class IndexReport:
    """インデックス作成の結果集計."""

    scanned: int = 0
    added: int = 0
    updated: int = 0
    unchanged: int = 0
    failed: List[str] = field(default_factory=list)
    albums: int = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "scanned": self.scanned,
            "added": self.added,
            "updated": self.updated,
            "unchanged": self.unchanged,
            "failed": list(self.failed),
            "albums": self.albums,
        }


class LibraryIndexer:
    """画像ファイルを Asset に、サブディレクトリを通常アルバムに登録する."""

    def __init__(
        self,
        db_session,
        originals_dir: Path,
        *,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self._db = db_session
        self._originals_dir = Path(originals_dir)
        self._logger = logger or structured_logger(__name__, component="indexer")

    def index(self) -> IndexReport:
        report = IndexReport()
        log = self._logger.bind(originals_dir=self._originals_dir.as_posix())
        log.info("library_index.start")

        if not self._originals_dir.is_dir():
            log.warning("library_index.missing_directory")
            return report

        collections: Dict[str, AssetCollection] = {}

        for root, dirnames, filenames in os.walk(self._originals_dir):
            dirnames.sort()
            for filename in sorted(filenames):
                file_path = Path(root) / filename
                extension = file_path.suffix.lower()
                if extension not in SUPPORTED_IMAGE_EXTENSIONS:
                    log.debug("library_index.unsupported", path=file_path.as_posix())
                    continue

                report.scanned += 1
                rel_path = file_path.relative_to(self._originals_dir).as_posix()
                try:
                    asset = self._index_file(file_path, rel_path, extension, report)
                except (
                    OSError,
                    UnidentifiedImageError,
                    ValueError,
                    Image.DecompressionBombError,
                ) as exc:
                    report.failed.append(rel_path)
                    log.warning("library_index.file_failed", rel_path=rel_path, error=str(exc))
                    continue

                rel_dir = Path(rel_path).parent.as_posix()
                if rel_dir in ("", "."):
                    continue
                collection = collections.get(rel_dir)
                if collection is None:
                    collection = self._collection_for(rel_dir)
                    collections[rel_dir] = collection
                if asset not in collection.assets:
                    collection.assets.append(asset)

        report.albums = len(collections)
        self._db.commit()
        log.info("library_index.completed", **report.as_dict())
        return report

    def _index_file(self, file_path: Path, rel_path: str, extension: str, report: IndexReport) -> Asset:
        file_hash = calculate_file_hash(file_path)
        identifier = asset_identifier_for_hash(file_hash)

        asset = self._db.query(Asset).filter_by(local_identifier=identifier).one_or_none()
        if asset is not None:
            if asset.local_rel_path and (self._originals_dir / asset.local_rel_path).exists():
                report.unchanged += 1
            else:
                asset.local_rel_path = rel_path
                asset.filename = file_path.name
                report.updated += 1
            return asset

        metadata = read_image_metadata(file_path)
        asset = Asset(
            local_identifier=identifier,
            media_type=MediaType.IMAGE.value,
            local_rel_path=rel_path,
            filename=file_path.name,
            hash_sha256=file_hash,
            bytes=file_path.stat().st_size,
            mime_type=MIME_TYPE_BY_EXTENSION.get(extension),
            pixel_width=metadata.pixel_width,
            pixel_height=metadata.pixel_height,
            creation_date=resolve_creation_date(file_path, metadata),
        )
        self._db.add(asset)
        self._db.flush()
        report.added += 1
        return asset

    def _collection_for(self, rel_dir: str) -> AssetCollection:
        identifier = collection_identifier_for_path(rel_dir)
        collection = (
            self._db.query(AssetCollection).filter_by(local_identifier=identifier).one_or_none()
        )
        if collection is None:
            collection = AssetCollection(
                local_identifier=identifier,
                localized_title=Path(rel_dir).name,
                collection_type=int(AssetCollectionType.ALBUM),
                collection_subtype=int(AssetCollectionSubtype.ALBUM_REGULAR),
                source_rel_path=rel_dir,
            )
            self._db.add(collection)
            self._db.flush()
        return collection


__all__ = [
    "IndexReport",
    "LibraryIndexer",
    "asset_identifier_for_hash",
    "collection_identifier_for_path",
]
