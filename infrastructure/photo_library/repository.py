"""フォトインデックスのリポジトリ実装."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Generic, Iterable, Iterator, Optional, TypeVar

from sqlalchemy import Select, func, select

from core.models.photo_models import Asset, AssetCollection, collection_asset
from domain.photo_library import AssetSnapshot, MediaType

T = TypeVar("T")


@dataclass(frozen=True)
class FetchOptions:
    """アセット取得時の絞り込み・並び順・件数上限."""

    media_type: Optional[MediaType] = None
    newest_first: bool = False
    fetch_limit: Optional[int] = None

    @classmethod
    def newest_images(cls, limit: Optional[int] = None) -> "FetchOptions":
        return cls(media_type=MediaType.IMAGE, newest_first=True, fetch_limit=limit)


class FetchResult(Generic[T]):
    """遅延評価されるクエリ結果.

    ``count`` と ``first_object`` は件数上限を考慮した上で個別に問い合わせ、
    反復は ``yield_per`` でストリーミングする。
    """

    _YIELD_PER = 100

    def __init__(self, db_session, statement: Select) -> None:
        self._db = db_session
        self._statement = statement

    @property
    def count(self) -> int:
        counted = select(func.count()).select_from(self._statement.order_by(None).subquery())
        return int(self._db.scalar(counted) or 0)

    def first_object(self) -> Optional[T]:
        return self._db.scalars(self._statement.limit(1)).first()

    def __iter__(self) -> Iterator[T]:
        yield from self._db.scalars(
            self._statement.execution_options(yield_per=self._YIELD_PER)
        )


class SqlAlchemyPhotoLibrary:
    """Asset / AssetCollection に対する読み取り専用クエリ."""

    def __init__(self, db_session, originals_dir: Path) -> None:
        self._db = db_session
        self._originals_dir = Path(originals_dir)

    @property
    def originals_dir(self) -> Path:
        return self._originals_dir

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------
    def fetch_asset_collections(self, collection_type: int, subtype: int) -> FetchResult[AssetCollection]:
        stmt = (
            select(AssetCollection)
            .where(
                AssetCollection.collection_type == collection_type,
                AssetCollection.collection_subtype == subtype,
            )
            .order_by(AssetCollection.id.asc())
        )
        return FetchResult(self._db, stmt)

    def fetch_asset_collections_with_identifiers(
        self, identifiers: Iterable[str]
    ) -> FetchResult[AssetCollection]:
        stmt = (
            select(AssetCollection)
            .where(AssetCollection.local_identifier.in_(list(identifiers)))
            .order_by(AssetCollection.id.asc())
        )
        return FetchResult(self._db, stmt)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------
    def fetch_assets(self, options: Optional[FetchOptions] = None) -> FetchResult[Asset]:
        return FetchResult(self._db, self._apply_options(select(Asset), options))

    def fetch_assets_in(
        self, collection: AssetCollection, options: Optional[FetchOptions] = None
    ) -> FetchResult[Asset]:
        stmt = (
            select(Asset)
            .join(collection_asset, collection_asset.c.asset_id == Asset.id)
            .where(collection_asset.c.collection_id == collection.id)
        )
        return FetchResult(self._db, self._apply_options(stmt, options))

    def fetch_assets_with_identifiers(
        self, identifiers: Iterable[str], options: Optional[FetchOptions] = None
    ) -> FetchResult[Asset]:
        stmt = select(Asset).where(Asset.local_identifier.in_(list(identifiers)))
        return FetchResult(self._db, self._apply_options(stmt, options))

    def snapshot(self, asset: Asset) -> AssetSnapshot:
        """ORM から切り離したアセット情報を返す."""

        source_path = None
        if asset.local_rel_path:
            source_path = self._originals_dir / asset.local_rel_path
        return AssetSnapshot(
            local_identifier=asset.local_identifier,
            pixel_width=asset.pixel_width,
            pixel_height=asset.pixel_height,
            creation_date=asset.creation_date,
            source_path=source_path,
            remote_url=asset.remote_url,
        )

    @staticmethod
    def _apply_options(stmt: Select, options: Optional[FetchOptions]) -> Select:
        if options is None:
            return stmt.order_by(Asset.id.asc())
        if options.media_type is not None:
            stmt = stmt.where(Asset.media_type == options.media_type.value)
        if options.newest_first:
            stmt = stmt.order_by(Asset.creation_date.desc(), Asset.id.desc())
        else:
            stmt = stmt.order_by(Asset.id.asc())
        if options.fetch_limit is not None:
            stmt = stmt.limit(max(options.fetch_limit, 0))
        return stmt


__all__ = ["FetchOptions", "FetchResult", "SqlAlchemyPhotoLibrary"]
