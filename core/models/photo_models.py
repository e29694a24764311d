"""Photo index ORM models using SQLAlchemy 2.x typing syntax."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import db
from domain.photo_library import MediaType, UNTITLED_ALBUM_TITLE

BigInt = db.BigInteger().with_variant(db.Integer, "sqlite")

# --- 中間テーブル ---
collection_asset = db.Table(
    "collection_asset",
    db.Column("collection_id", BigInt, db.ForeignKey("asset_collection.id"), primary_key=True),
    db.Column("asset_id", BigInt, db.ForeignKey("asset.id"), primary_key=True),
    db.Column("sort_index", BigInt),
)


class Asset(db.Model):
    __tablename__ = "asset"

    id: Mapped[int] = mapped_column(BigInt, primary_key=True, autoincrement=True)
    local_identifier: Mapped[str] = mapped_column(db.String(128), nullable=False, unique=True, index=True)

    media_type: Mapped[str] = mapped_column(
        db.Enum(*(t.value for t in MediaType), name="asset_media_type"),
        nullable=False,
        default=MediaType.IMAGE.value,
        index=True,
    )

    # ファイル情報
    local_rel_path: Mapped[str | None] = mapped_column(db.String(255), nullable=True)
    remote_url: Mapped[str | None] = mapped_column(db.String(1024), nullable=True)
    filename: Mapped[str | None] = mapped_column(db.String(255), nullable=True)
    hash_sha256: Mapped[str | None] = mapped_column(db.CHAR(64), nullable=True)
    bytes: Mapped[int | None] = mapped_column(BigInt, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(db.String(255), nullable=True)

    # メディア情報（向き補正後のピクセル数）
    pixel_width: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    pixel_height: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)

    creation_date: Mapped[datetime] = mapped_column(db.DateTime, nullable=False, index=True)

    indexed_at: Mapped[datetime] = mapped_column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    collections: Mapped[list["AssetCollection"]] = relationship(
        "AssetCollection",
        secondary=collection_asset,
        back_populates="assets",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Asset {self.local_identifier}: {self.media_type} - {self.filename}>"

    @property
    def is_image(self) -> bool:
        return self.media_type == MediaType.IMAGE.value


class AssetCollection(db.Model):
    __tablename__ = "asset_collection"

    id: Mapped[int] = mapped_column(BigInt, primary_key=True, autoincrement=True)
    local_identifier: Mapped[str] = mapped_column(db.String(128), nullable=False, unique=True, index=True)
    localized_title: Mapped[str | None] = mapped_column(db.String(255), nullable=True)
    collection_type: Mapped[int] = mapped_column(db.Integer, nullable=False, index=True)
    collection_subtype: Mapped[int] = mapped_column(db.Integer, nullable=False, index=True)
    source_rel_path: Mapped[str | None] = mapped_column(db.String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    assets: Mapped[list[Asset]] = relationship(
        "Asset",
        secondary=collection_asset,
        back_populates="collections",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<AssetCollection {self.local_identifier}: {self.localized_title}>"

    @property
    def display_title(self) -> str:
        return self.localized_title or UNTITLED_ALBUM_TITLE


__all__ = ["Asset", "AssetCollection", "collection_asset"]
