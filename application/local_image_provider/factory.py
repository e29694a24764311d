"""設定値から LocalImageProviderPlugin を組み立てる."""

from __future__ import annotations

from typing import Optional

from core.db import db
from core.settings import settings
from domain.photo_library import DeliveryMode
from infrastructure.photo_library.authorization import (
    ConsentPrompt,
    LibraryAuthorizationStore,
    StaticConsentPrompt,
)
from infrastructure.photo_library.image_manager import PillowImageManager
from infrastructure.photo_library.repository import SqlAlchemyPhotoLibrary

from .dispatcher import LocalImageProviderPlugin


def create_local_image_provider(
    *,
    consent_prompt: Optional[ConsentPrompt] = None,
    image_manager: Optional[PillowImageManager] = None,
    db_session=None,
) -> LocalImageProviderPlugin:
    """アプリケーションコンテキスト内の設定からプラグインを生成する.

    同意プロンプトを省略した場合は ``LOCAL_IMAGE_PROVIDER_CONSENT`` に従う
    非対話プロンプトを使用する。
    """

    session = db_session if db_session is not None else db.session
    return LocalImageProviderPlugin(
        library=SqlAlchemyPhotoLibrary(session, settings.originals_directory),
        authorization=LibraryAuthorizationStore(session),
        consent_prompt=consent_prompt or StaticConsentPrompt(settings.consent_answer),
        image_manager=image_manager
        or PillowImageManager(
            max_workers=settings.render_workers,
            remote_timeout=settings.remote_fetch_timeout,
        ),
        jpeg_quality=settings.jpeg_quality,
        delivery_mode=DeliveryMode.from_value(settings.delivery_mode, DeliveryMode.HIGH_QUALITY),
    )


__all__ = ["create_local_image_provider"]
