"""フォトライブラリの認可状態の永続化と同意プロンプト."""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.models.library_authorization import LibraryAuthorization
from domain.photo_library import AuthorizationStatus


@runtime_checkable
class ConsentPrompt(Protocol):
    """利用者にライブラリへのアクセス許可を求める."""

    def request_authorization(self) -> AuthorizationStatus:
        """利用者が応答するまでブロックし、結果の状態を返す."""
        ...


class StaticConsentPrompt:
    """設定値で応答する非対話の同意プロンプト."""

    def __init__(self, grant: bool) -> None:
        self._grant = grant

    def request_authorization(self) -> AuthorizationStatus:
        if self._grant:
            return AuthorizationStatus.AUTHORIZED
        return AuthorizationStatus.DENIED


class LibraryAuthorizationStore:
    """``library_authorization`` テーブルの単一行を読み書きする."""

    def __init__(self, db_session) -> None:
        self._db = db_session

    def _record(self) -> LibraryAuthorization | None:
        return self._db.get(LibraryAuthorization, LibraryAuthorization.SINGLETON_ID)

    def status(self) -> AuthorizationStatus:
        record = self._record()
        if record is None:
            return AuthorizationStatus.NOT_DETERMINED
        return record.authorization_status

    def set_status(self, status: AuthorizationStatus) -> None:
        record = self._record()
        if record is None:
            record = LibraryAuthorization(id=LibraryAuthorization.SINGLETON_ID)
            self._db.add(record)
        record.status = status.value
        self._db.commit()

    def reset(self) -> None:
        self.set_status(AuthorizationStatus.NOT_DETERMINED)


__all__ = ["ConsentPrompt", "LibraryAuthorizationStore", "StaticConsentPrompt"]
