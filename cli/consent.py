"""端末で利用者に確認する同意プロンプト."""

from __future__ import annotations

import typer

from domain.photo_library import AuthorizationStatus


class InteractiveConsentPrompt:
    """``typer.confirm`` でライブラリへのアクセス許可を尋ねる."""

    def __init__(self, message: str = "Allow access to the local photo library?") -> None:
        self._message = message

    def request_authorization(self) -> AuthorizationStatus:
        if typer.confirm(self._message, default=False):
            return AuthorizationStatus.AUTHORIZED
        return AuthorizationStatus.DENIED


__all__ = ["InteractiveConsentPrompt"]
