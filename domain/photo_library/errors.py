"""Error taxonomy returned across the method channel."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class LocalImageProviderErrors(str, Enum):
    """Stable error codes surfaced to callers."""

    IMG_LOAD_FAILED = "ImgLoadFailed"
    IMG_NOT_FOUND = "ImgNotFound"
    MISSING_OR_INVALID_ARG = "MissingOrInvalidArg"
    UNIMPLEMENTED = "Unimplemented"


class LocalImageProviderError(Exception):
    """Terminal failure of a single method call."""

    code: LocalImageProviderErrors = LocalImageProviderErrors.IMG_LOAD_FAILED

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ImgLoadFailed(LocalImageProviderError):
    """Rendering failed or the rendered image could not be encoded."""

    code = LocalImageProviderErrors.IMG_LOAD_FAILED


class ImgNotFound(LocalImageProviderError):
    """The identifier did not resolve to exactly one asset."""

    code = LocalImageProviderErrors.IMG_NOT_FOUND


class MissingOrInvalidArg(LocalImageProviderError):
    """A call argument was absent or had the wrong type."""

    code = LocalImageProviderErrors.MISSING_OR_INVALID_ARG


class Unimplemented(LocalImageProviderError):
    """The method name is not known to the dispatcher."""

    code = LocalImageProviderErrors.UNIMPLEMENTED


__all__ = [
    "ImgLoadFailed",
    "ImgNotFound",
    "LocalImageProviderError",
    "LocalImageProviderErrors",
    "MissingOrInvalidArg",
    "Unimplemented",
]
