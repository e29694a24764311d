"""Centralised application settings abstraction.

This module exposes :class:`ApplicationSettings` which consolidates all
configuration lookups of the image provider.  The class treats the Flask
application config (when an app context is active) and the process
environment (or any mapping provided) as the backing store, returning typed
values and sensible defaults.

The global :data:`settings` instance should be used for production code, while
tests can instantiate their own :class:`ApplicationSettings` with a dedicated
mapping to validate behaviour in isolation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Optional, cast

from flask import current_app, has_app_context

if TYPE_CHECKING:  # pragma: no cover
    from flask import Flask


DEFAULT_ORIGINALS_DIRECTORY = "/tmp/lip_originals"
DEFAULT_JPEG_QUALITY = 70
DEFAULT_RENDER_WORKERS = 4
DEFAULT_REMOTE_TIMEOUT = 10.0


@dataclass(frozen=True)
class _EnvironmentFacade:
    """Thin wrapper that provides ``Mapping`` compatible access to env vars."""

    source: Mapping[str, str]

    @classmethod
    def from_environ(cls, env: Optional[Mapping[str, str]] = None) -> "_EnvironmentFacade":
        return cls(source=os.environ if env is None else env)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.source.get(key, default)


class ApplicationSettings:
    """Domain level representation of configuration values.

    The class favours explicit properties instead of generic ``get`` access so
    that the rest of the application operates on intent-revealing names.
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None) -> None:
        self._env = _EnvironmentFacade.from_environ(env)

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _get(self, key: str, default: Optional[str] = None):
        if has_app_context():
            app = cast("Flask", current_app)
            if key in app.config:
                return app.config.get(key)

        value = self._env.get(key)
        if value is not None:
            return value

        return default

    def get(self, key: str, default=None):
        """Return the configured value for *key* or *default* if missing."""

        value = self._get(key)
        return default if value is None else value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Return a boolean configuration value."""

        value = self._get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return bool(value)
        if isinstance(value, str):
            normalised = value.strip().lower()
            if normalised in {"1", "true", "yes", "on"}:
                return True
            if normalised in {"0", "false", "no", "off"}:
                return False
        return default

    def get_int(self, key: str, default: int = 0) -> int:
        """Return an integer configuration value."""

        value = self._get(key)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Return a float configuration value."""

        value = self._get(key)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _path_or_default(self, key: str, fallback: str) -> Path:
        value = self._get(key)
        if value is None:
            return Path(fallback)
        try:
            return Path(str(value))
        except (TypeError, ValueError):
            return Path(fallback)

    # ------------------------------------------------------------------
    # Generic flags
    # ------------------------------------------------------------------
    @property
    def testing(self) -> bool:
        return self.get_bool("TESTING")

    @property
    def database_uri(self) -> str:
        return str(self.get("DATABASE_URI", "sqlite://"))

    @property
    def db_logging_enabled(self) -> bool:
        return self.get_bool("LOCAL_IMAGE_PROVIDER_DB_LOGGING", not self.testing)

    # ------------------------------------------------------------------
    # Photo library
    # ------------------------------------------------------------------
    @property
    def originals_directory(self) -> Path:
        return self._path_or_default("MEDIA_ORIGINALS_DIRECTORY", DEFAULT_ORIGINALS_DIRECTORY)

    @property
    def library_default_timezone(self) -> Optional[str]:
        value = self._get("LIBRARY_DEFAULT_TIMEZONE")
        return str(value) if value else None

    # ------------------------------------------------------------------
    # Image provider
    # ------------------------------------------------------------------
    @property
    def jpeg_quality(self) -> int:
        quality = self.get_int("LOCAL_IMAGE_PROVIDER_JPEG_QUALITY", DEFAULT_JPEG_QUALITY)
        return min(max(quality, 1), 95)

    @property
    def render_workers(self) -> int:
        return max(1, self.get_int("LOCAL_IMAGE_PROVIDER_RENDER_WORKERS", DEFAULT_RENDER_WORKERS))

    @property
    def delivery_mode(self) -> str:
        value = self.get("LOCAL_IMAGE_PROVIDER_DELIVERY_MODE", "high_quality")
        return str(value).strip().lower()

    @property
    def consent_answer(self) -> bool:
        """Answer given by the non-interactive consent prompt."""

        value = str(self.get("LOCAL_IMAGE_PROVIDER_CONSENT", "deny")).strip().lower()
        return value in {"grant", "granted", "allow", "authorized", "1", "true", "yes"}

    @property
    def remote_fetch_timeout(self) -> float:
        return max(
            0.1,
            self.get_float("LOCAL_IMAGE_PROVIDER_REMOTE_TIMEOUT", DEFAULT_REMOTE_TIMEOUT),
        )


settings = ApplicationSettings()

__all__ = ["ApplicationSettings", "settings"]
