import os

from dotenv import load_dotenv

from core.settings import (
    DEFAULT_JPEG_QUALITY,
    DEFAULT_ORIGINALS_DIRECTORY,
    DEFAULT_REMOTE_TIMEOUT,
    DEFAULT_RENDER_WORKERS,
)

load_dotenv()


class Config:
    """Flask application configuration populated from the environment."""

    SQLALCHEMY_TRACK_MODIFICATIONS = False
    db_uri = os.environ.get("DATABASE_URI", "sqlite://")
    SQLALCHEMY_DATABASE_URI = db_uri

    # Database stability
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 1800,
        "pool_pre_ping": True,
    }

    if not db_uri.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS.update({
            "pool_size": 10,
            "max_overflow": 20,
        })
        if db_uri.startswith("mysql"):
            SQLALCHEMY_ENGINE_OPTIONS["connect_args"] = {"connect_timeout": 10}

    # Photo library
    MEDIA_ORIGINALS_DIRECTORY = os.environ.get(
        "MEDIA_ORIGINALS_DIRECTORY", DEFAULT_ORIGINALS_DIRECTORY
    )
    LIBRARY_DEFAULT_TIMEZONE = os.environ.get("LIBRARY_DEFAULT_TIMEZONE")

    # Image provider
    LOCAL_IMAGE_PROVIDER_JPEG_QUALITY = int(
        os.environ.get("LOCAL_IMAGE_PROVIDER_JPEG_QUALITY", DEFAULT_JPEG_QUALITY)
    )
    LOCAL_IMAGE_PROVIDER_RENDER_WORKERS = int(
        os.environ.get("LOCAL_IMAGE_PROVIDER_RENDER_WORKERS", DEFAULT_RENDER_WORKERS)
    )
    LOCAL_IMAGE_PROVIDER_DELIVERY_MODE = os.environ.get(
        "LOCAL_IMAGE_PROVIDER_DELIVERY_MODE", "high_quality"
    )
    LOCAL_IMAGE_PROVIDER_CONSENT = os.environ.get("LOCAL_IMAGE_PROVIDER_CONSENT", "deny")
    LOCAL_IMAGE_PROVIDER_REMOTE_TIMEOUT = float(
        os.environ.get("LOCAL_IMAGE_PROVIDER_REMOTE_TIMEOUT", DEFAULT_REMOTE_TIMEOUT)
    )

    # OpenAPI
    API_TITLE = "local image provider API"
    API_VERSION = "1.0.0"
    OPENAPI_VERSION = "3.0.3"
    OPENAPI_URL_PREFIX = "/api"
    OPENAPI_JSON_PATH = "openapi.json"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LOCAL_IMAGE_PROVIDER_DB_LOGGING = False
