"""ApplicationSettings のユニットテスト"""

from pathlib import Path

from core.settings import ApplicationSettings


def test_defaults_are_applied_when_env_missing():
    settings = ApplicationSettings(env={})

    assert settings.database_uri == "sqlite://"
    assert settings.originals_directory == Path("/tmp/lip_originals")
    assert settings.jpeg_quality == 70
    assert settings.render_workers == 4
    assert settings.delivery_mode == "high_quality"
    assert settings.consent_answer is False
    assert settings.remote_fetch_timeout == 10.0
    assert settings.library_default_timezone is None
    assert settings.db_logging_enabled is True


def test_environment_overrides_are_reflected():
    env = {
        "DATABASE_URI": "sqlite:///lip.db",
        "MEDIA_ORIGINALS_DIRECTORY": "/data/originals",
        "LOCAL_IMAGE_PROVIDER_JPEG_QUALITY": "85",
        "LOCAL_IMAGE_PROVIDER_RENDER_WORKERS": "8",
        "LOCAL_IMAGE_PROVIDER_DELIVERY_MODE": " Opportunistic ",
        "LOCAL_IMAGE_PROVIDER_CONSENT": "grant",
        "LOCAL_IMAGE_PROVIDER_REMOTE_TIMEOUT": "2.5",
        "LIBRARY_DEFAULT_TIMEZONE": "Asia/Tokyo",
        "TESTING": "true",
    }

    settings = ApplicationSettings(env=env)

    assert settings.database_uri == "sqlite:///lip.db"
    assert settings.originals_directory == Path("/data/originals")
    assert settings.jpeg_quality == 85
    assert settings.render_workers == 8
    assert settings.delivery_mode == "opportunistic"
    assert settings.consent_answer is True
    assert settings.remote_fetch_timeout == 2.5
    assert settings.library_default_timezone == "Asia/Tokyo"
    assert settings.db_logging_enabled is False


def test_invalid_numbers_fall_back_and_are_clamped():
    settings = ApplicationSettings(
        env={
            "LOCAL_IMAGE_PROVIDER_JPEG_QUALITY": "500",
            "LOCAL_IMAGE_PROVIDER_RENDER_WORKERS": "zero",
            "LOCAL_IMAGE_PROVIDER_REMOTE_TIMEOUT": "-3",
        }
    )

    assert settings.jpeg_quality == 95
    assert settings.render_workers == 4
    assert settings.remote_fetch_timeout == 0.1


def test_only_documented_keys_are_read():
    settings = ApplicationSettings(
        env={"LIP_ORIGINALS_DIR": "/elsewhere", "LIP_JPEG_QUALITY": "60", "LIP_CONSENT": "grant"}
    )

    assert settings.originals_directory == Path("/tmp/lip_originals")
    assert settings.jpeg_quality == 70
    assert settings.consent_answer is False


def test_app_config_takes_precedence(app):
    settings = ApplicationSettings(env={"LOCAL_IMAGE_PROVIDER_JPEG_QUALITY": "40"})
    app.config["LOCAL_IMAGE_PROVIDER_JPEG_QUALITY"] = 90

    with app.app_context():
        assert settings.jpeg_quality == 90
        assert settings.testing is True
        assert settings.db_logging_enabled is False

    assert settings.jpeg_quality == 40
