"""lip CLI のテスト"""

import json

import pytest
from typer.testing import CliRunner

from cli import lip
from conftest import write_image
from domain.photo_library import AuthorizationStatus

runner = CliRunner()


@pytest.fixture
def cli_app(app, monkeypatch):
    monkeypatch.setattr(lip, "create_app", lambda: app)
    return app


def test_index_command_reports_counts(cli_app, originals_dir):
    write_image(originals_dir / "Trips" / "a.jpg")

    result = runner.invoke(lip.app, ["index", str(originals_dir)])

    assert result.exit_code == 0, result.output
    assert "added" in result.output


def test_index_command_rejects_missing_directory(cli_app, tmp_path):
    result = runner.invoke(lip.app, ["index", str(tmp_path / "absent")])

    assert result.exit_code == 1


def test_call_prints_json_result(cli_app, originals_dir):
    write_image(originals_dir / "IMG_20240101_080000.jpg")
    runner.invoke(lip.app, ["index"])

    result = runner.invoke(lip.app, ["call", "latest_images", "5"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload[0]["creationDate"] == "2024-01-01T08:00:00Z"


def test_call_reports_provider_errors(cli_app):
    result = runner.invoke(lip.app, ["call", "latest_images", '"five"'])

    assert result.exit_code == 1
    assert "MissingOrInvalidArg" in result.output


def test_call_rejects_invalid_json(cli_app):
    result = runner.invoke(lip.app, ["call", "latest_images", "{oops"])

    assert result.exit_code == 2


def test_call_image_bytes_writes_output(cli_app, originals_dir, tmp_path):
    write_image(originals_dir / "IMG_20240101_080000.jpg", (300, 200))
    runner.invoke(lip.app, ["index"])
    latest = json.loads(runner.invoke(lip.app, ["call", "latest_images", "1"]).output)
    output = tmp_path / "out.jpg"
    arguments = json.dumps({"id": latest[0]["id"], "pixelWidth": 150, "pixelHeight": 150})

    result = runner.invoke(
        lip.app,
        ["call", "image_bytes", arguments, "--init", "--output", str(output)],
        input="y\n",
    )

    assert result.exit_code == 0, result.output
    assert output.read_bytes()[:2] == b"\xff\xd8"


def test_auth_status_and_reset(cli_app):
    from infrastructure.photo_library.authorization import LibraryAuthorizationStore
    from webapp.extensions import db

    with cli_app.app_context():
        LibraryAuthorizationStore(db.session).set_status(AuthorizationStatus.DENIED)

    result = runner.invoke(lip.app, ["auth", "status"])
    assert "denied" in result.output

    result = runner.invoke(lip.app, ["auth", "reset"])
    assert result.exit_code == 0

    result = runner.invoke(lip.app, ["auth", "status"])
    assert "not_determined" in result.output


def test_albums_table(cli_app, originals_dir):
    write_image(originals_dir / "Trips" / "a.jpg")
    runner.invoke(lip.app, ["index"])

    result = runner.invoke(lip.app, ["albums", "--type", "1"])

    assert result.exit_code == 0, result.output
    assert "Trips" in result.output
