"""Flask CLI コマンド."""

from pathlib import Path

import click

from core.db import db
from core.settings import settings


def register_cli_commands(app):
    """CLI コマンドを登録"""

    @app.cli.command("index-library")
    @click.option(
        "--path",
        "path",
        type=click.Path(file_okay=False, path_type=Path),
        default=None,
        help="走査するディレクトリ (既定: MEDIA_ORIGINALS_DIRECTORY)",
    )
    def index_library(path):
        """オリジナル格納ディレクトリを走査してインデックスを更新"""
        from infrastructure.photo_library.indexer import LibraryIndexer

        target = path or settings.originals_directory
        report = LibraryIndexer(db.session, target).index()
        click.echo(
            f"scanned={report.scanned} added={report.added} updated={report.updated} "
            f"unchanged={report.unchanged} failed={len(report.failed)} albums={report.albums}"
        )
        for rel_path in report.failed:
            click.echo(f"failed: {rel_path}", err=True)

    @app.cli.command("reset-authorization")
    def reset_authorization():
        """ライブラリ認可状態を未決定に戻す"""
        from infrastructure.photo_library.authorization import LibraryAuthorizationStore

        LibraryAuthorizationStore(db.session).reset()
        click.echo("authorization reset to not_determined")
