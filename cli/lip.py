import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from application.local_image_provider import create_local_image_provider
from core.db import db
from core.settings import settings
from domain.photo_library import AssetCollectionType
from domain.photo_library.errors import LocalImageProviderError
from infrastructure.photo_library.authorization import LibraryAuthorizationStore
from infrastructure.photo_library.indexer import LibraryIndexer
from webapp import create_app

from .consent import InteractiveConsentPrompt


console = Console()
app = typer.Typer(
    name="lip",
    help="Local image provider CLI (lip): index originals and call provider methods",
    no_args_is_help=True,
    add_completion=False,
)

# ---------------------------------------------------------------------------
# sub-app: auth
auth_app = typer.Typer(name="auth", help="Inspect and reset library authorization")
app.add_typer(auth_app, name="auth")


def _flask_app(originals: Optional[Path] = None):
    flask_app = create_app()
    if originals is not None:
        flask_app.config["MEDIA_ORIGINALS_DIRECTORY"] = str(originals)
    return flask_app


@app.command(help="Scan an originals directory and update the photo index")
def index(
    directory: Optional[Path] = typer.Argument(
        None,
        help="Directory to scan (default: MEDIA_ORIGINALS_DIRECTORY)",
        file_okay=False,
    ),
) -> None:
    flask_app = _flask_app(directory)
    with flask_app.app_context():
        target = settings.originals_directory
        if not target.is_dir():
            console.print(f"[red]Directory not found[/]: {target}")
            raise typer.Exit(1)
        report = LibraryIndexer(db.session, target).index()

    table = Table(title=f"Index of {target}")
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in report.as_dict().items():
        table.add_row(key, str(len(value)) if isinstance(value, list) else str(value))
    console.print(table)
    for rel_path in report.failed:
        console.print(f"[yellow]WARN[/] could not index {rel_path}")


@auth_app.command("status", help="Show the persisted authorization status")
def auth_status() -> None:
    with _flask_app().app_context():
        status = LibraryAuthorizationStore(db.session).status()
    console.print(f"authorization: [bold]{status.value}[/]")


@auth_app.command("reset", help="Forget the authorization answer so the next initialize prompts again")
def auth_reset() -> None:
    with _flask_app().app_context():
        LibraryAuthorizationStore(db.session).reset()
    console.print("[green]OK[/] authorization reset")


@app.command(help="Invoke a provider method and print its result")
def call(
    method: str = typer.Argument(..., help="Method name, e.g. latest_images"),
    args_json: Optional[str] = typer.Argument(None, help="JSON encoded arguments"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="File receiving image_bytes output"
    ),
    init: bool = typer.Option(
        False, "--init", help="Call initialize first (required for image_bytes)"
    ),
) -> None:
    try:
        arguments = json.loads(args_json) if args_json is not None else None
    except json.JSONDecodeError as exc:
        console.print(f"[red]Invalid JSON arguments[/]: {exc}")
        raise typer.Exit(2)

    with _flask_app().app_context():
        plugin = create_local_image_provider(consent_prompt=InteractiveConsentPrompt())
        try:
            if init and not plugin.invoke("initialize"):
                console.print("[red]Photo library access was denied[/]")
                raise typer.Exit(1)
            result = plugin.invoke(method, arguments)
        except LocalImageProviderError as exc:
            console.print(f"[red]{exc.code.value}[/]: {exc.message}")
            if exc.details is not None:
                console.print_json(data=exc.details)
            raise typer.Exit(1)

    if isinstance(result, (bytes, bytearray)):
        if output is None:
            console.print(f"[yellow]{len(result)} bytes of JPEG data[/]; use --output to save them")
            return
        output.write_bytes(result)
        console.print(f"[green]OK[/] wrote {len(result)} bytes to {output}")
        return
    console.print_json(data=result)


@app.command(help="List albums with their cover image and image count")
def albums(
    album_type: int = typer.Option(
        int(AssetCollectionType.ALBUM), "--type", help="Collection type (1=album, 2=smart album)"
    ),
) -> None:
    with _flask_app().app_context():
        plugin = create_local_image_provider(consent_prompt=InteractiveConsentPrompt())
        try:
            summaries = plugin.invoke("albums", album_type)
        except LocalImageProviderError as exc:
            console.print(f"[red]{exc.code.value}[/]: {exc.message}")
            raise typer.Exit(1)

    table = Table(title="Albums")
    table.add_column("ID", style="bold")
    table.add_column("Title")
    table.add_column("Images", justify="right")
    table.add_column("Cover created")
    for summary in summaries:
        table.add_row(
            summary["id"],
            summary["title"],
            str(summary["imageCount"]),
            summary["coverImg"]["creationDate"],
        )
    console.print(table)


if __name__ == "__main__":  # pragma: no cover
    app()
