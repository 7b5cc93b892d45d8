"""CLI for SolarSite.

Commands:
    init-db                  - Create database tables
    ingest <path>            - Ingest image files/directories into the media library
    list                     - List media assets, most recent first
    show <id>                - Show one asset (full UUID or prefix)
    delete <id>              - Delete an asset and its files
    verify                   - Check READY assets against files on disk
    serve                    - Run the HTTP API with uvicorn
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from solarsite.config import Settings
from solarsite.db import Database
from solarsite.media import (
    AssetMetadata,
    AssetNotFoundError,
    BlobStore,
    IngestionError,
    MediaAssetRepository,
    MediaIngestionService,
)
from solarsite.models import AssetStatus, MediaAsset
from solarsite.services.activity import ActivityLogger
from solarsite.utils.logconfig import configure_logging

app = typer.Typer(
    name="solarsite",
    help="SolarSite: media library for the solar reseller website",
    no_args_is_help=True,
)
console = Console()

# Image extensions picked up when ingesting a directory
SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".tiff", ".tif"}

_STATUS_STYLE = {
    AssetStatus.READY: "green",
    AssetStatus.PROCESSING: "yellow",
    AssetStatus.ERROR: "red",
}


def run_async(coro):
    """Run an async coroutine in sync context."""
    return asyncio.run(coro)


@asynccontextmanager
async def open_service(settings: Settings | None = None) -> AsyncIterator[MediaIngestionService]:
    """Build the database and service for one command, disposing afterwards."""
    settings = settings or Settings()
    configure_logging(settings.log_level)
    database = Database.from_settings(settings)
    blob_store = BlobStore(settings.upload_dir, settings.upload_url_prefix)
    try:
        await database.init()
        yield MediaIngestionService(
            database,
            blob_store,
            settings,
            activity=ActivityLogger(database.session_factory),
        )
    finally:
        await database.dispose()


async def resolve_asset_id(database: Database, value: str) -> UUID:
    """Accept a full UUID or an unambiguous prefix."""
    try:
        return UUID(value)
    except ValueError:
        pass

    async with database.session() as session:
        matches = await MediaAssetRepository(session).find_by_prefix(value)

    if not matches:
        console.print(f"[red]Error:[/red] No media asset found matching: {value}")
        raise typer.Exit(1)
    if len(matches) > 1:
        console.print(
            f"[red]Error:[/red] Ambiguous prefix '{value}' matches {len(matches)} assets:"
        )
        for m in matches[:5]:
            console.print(f"  • {m.asset_id}")
        raise typer.Exit(1)
    return matches[0].asset_id


def _status(asset: MediaAsset) -> str:
    style = _STATUS_STYLE.get(asset.status, "white")
    return f"[{style}]{asset.status.value}[/{style}]"


def _collect_files(path: Path, recursive: bool) -> list[Path]:
    if path.is_file():
        return [path]
    pattern = "**/*" if recursive else "*"
    return sorted(
        f for f in path.glob(pattern) if f.is_file() and f.suffix.lower() in SUPPORTED_EXTENSIONS
    )


@app.command("init-db")
def init_db() -> None:
    """Create database tables."""

    async def _init():
        async with open_service():
            pass

    run_async(_init())
    console.print("[green]Database initialized.[/green]")


@app.command()
def ingest(
    path: Annotated[Path, typer.Argument(help="Image file or directory to ingest")],
    recursive: Annotated[
        bool, typer.Option("--recursive", "-r", help="Recursively ingest directories")
    ] = False,
    alt_text: Annotated[
        str | None, typer.Option("--alt", help="Alt text for every ingested file")
    ] = None,
) -> None:
    """Ingest images into the media library.

    Each file is re-encoded, resized into its variants and recorded.
    """
    if not path.exists():
        console.print(f"[red]Error:[/red] Path does not exist: {path}")
        raise typer.Exit(1)

    files = _collect_files(path, recursive)
    if not files:
        console.print("[yellow]No supported files found to ingest.[/yellow]")
        raise typer.Exit(0)

    async def _ingest() -> int:
        failures = 0
        console.print(f"[blue]Ingesting {len(files)} file(s)...[/blue]\n")
        async with open_service() as service:
            for file_path in files:
                console.print(f"  Processing: {file_path.name}...", end=" ")
                try:
                    asset = await service.ingest(
                        file_path.read_bytes(),
                        file_path.name,
                        AssetMetadata(alt_text=alt_text),
                        actor="cli",
                    )
                except IngestionError as e:
                    failures += 1
                    console.print(f"[red]ERROR[/red]: {e}")
                    continue
                variants = ", ".join(sorted(asset.variants)) or "-"
                console.print(f"[green]OK[/green] → {asset.asset_id} ({variants})")
        console.print()
        console.print(
            f"[bold]Summary:[/bold] {len(files) - failures} ingested, {failures} failed"
        )
        return failures

    if run_async(_ingest()):
        raise typer.Exit(1)


@app.command("list")
def list_assets(
    limit: Annotated[int, typer.Option("--limit", "-n", help="Max rows to show")] = 50,
) -> None:
    """List media assets, most recent first."""

    async def _list():
        async with open_service() as service:
            assets = await service.list_assets(limit)

        if not assets:
            console.print("[yellow]No media assets.[/yellow]")
            return

        table = Table(title=f"Media assets ({len(assets)})")
        table.add_column("ID", style="dim")
        table.add_column("Status")
        table.add_column("File")
        table.add_column("Size")
        table.add_column("Variants")
        table.add_column("Created")
        for asset in assets:
            size = f"{asset.width}x{asset.height}" if asset.width else "-"
            table.add_row(
                str(asset.asset_id)[:8],
                _status(asset),
                asset.filename or asset.source_filename,
                size,
                ", ".join(sorted(asset.variants)) or "-",
                asset.created_at.strftime("%Y-%m-%d %H:%M"),
            )
        console.print(table)

    run_async(_list())


@app.command()
def show(
    asset_id: Annotated[str, typer.Argument(help="Asset ID (full UUID or prefix)")],
) -> None:
    """Show details for one media asset."""

    async def _show():
        async with open_service() as service:
            resolved = await resolve_asset_id(service.database, asset_id)
            try:
                asset = await service.get(resolved)
            except AssetNotFoundError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(1) from None

        lines = [
            f"[bold]ID:[/bold] {asset.asset_id}",
            f"[bold]Status:[/bold] {_status(asset)}",
            f"[bold]Source:[/bold] {asset.source_filename}",
        ]
        if asset.error_message:
            lines.append(f"[bold]Error:[/bold] {asset.error_message}")
        if asset.canonical_url:
            lines.append(f"[bold]URL:[/bold] {asset.canonical_url}")
            lines.append(
                f"[bold]Canonical:[/bold] {asset.width}x{asset.height}, "
                f"{asset.byte_size:,} bytes, {asset.mime_type}"
            )
        lines.append(f"[bold]Alt text:[/bold] {asset.alt_text}")
        if asset.title:
            lines.append(f"[bold]Title:[/bold] {asset.title}")
        lines.append(f"[bold]Created:[/bold] {asset.created_at}")
        console.print(Panel("\n".join(lines), title="Media Asset"))

        if asset.variants:
            table = Table(title="Variants")
            table.add_column("Name")
            table.add_column("Size")
            table.add_column("URL")
            for name, variant in sorted(asset.variants.items()):
                table.add_row(name, f"{variant['width']}x{variant['height']}", variant["url"])
            console.print(table)

    run_async(_show())


@app.command()
def delete(
    asset_id: Annotated[str, typer.Argument(help="Asset ID (full UUID or prefix)")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete a media asset and its files."""
    if not yes:
        typer.confirm(f"Delete media asset {asset_id} and its files?", abort=True)

    async def _delete():
        async with open_service() as service:
            resolved = await resolve_asset_id(service.database, asset_id)
            try:
                report = await service.remove(resolved, actor="cli")
            except AssetNotFoundError as e:
                console.print(f"[red]Error:[/red] {e}")
                raise typer.Exit(1) from None

        console.print(f"[green]Deleted[/green] {resolved} ({len(report.deleted)} files removed)")
        if report.missing:
            console.print(f"[yellow]Already missing:[/yellow] {', '.join(report.missing)}")
        for name, error in report.failed.items():
            console.print(f"[red]Could not remove[/red] {name}: {error}")

    run_async(_delete())


@app.command()
def verify() -> None:
    """Report READY assets whose canonical or variant files are missing."""

    async def _verify() -> int:
        async with open_service() as service:
            assets = await service.list_assets()
            blob_store = service.blob_store

        broken = 0
        for asset in assets:
            if asset.status != AssetStatus.READY:
                continue
            missing = [
                url for url in asset.file_urls()
                if not blob_store.exists(blob_store.name_from_url(url))
            ]
            if missing:
                broken += 1
                console.print(f"[red]✗[/red] {asset.asset_id}: missing {', '.join(missing)}")

        ready = sum(1 for a in assets if a.status == AssetStatus.READY)
        console.print(f"[bold]Checked {ready} ready asset(s):[/bold] {broken} with missing files")
        return broken

    if run_async(_verify()):
        raise typer.Exit(1)


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Bind port")] = 8000,
    reload: Annotated[bool, typer.Option(help="Auto-reload on code changes")] = False,
) -> None:
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("solarsite.app:create_app", factory=True, host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
