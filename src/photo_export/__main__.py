"""CLI entrypoint for photo-export."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from photo_export import __version__
from photo_export.catalog.base import CatalogAccessDeniedError, CatalogError
from photo_export.catalog.photos_catalog import PhotosCatalog, get_permission_instructions
from photo_export.core.config import Config
from photo_export.core.engine import ExportEngine
from photo_export.core.logger import configure_logging
from photo_export.core.types import Album, JobState
from photo_export.exporters.transfer import Transferer
from photo_export.services.album_library import AlbumLibrary
from photo_export.ui.progress import ProgressDisplayManager
from photo_export.utils.file_utils import expand_path

# Rich console for formatted output
console = Console()
logger = logging.getLogger(__name__)


@dataclass
class CLIContext:
    """Context object passed between CLI commands."""

    config: Config
    verbose: bool
    quiet: bool
    library_path: Path | None = None


pass_context = click.make_pass_decorator(CLIContext, ensure=True)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output (DEBUG level logging).",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Minimal output (only errors and results).",
)
@click.option(
    "--library",
    "library_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to a Photos library bundle (defaults to the system library).",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, quiet: bool, library_path: Path | None) -> None:
    """Photo Export - Export Photos albums into a folder tree.

    Each album becomes a folder named after it; every asset is written
    with its original filename.
    """
    config = Config.load()

    if verbose:
        level: int | str = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = config.logging.level
    configure_logging(level=level, console_output=True, file_output=config.logging.file_output)

    ctx.ensure_object(dict)
    ctx.obj = CLIContext(
        config=config,
        verbose=verbose,
        quiet=quiet,
        library_path=library_path.expanduser() if library_path else None,
    )


def _open_catalog(cli_ctx: CLIContext) -> PhotosCatalog:
    """Create the Photos catalog from CLI options and configuration.

    Exits with status 1 if the library cannot be opened.
    """
    photos_cfg = cli_ctx.config.photos
    try:
        catalog = PhotosCatalog(
            library_path=cli_ctx.library_path or photos_cfg.library_path,
            include_smart_albums=photos_cfg.include_smart_albums,
            include_hidden=photos_cfg.include_hidden,
        )
        catalog.open()
    except CatalogError as e:
        _display_catalog_error(e)
        sys.exit(1)
    return catalog


def _display_catalog_error(error: CatalogError) -> None:
    console.print(f"[red]✗ {escape(str(error))}[/red]")
    if isinstance(error, CatalogAccessDeniedError):
        console.print()
        console.print(get_permission_instructions())


def _load_album_library(cli_ctx: CLIContext, catalog: PhotosCatalog) -> AlbumLibrary:
    manager = ProgressDisplayManager(quiet=cli_ctx.quiet, console=console)
    with manager.spinner("Reading Photos library..."):
        library = AlbumLibrary(catalog, observe=False)

    if library.last_error is not None:
        console.print(f"[red]✗ Cannot read Photos library: {escape(library.last_error)}[/red]")
        sys.exit(1)
    return library


@main.command()
@pass_context
def albums(cli_ctx: CLIContext) -> None:
    """List the albums of the Photos library.

    Examples:

        # List albums with their item counts
        photo-export albums

        # Use another library
        photo-export --library ~/Pictures/Archive.photoslibrary albums
    """
    catalog = _open_catalog(cli_ctx)
    library = _load_album_library(cli_ctx, catalog)

    if not library.albums:
        console.print("[yellow]No albums found.[/yellow]")
        return

    table = Table(title="Albums", show_header=True, header_style="bold cyan")
    table.add_column("Name")
    table.add_column("Kind", style="dim")
    table.add_column("Items", justify="right")

    for album in library.albums:
        try:
            count = str(len(catalog.list_assets(album)))
        except CatalogError as e:
            logger.warning(f"Failed to count items of {album.album_id}: {e}")
            count = "?"
        name = escape(album.display_name) if album.display_name else "[dim](untitled)[/dim]"
        table.add_row(name, "Smart" if album.is_smart else "User", count)

    console.print(table)


def _resolve_albums(library: AlbumLibrary, names: tuple[str, ...]) -> list[Album]:
    """Look up albums by display name, keeping the order given on the command line.

    Raises:
        click.BadParameter: If a name matches no album.
    """
    selected: list[Album] = []
    for name in names:
        matches = library.find(name)
        if not matches:
            raise click.BadParameter(f"No album named '{name}'", param_hint="--album")
        selected.extend(album for album in matches if album not in selected)
    return selected


@main.command()
@click.argument(
    "destination",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--album",
    "album_names",
    multiple=True,
    help="Album to export (repeatable). Each album gets its own folder.",
)
@click.option(
    "--all",
    "export_all",
    is_flag=True,
    default=False,
    help="Export the whole library, filing each item under its first album.",
)
@click.option(
    "--no-network",
    is_flag=True,
    default=False,
    help="Do not download originals that are only stored in iCloud.",
)
@pass_context
def export(
    cli_ctx: CLIContext,
    destination: Path | None,
    album_names: tuple[str, ...],
    export_all: bool,
    no_network: bool,
) -> None:
    """Export albums or the whole library to DESTINATION.

    DESTINATION must be an existing, writable directory. It defaults to
    the configured export destination.

    Examples:

        # Export two albums
        photo-export export ~/Exports --album "Trip" --album "Family"

        # Export the whole library; a second run only writes new items
        photo-export export ~/Exports --all

        # Skip items that would need an iCloud download
        photo-export export ~/Exports --all --no-network
    """
    if export_all and album_names:
        raise click.UsageError("Use either --album or --all, not both.")
    if not export_all and not album_names:
        raise click.UsageError("Select at least one --album, or use --all.")

    export_cfg = cli_ctx.config.export
    destination_root = expand_path(destination or export_cfg.destination)
    allow_network = export_cfg.allow_network_access and not no_network

    catalog = _open_catalog(cli_ctx)
    selected: list[Album] = []
    if not export_all:
        library = _load_album_library(cli_ctx, catalog)
        selected = _resolve_albums(library, album_names)

    engine = ExportEngine(catalog, transferer=Transferer(allow_network_access=allow_network))
    manager = ProgressDisplayManager(quiet=cli_ctx.quiet, console=console)
    title = "Exporting library" if export_all else f"Exporting {len(selected)} album(s)"
    progress = manager.create_export_progress(title=title)

    progress.start()
    try:
        if export_all:
            handle = engine.run_all_assets(
                destination_root,
                on_progress=progress.update,
                on_error=progress.report_error,
            )
        else:
            handle = engine.run_selected_albums(
                selected,
                destination_root,
                on_progress=progress.update,
                on_error=progress.report_error,
            )

        try:
            summary = handle.wait()
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling after the current item...[/yellow]")
            handle.request_cancel()
            summary = handle.wait()
    finally:
        progress.finish()

    if handle.state is JobState.FAILED or summary is None:
        reason = handle.job.errors[0] if handle.job.errors else "Export failed"
        console.print(f"[red]✗ {escape(reason)}[/red]")
        sys.exit(1)

    progress.show_summary(summary)
    if summary.cancelled:
        sys.exit(130)


@main.command()
@click.option(
    "--show-path",
    is_flag=True,
    default=False,
    help="Only print the configuration file location.",
)
@pass_context
def config(cli_ctx: CLIContext, show_path: bool) -> None:
    """View the effective configuration.

    Values come from the config file, overridden by PHOTO_EXPORT_*
    environment variables.

    Examples:

        # View current configuration
        photo-export config

        # Print the config file location
        photo-export config --show-path
    """
    config_path = Config.get_default_config_path()
    if show_path:
        click.echo(str(config_path))
        return

    cfg = cli_ctx.config

    console.print()
    console.print("[bold]Photo Export Configuration[/bold]")
    console.print("=" * 50)
    console.print()

    console.print("[bold cyan]Photos[/bold cyan]")
    console.print(f"  Library:         {cfg.photos.library_path or 'System library'}")
    console.print(f"  Smart albums:    {cfg.photos.include_smart_albums}")
    console.print(f"  Hidden items:    {cfg.photos.include_hidden}")
    console.print()

    console.print("[bold cyan]Export[/bold cyan]")
    console.print(f"  Destination:     {cfg.export.destination}")
    console.print(f"  Network access:  {cfg.export.allow_network_access}")
    console.print()

    console.print("[bold cyan]Logging[/bold cyan]")
    console.print(f"  Level:           {cfg.logging.level}")
    console.print(f"  File output:     {cfg.logging.file_output}")
    console.print()

    console.print("[bold cyan]Config File[/bold cyan]")
    exists = "" if config_path.exists() else " [dim](not created)[/dim]"
    console.print(f"  Location:        {config_path}{exists}")
    console.print()


if __name__ == "__main__":
    main()
