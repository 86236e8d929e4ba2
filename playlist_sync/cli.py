"""
Command-line interface for playlist-sync.

This module implements the CLI using Click, with rich-click for the
help output colors.

Commands:
    plsync --add <playlist_url>         Register a Spotify playlist
    plsync --playlist <id> [...]        Reconcile the given playlists
    plsync --all                        Reconcile every registered playlist
    plsync --list                       List registered playlists
    plsync --releases <id>              List new releases seen in a playlist

Usage:
    # Register a playlist, note the local id it gets
    plsync --add "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M"

    # Reconcile it (run this on a schedule)
    plsync --playlist 1

    # Reconcile everything, with a progress bar
    plsync --all

Configuration:
    The CLI requires a config.yaml file in the current directory (or the
    one given with --config), see playlist_sync.core.config.

Exit Codes:
    0  Success
    1  Configuration or Spotify error at startup, or unexpected error
    2  Database error
    4  Other playlist-sync error
    130  Interrupted by user
"""

import sys
from pathlib import Path
from typing import Optional

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "plsync": [
        {
            "name": "Playlists",
            "options": ["--add", "--list"],
        },
        {
            "name": "Reconciliation",
            "options": ["--playlist", "--all"],
        },
        {
            "name": "Reports",
            "options": ["--releases"],
        },
        {
            "name": "Info",
            "options": ["--config", "--version", "--help"],
        },
    ],
}

from playlist_sync import __version__
from playlist_sync.catalog import SpotifyCatalogService, SpotifyClient
from playlist_sync.catalog.models import PlaylistMetadata
from playlist_sync.core import (
    Config,
    Database,
    ErrorKind,
    NotFoundError,
    PlaylistSyncError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from playlist_sync.core.repositories import Repositories
from playlist_sync.engine import PlaylistDownloader, ReleaseClassifier
from playlist_sync.models import DownloadResult, Playlist
from playlist_sync.utils import ensure_directory, extract_playlist_id

logger = get_logger(__name__)

SPOTIFY_SERVICE = "spotify"

_EXIT_CODES = {
    ErrorKind.CONFIG: 1,
    ErrorKind.FETCH: 1,
    ErrorKind.PERSIST: 2,
}


@click.command(name="plsync")
@click.option(
    "--add", "add_url",
    type=str,
    default=None,
    metavar="<spotify-url>",
    help="Register a Spotify playlist"
)
@click.option(
    "--playlist", "playlist_ids",
    type=int,
    multiple=True,
    metavar="<id>",
    help="Reconcile a registered playlist (repeatable)"
)
@click.option(
    "--all", "sync_all",
    is_flag=True,
    help="Reconcile every registered playlist"
)
@click.option(
    "--list", "list_playlists",
    is_flag=True,
    help="List registered playlists"
)
@click.option(
    "--releases", "releases_id",
    type=int,
    default=None,
    metavar="<id>",
    help="List the new releases recorded for a playlist"
)
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml)"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    add_url: Optional[str],
    playlist_ids: tuple[int, ...],
    sync_all: bool,
    list_playlists: bool,
    releases_id: Optional[int],
    config_path: Optional[Path],
    version: bool
) -> None:
    """
    playlist-sync: keep a local history of Spotify playlists.

    Records every track that appears in a registered playlist, with its
    artist and album, and flags albums and singles that were freshly
    released when they showed up.

    \b
    BASIC USAGE:
        plsync --add "https://open.spotify.com/playlist/..."   # Register
        plsync --playlist 1                                    # Reconcile one
        plsync --all                                           # Reconcile all
        plsync --releases 1                                    # New releases
    """
    if version:
        click.echo(f"playlist-sync {__version__}")
        ctx.exit(0)

    actions = [bool(add_url), bool(playlist_ids), sync_all, list_playlists, releases_id is not None]
    if not any(actions):
        click.echo(ctx.get_help())
        ctx.exit(0)

    if sum(actions) > 1:
        raise click.UsageError("Use only one of --add, --playlist, --all, --list, --releases")

    external_id = None
    if add_url:
        try:
            external_id = extract_playlist_id(add_url)
        except ValueError as e:
            raise click.UsageError(str(e))

    _run(
        config_path=config_path,
        add_id=external_id,
        playlist_ids=list(playlist_ids),
        sync_all=sync_all,
        list_playlists=list_playlists,
        releases_id=releases_id,
    )


def _run(
    config_path: Path | None,
    add_id: str | None,
    playlist_ids: list[int],
    sync_all: bool,
    list_playlists: bool,
    releases_id: int | None
) -> None:
    """
    Execute the selected action.

    1. Load configuration and set up logging
    2. Open the database
    3. Build the Spotify client when the action needs the catalog
    4. Run the action

    Raises:
        SystemExit: On fatal errors (with appropriate exit code).
    """
    database: Database | None = None

    try:
        config = _load_configuration(config_path)

        setup_logging(config.logging.directory)
        logger.debug(f"playlist-sync {__version__} starting")

        ensure_directory(config.database.path.parent)
        database = Database(config.database.path)
        repositories = Repositories.from_database(database)

        if list_playlists:
            _list_playlists(repositories)
        elif releases_id is not None:
            _list_releases(repositories, releases_id)
        else:
            catalog = SpotifyCatalogService(_initialize_spotify(config))
            if add_id:
                _add_playlist(repositories, catalog, add_id)
            else:
                ids = [p.id for p in repositories.playlists.get_all()] if sync_all else playlist_ids
                _reconcile(repositories, catalog, config, ids, progress=sync_all)

    except PlaylistSyncError as e:
        exit_code = _EXIT_CODES.get(e.kind, 4)
        if e.kind is ErrorKind.CONFIG:
            click.echo(f"Configuration error: {e.message}", err=True)
        elif e.kind is ErrorKind.FETCH:
            click.echo(f"Spotify error: {e.message}", err=True)
            if getattr(e, "is_auth_error", False):
                click.echo("Check your client_id and client_secret in config.yaml", err=True)
            logger.error(f"Spotify error: {e.message}")
        elif e.kind is ErrorKind.PERSIST:
            click.echo(f"Database error: {e.message}", err=True)
            logger.error(f"Database error: {e.message}", exc_info=True)
        else:
            click.echo(f"Error: {e.message}", err=True)
            logger.error(f"Error: {e.message}")
        sys.exit(exit_code)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        if database is not None:
            database.close()
        shutdown_logging()


def _load_configuration(config_path: Path | None) -> Config:
    """
    Raises:
        ConfigError: If configuration is invalid or missing.
    """
    return load_config(config_path)


def _initialize_spotify(config: Config) -> SpotifyClient:
    """
    Raises:
        FetchError: If authentication fails.
    """
    return SpotifyClient.from_credentials(
        client_id=config.spotify.client_id,
        client_secret=config.spotify.client_secret
    )


def _add_playlist(repositories: Repositories, catalog: SpotifyCatalogService, external_id: str) -> None:
    existing = repositories.playlists.get_by_external_id(SPOTIFY_SERVICE, external_id)
    if existing is not None:
        click.echo(f"Playlist already registered as {existing.id}: {existing.name}")
        return

    metadata = catalog.fetch_playlist(external_id)
    playlist = _new_playlist(external_id, metadata)
    playlist.id = repositories.playlists.store(playlist)

    logger.info(f"Registered playlist '{playlist.name}' ({external_id})")
    click.echo(f"Registered playlist {playlist.id}: {playlist.name}")


def _new_playlist(external_id: str, metadata: PlaylistMetadata) -> Playlist:
    """The playlist is keyed by the id the user gave, whatever the payload reports."""
    return Playlist(
        playlist_id=external_id,
        service=SPOTIFY_SERVICE,
        name=metadata.name,
        description=metadata.description,
    )


def _reconcile(
    repositories: Repositories,
    catalog: SpotifyCatalogService,
    config: Config,
    playlist_ids: list[int],
    progress: bool = False
) -> None:
    """
    Reconcile each playlist with its own PlaylistDownloader.

    A playlist that fails does not stop the others.
    """
    if not playlist_ids:
        logger.warning("No playlists registered. Add one first with --add")
        return

    classifier = ReleaseClassifier(config.releases.window_days)
    totals = DownloadResult(downloaded=True)
    failed: list[int] = []

    for playlist_id in tqdm(playlist_ids, desc="Playlists", unit="playlist", disable=not progress):
        downloader = PlaylistDownloader(repositories, catalog, classifier)
        result = downloader.download(playlist_id)

        if not result.downloaded or result.degraded:
            failed.append(playlist_id)
        totals.albums_found += result.albums_found
        totals.singles_found += result.singles_found
        totals.tracks_added += result.tracks_added
        totals.tracks_skipped += result.tracks_skipped

    _print_summary(len(playlist_ids), totals, failed)


def _print_summary(count: int, totals: DownloadResult, failed: list[int]) -> None:
    logger.info("=" * 60)
    logger.info("RECONCILIATION SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Playlists:         {count}")
    logger.info(f"Tracks added:      {totals.tracks_added}")
    logger.info(f"Tracks skipped:    {totals.tracks_skipped}")
    logger.info(f"New albums:        {totals.albums_found}")
    logger.info(f"New singles:       {totals.singles_found}")
    if failed:
        logger.warning(f"Not reconciled or degraded: {', '.join(str(i) for i in failed)}")
    logger.info("=" * 60)


def _list_playlists(repositories: Repositories) -> None:
    playlists = repositories.playlists.get_all()
    if not playlists:
        click.echo("No playlists registered")
        return

    for playlist in playlists:
        count = repositories.tracks.count_by_playlist(playlist.id)
        changed = playlist.last_changed.strftime("%Y-%m-%d %H:%M") if playlist.last_changed else "never"
        click.echo(
            f"{playlist.id:>4}  {playlist.playlist_id}  {count:>5} tracks  "
            f"changed {changed}  {playlist.name}"
        )


def _list_releases(repositories: Repositories, playlist_id: int) -> None:
    playlist = repositories.playlists.get_by_id(playlist_id)
    if playlist is None:
        raise NotFoundError(f"Unknown playlist id: {playlist_id}", details={"playlist_id": playlist_id})

    releases = repositories.releases.get_by_playlist(playlist_id)
    if not releases:
        click.echo(f"No new releases recorded for '{playlist.name}'")
        return

    for release in releases:
        album = repositories.albums.get_by_id(release.album_id)
        if album is None:
            continue
        artist = repositories.artists.get_by_id(album.artist_id) if album.artist_id else None
        artist_name = artist.name if artist else "?"
        click.echo(
            f"{release.sync_date:%Y-%m-%d}  {album.album_type.value:<11}  "
            f"{artist_name} - {album.name}  (released {album.release_date})"
        )


def main() -> None:
    """Entry point for the plsync console script."""
    cli()


if __name__ == "__main__":
    main()
