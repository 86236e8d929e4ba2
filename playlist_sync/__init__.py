"""
playlist-sync: keep a durable history of what appears in Spotify playlists.

Every run reconciles a registered playlist against the Spotify catalog:
new tracks are resolved to local artists and albums and stored once per
playlist, and albums or singles that were freshly released when they
first showed up are recorded as releases.

Modules:
    core/       - Configuration, exceptions, logging, SQLite database, repositories
    catalog/    - Spotify API client and the Catalog Service
    engine/     - Release Classifier, resolvers and the reconciliation engine
    models.py   - Domain entities
    utils/      - Small helpers
    cli.py      - Command-line interface

Usage:
    Command Line:
        plsync --add "https://open.spotify.com/playlist/..."
        plsync --playlist 1
        plsync --all

    Python API:
        from playlist_sync.core import load_config, Database, setup_logging
        from playlist_sync.core.repositories import Repositories
        from playlist_sync.catalog import SpotifyClient, SpotifyCatalogService
        from playlist_sync.engine import PlaylistDownloader, ReleaseClassifier

        config = load_config()
        setup_logging(config.logging.directory)
        repositories = Repositories.from_database(Database(config.database.path))

        client = SpotifyClient.from_credentials(
            config.spotify.client_id, config.spotify.client_secret
        )
        downloader = PlaylistDownloader(
            repositories,
            SpotifyCatalogService(client),
            ReleaseClassifier(config.releases.window_days)
        )
        result = downloader.download(1)

Dependencies:
    - spotipy: Spotify API client
    - requests: HTTP transport errors raised through spotipy
    - rapidfuzz: Fuzzy matching of album search results
    - click, rich-click: CLI
    - tqdm: Progress bars
    - colorama: Console colors
    - pyyaml, python-dotenv: Configuration
"""

__version__ = "0.1.0"
__author__ = "playlist-sync"
__license__ = "MIT"

# Convenience imports for common usage
from playlist_sync.core import (
    Config,
    ConfigError,
    Database,
    ErrorKind,
    PlaylistSyncError,
    get_logger,
    load_config,
    setup_logging,
)
from playlist_sync.models import DownloadResult, Playlist, Track

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "Database",
    "setup_logging",
    "get_logger",
    # Errors
    "ErrorKind",
    "PlaylistSyncError",
    "ConfigError",
    # Models
    "Playlist",
    "Track",
    "DownloadResult",
]
