"""
Core module for playlist-sync.

Foundational components used throughout the application:
    - exceptions: Error classes tagged with an ErrorKind
    - config: Configuration loading and validation
    - database: Thread-safe SQLite database
    - logger: Logging system with multiple outputs

Entity repositories live in playlist_sync.core.repositories and are
imported from there directly.

Usage:
    from playlist_sync.core import (
        Config, load_config,
        Database,
        setup_logging, get_logger,
        PlaylistSyncError, ErrorKind
    )
"""

from playlist_sync.core.config import (
    Config,
    DatabaseConfig,
    LoggingConfig,
    ReleaseConfig,
    SpotifyConfig,
    load_config,
)
from playlist_sync.core.database import Database
from playlist_sync.core.exceptions import (
    ConfigError,
    ErrorKind,
    FetchError,
    NotFoundError,
    PersistError,
    PlaylistSyncError,
    ResolutionError,
    ValidationError,
)
from playlist_sync.core.logger import (
    get_logger,
    log_track_skipped,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "ReleaseConfig",
    "load_config",
    # Database
    "Database",
    # Exceptions
    "ErrorKind",
    "PlaylistSyncError",
    "ConfigError",
    "ValidationError",
    "FetchError",
    "ResolutionError",
    "PersistError",
    "NotFoundError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_track_skipped",
    "shutdown_logging",
]
