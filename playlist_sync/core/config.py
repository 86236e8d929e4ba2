"""
Configuration management for playlist-sync.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Spotify API credentials (client_id, client_secret)
    - Path of the SQLite database holding the reconciled history
    - Directory for log files
    - Recency window used to decide whether an album is a new release

Configuration File Location:
    The config.yaml file is looked up in the current working directory
    unless an explicit path is passed (CLI: --config).

Environment Overrides:
    SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET, read from the environment
    or from a .env file, take precedence over the spotify section. When
    both are set the spotify section may be omitted.

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"

    database:
      path: "~/.playlist-sync/music.db"

    logging:
      directory: "~/.playlist-sync/logs"   # Optional

    releases:
      window_days: 30                      # Optional
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from playlist_sync.core.exceptions import ConfigError


# Default configuration file name (in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_RELEASE_WINDOW_DAYS = 30

# Environment variables overriding the spotify section
ENV_CLIENT_ID = "SPOTIFY_CLIENT_ID"
ENV_CLIENT_SECRET = "SPOTIFY_CLIENT_SECRET"


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify API credentials from the Spotify Developer Dashboard.

    Attributes:
        client_id: The Spotify application client ID.
        client_secret: The Spotify application client secret.
    """
    client_id: str
    client_secret: str


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Attributes:
        path: Absolute path of the SQLite database file.
              The parent directory is created at startup if missing.
    """
    path: Path


@dataclass(frozen=True)
class LoggingConfig:
    """
    Attributes:
        directory: Absolute path of the directory receiving log files.
                   Defaults to a 'logs' directory next to the database.
    """
    directory: Path


@dataclass(frozen=True)
class ReleaseConfig:
    """
    New-release policy.

    Attributes:
        window_days: An album whose release date is at most this many days
                     before the sync time counts as a new release.
    """
    window_days: int = DEFAULT_RELEASE_WINDOW_DAYS


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration, created by load_config().

    Example:
        config = load_config()
        database = Database(config.database.path)
        classifier = ReleaseClassifier(config.releases.window_days)
    """
    spotify: SpotifyConfig
    database: DatabaseConfig
    logging: LoggingConfig
    releases: ReleaseConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to the config file.
                     If None, looks for config.yaml in the current directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the file is not found, has invalid YAML syntax,
                     is missing required sections or holds invalid values.
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    # A .env next to config.yaml fills in variables not already set
    load_dotenv(config_path.parent / ".env")
    env_credentials = {
        "client_id": os.getenv(ENV_CLIENT_ID, ""),
        "client_secret": os.getenv(ENV_CLIENT_SECRET, ""),
    }

    _validate_config(raw_config, spotify_from_env=all(env_credentials.values()))

    spotify_config = _parse_spotify_config(raw_config.get("spotify"), env_credentials)
    database_config = _parse_database_config(raw_config["database"])
    logging_config = _parse_logging_config(raw_config.get("logging"), database_config)
    release_config = _parse_release_config(raw_config.get("releases"))

    return Config(
        spotify=spotify_config,
        database=database_config,
        logging=logging_config,
        releases=release_config
    )


def _validate_config(raw_config: dict[str, Any], spotify_from_env: bool = False) -> None:
    """Check that required sections exist and optional ones are dictionaries."""
    required = ("database",) if spotify_from_env else ("spotify", "database")
    for section in required:
        if section not in raw_config:
            raise ConfigError(
                f"Missing required section: '{section}'",
                details={"missing_section": section}
            )

    for section in ("spotify", "database", "logging", "releases"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    if raw_config["database"] is None:
        raise ConfigError(
            "Section 'database' must be a dictionary",
            details={"section": "database"}
        )


def _parse_spotify_config(
    spotify_section: dict[str, Any] | None,
    env_credentials: dict[str, str] | None = None
) -> SpotifyConfig:
    """Environment values win over the file values when non-empty."""
    spotify_section = spotify_section or {}
    env_credentials = env_credentials or {}
    client_id = env_credentials.get("client_id") or spotify_section.get("client_id", "")
    client_secret = env_credentials.get("client_secret") or spotify_section.get("client_secret", "")

    if not isinstance(client_id, str) or not client_id.strip():
        raise ConfigError(
            "'spotify.client_id' must be a non-empty string",
            details={"field": "spotify.client_id"}
        )

    if not isinstance(client_secret, str) or not client_secret.strip():
        raise ConfigError(
            "'spotify.client_secret' must be a non-empty string",
            details={"field": "spotify.client_secret"}
        )

    return SpotifyConfig(
        client_id=client_id.strip(),
        client_secret=client_secret.strip()
    )


def _parse_database_config(database_section: dict[str, Any]) -> DatabaseConfig:
    """
    Expands ~ to the home directory and converts to an absolute Path.
    Does NOT create the directory (that happens at startup).
    """
    path = database_section.get("path", "")

    if not isinstance(path, str) or not path.strip():
        raise ConfigError(
            "'database.path' must be a non-empty string",
            details={"field": "database.path"}
        )

    return DatabaseConfig(path=Path(path.strip()).expanduser().resolve())


def _parse_logging_config(
    logging_section: dict[str, Any] | None,
    database_config: DatabaseConfig
) -> LoggingConfig:
    if not logging_section or logging_section.get("directory") is None:
        return LoggingConfig(directory=database_config.path.parent / "logs")

    directory = logging_section["directory"]
    if not isinstance(directory, str) or not directory.strip():
        raise ConfigError(
            "'logging.directory' must be a non-empty string",
            details={"field": "logging.directory"}
        )

    return LoggingConfig(directory=Path(directory.strip()).expanduser().resolve())


def _parse_release_config(release_section: dict[str, Any] | None) -> ReleaseConfig:
    if not release_section:
        return ReleaseConfig()

    raw_window = release_section.get("window_days")
    if raw_window is None:
        return ReleaseConfig()

    # bool is an int subclass, reject it explicitly
    if isinstance(raw_window, bool) or not isinstance(raw_window, int) or raw_window < 1:
        raise ConfigError(
            "'releases.window_days' must be a positive integer",
            details={"field": "releases.window_days", "value": raw_window}
        )

    return ReleaseConfig(window_days=raw_window)
