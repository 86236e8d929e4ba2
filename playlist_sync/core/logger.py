"""
Logging configuration for playlist-sync.

This module sets up the logging system with multiple outputs:
    - Console: Real-time progress with tqdm-compatible formatting
    - sync_full_<timestamp>.log: Complete log of all events (DEBUG and above)
    - sync_errors_<timestamp>.log: Only ERROR and CRITICAL level messages
    - skipped_tracks_<timestamp>.log: Tracks that were skipped during reconciliation,
      with the reason and the ids needed to investigate them

Log File Locations:
    All log files are created in the logging directory from config.yaml.
    Each run gets its own timestamped set of files.

Usage:
    from playlist_sync.core.logger import setup_logging, get_logger

    setup_logging(logs_dir)  # Call once at startup
    logger = get_logger(__name__)

    logger.info("Reconciling playlist 3")
    log_track_skipped(logger, track_id="4cOd...", playlist_id=3,
                      reason="artist not found", kind=ErrorKind.FETCH)
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

import colorama
from colorama import Fore, Style
from tqdm import tqdm

from playlist_sync.core.exceptions import ErrorKind


FULL_LOG_PREFIX = "sync_full"
ERROR_LOG_PREFIX = "sync_errors"
SKIPPED_TRACKS_PREFIX = "skipped_tracks"

# Log format for file output (detailed with timestamp)
FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """Terminal colors, through colorama so they also work on Windows."""
    RESET = Style.RESET_ALL
    RED = Fore.RED
    GREEN = Fore.GREEN
    YELLOW = Fore.YELLOW
    BLUE = Fore.BLUE
    WHITE = Fore.WHITE
    BOLD = Style.BRIGHT


class ColoredConsoleFormatter(logging.Formatter):
    """
    Formatter that colors the level name on console output.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        colored_levelname = f"{color}{record.levelname}{Colors.RESET}"
        return f"{colored_levelname}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that does not break tqdm progress bars.

    Uses tqdm.write(), which prints above any active progress bar
    instead of interleaving with its carriage-return updates.
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            tqdm.write(msg, file=self.stream)
        except Exception:
            self.handleError(record)


class SkippedTrackHandler(logging.Handler):
    """
    Handler that writes skipped tracks to the skipped-tracks report.

    Only records carrying the 'skipped_track_id' extra field are written.
    The report format is one block per track:

        4cOdK2wGLETKBW3PvgPWqT (playlist 3)
        kind: fetch
        reason: Failed to fetch artist: http status 404
        artist: 0OdUWJ0sBjDrqHygGUXeCF  album: 1bt6q2SruMsBtcerNVtpZB

    Records are produced by log_track_skipped().

    Attributes:
        report_path: Path to the report file.
        report_file: Open file handle, None until open() is called.
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open the report file for writing (overwrites existing content)."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "skipped_track_id"):
            return

        if self.report_file is None:
            return

        try:
            track_id = getattr(record, "skipped_track_id", "")
            playlist_id = getattr(record, "skipped_track_playlist_id", None)
            kind = getattr(record, "skipped_track_kind", "")
            reason = getattr(record, "skipped_track_reason", "")
            artist_id = getattr(record, "skipped_track_artist_id", None) or "-"
            album_id = getattr(record, "skipped_track_album_id", None) or "-"

            self.report_file.write(f"{track_id} (playlist {playlist_id})\n")
            self.report_file.write(f"kind: {kind}\n")
            self.report_file.write(f"reason: {reason}\n")
            self.report_file.write(f"artist: {artist_id}  album: {album_id}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file handle. Safe to call multiple times."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Filter that only lets ERROR and CRITICAL records through."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(logs_dir: Path, console_level: int = logging.INFO) -> None:
    """
    Configure the logging system for the application.

    Call ONCE at application startup, after the configuration is loaded.

    Args:
        logs_dir: Directory where log files will be created.
                  Created if it doesn't exist.
        console_level: Minimum level printed to the console.

    Behavior:
        1. Create logs_dir if it doesn't exist
        2. Configure root logger level to DEBUG and drop existing handlers
        3. Console handler (TqdmLoggingHandler), colored, console_level
        4. Full log file handler, DEBUG
        5. Error-only log file handler (ErrorOnlyFilter)
        6. Skipped tracks report handler
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    colorama.just_fix_windows_console()

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_log_path = logs_dir / f"{FULL_LOG_PREFIX}_{timestamp}.log"
    full_handler = logging.FileHandler(full_log_path, mode="w", encoding="utf-8")
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_log_path = logs_dir / f"{ERROR_LOG_PREFIX}_{timestamp}.log"
    error_handler = logging.FileHandler(error_log_path, mode="w", encoding="utf-8")
    error_handler.setLevel(logging.DEBUG)  # Filter handles the level restriction
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    skipped_path = logs_dir / f"{SKIPPED_TRACKS_PREFIX}_{timestamp}.log"
    skipped_handler = SkippedTrackHandler(skipped_path)
    skipped_handler.open()
    root_logger.addHandler(skipped_handler)

    # spotipy and urllib3 are chatty at DEBUG
    logging.getLogger("spotipy").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: The logger name, typically __name__ of the calling module.

    Note:
        Loggers obtained before setup_logging() is called have no handlers
        of their own and only reach whatever the root logger has.
    """
    return logging.getLogger(name)


def log_track_skipped(
    logger: logging.Logger,
    track_id: str,
    playlist_id: int | None,
    reason: str,
    kind: ErrorKind,
    artist_id: str | None = None,
    album_id: str | None = None,
    level: int = logging.ERROR
) -> None:
    """
    Log a track that reconciliation had to skip.

    Emits one record with the message plus the extra fields
    SkippedTrackHandler uses to write the skipped-tracks report.

    Args:
        logger: The logger to use for the message.
        track_id: External (catalog) id of the track.
        playlist_id: Local id of the playlist being reconciled.
        reason: Short description of why the track was skipped.
        kind: ErrorKind of the failure.
        artist_id: External artist id involved, if known.
        album_id: External album id involved, if known.
        level: Log level, ERROR by default.
    """
    logger.log(
        level,
        f"Skipped track {track_id} in playlist {playlist_id}: {reason}",
        extra={
            "skipped_track_id": track_id,
            "skipped_track_playlist_id": playlist_id,
            "skipped_track_reason": reason,
            "skipped_track_kind": kind.value,
            "skipped_track_artist_id": artist_id,
            "skipped_track_album_id": album_id,
        }
    )


def shutdown_logging() -> None:
    """
    Flush and close every handler on the root logger, then detach them.

    Typically called in a finally block at CLI exit.
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except (OSError, ValueError):
            pass
        root_logger.removeHandler(handler)
