"""
Exception classes for playlist-sync.

Every error raised by the application carries an ErrorKind tag. Callers
that need to react differently to different failures inspect `error.kind`
instead of testing for concrete exception classes.

Exception Hierarchy:
    PlaylistSyncError (base)
        ConfigError - Configuration file issues
        ValidationError - Malformed track coming from the catalog
        FetchError - Remote catalog lookup failed
        ResolutionError - Master data for a track could not be found
        PersistError - Local storage read/write failed
        NotFoundError - Entity required by the run does not exist

Severity during a reconciliation run:
    NotFoundError (playlist missing) is the only error that aborts a run.
    Everything else is logged against the offending track and the run
    moves on to the next one.
"""

from enum import Enum


class ErrorKind(Enum):
    """Tag carried by every playlist-sync error."""
    CONFIG = "config"
    VALIDATION = "validation"
    FETCH = "fetch"
    RESOLUTION = "resolution"
    PERSIST = "persist"
    NOT_FOUND = "not_found"


class PlaylistSyncError(Exception):
    """
    Base exception for all playlist-sync errors.

    Attributes:
        message: Human-readable error description.
        details: Dictionary with additional context (track ids, playlist id,
                 the wrapped error). Never None.
        kind: ErrorKind of this error. Fixed per subclass.

    Example:
        try:
            artist = identity.resolve_artist(track.service_artist_id)
        except PlaylistSyncError as e:
            if e.kind is ErrorKind.FETCH:
                logger.error(f"Catalog lookup failed: {e.message}")
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary of extra context. Common keys:
                     - 'track_id': external id of the track involved
                     - 'playlist_id': local playlist id
                     - 'original_error': the underlying exception as text
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(PlaylistSyncError):
    """
    Raised when config.yaml is missing, unreadable or invalid.

    This is a CRITICAL error: the CLI stops before touching the database.
    """
    kind = ErrorKind.CONFIG


class ValidationError(PlaylistSyncError):
    """
    Raised when a track cannot be processed as delivered by the catalog.

    NON-CRITICAL: the track is skipped.

    Example:
        raise ValidationError(
            "missing service artist name or album name",
            details={"track_id": "spotify:local:::Song:180"}
        )
    """
    kind = ErrorKind.VALIDATION


class FetchError(PlaylistSyncError):
    """
    Raised when the remote catalog cannot deliver the requested data.

    NON-CRITICAL inside a run (the track is skipped, or the run continues
    with an empty track list), CRITICAL at startup when authentication fails.

    Attributes:
        is_auth_error: True if the credentials were rejected.
        is_rate_limit: True if the catalog answered with HTTP 429.
    """
    kind = ErrorKind.FETCH

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        super().__init__(message, details)
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit


class ResolutionError(PlaylistSyncError):
    """
    Raised when a track without master data cannot be matched to a
    catalog artist and album.

    NON-CRITICAL: the track is skipped and retried on the next run.
    """
    kind = ErrorKind.RESOLUTION


class PersistError(PlaylistSyncError):
    """
    Raised when the local SQLite database rejects a read or a write.

    NON-CRITICAL for tracks and releases, CRITICAL when the database
    cannot be opened at all.

    Constraint violations (e.g. a duplicate (playlist, track) pair) set
    details['constraint'] to True.
    """
    kind = ErrorKind.PERSIST


class NotFoundError(PlaylistSyncError):
    """
    Raised when the playlist to reconcile does not exist locally.

    This is the only error that aborts a reconciliation run.
    """
    kind = ErrorKind.NOT_FOUND
