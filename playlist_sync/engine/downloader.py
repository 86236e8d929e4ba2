"""
Reconciliation engine for playlist-sync.

PlaylistDownloader brings the local record of one playlist in line with
what the catalog currently reports for it.

Run Workflow:
    1. Load the playlist by local id. A missing playlist aborts the run.
    2. Download the remote metadata and track list. A failure is logged and
       the run continues with no tracks (degraded run, see
       DownloadResult.catalog_error).
    3. For each track, in playlist order:
       a. Validate it
       b. Resolve master data if the track has none
       c. Stop here if (playlist, track id) is already stored
       d. Resolve the artist, then the album
       e. Record a Release if the album was created by this run and is
          inside the release window (best effort)
       f. Store the track
       A failing track is logged in the skipped-tracks report and the run
       moves on to the next one.
    4. Copy the remote name/description onto the playlist, stamp
       last_changed if a track was added, and store it.
    5. Return a DownloadResult.

Nothing is retried within a run: a skipped track is simply not stored
and gets another chance on the next run.

Concurrency:
    One PlaylistDownloader per playlist run. Concurrent runs on the same
    playlist are kept consistent by the UNIQUE(playlist_id, track_id)
    constraint of the tracks table.

Usage:
    downloader = PlaylistDownloader(repositories, catalog, ReleaseClassifier(30))
    result = downloader.download(playlist_id=3)
    print(f"{result.albums_found} albums, {result.singles_found} singles")
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, auto

from playlist_sync.catalog.service import CatalogService
from playlist_sync.core.exceptions import ErrorKind, NotFoundError, PlaylistSyncError
from playlist_sync.core.logger import log_track_skipped
from playlist_sync.core.repositories import Repositories
from playlist_sync.engine.identity import IdentityResolver
from playlist_sync.engine.master_data import MasterDataResolver
from playlist_sync.engine.release import ReleaseClassifier
from playlist_sync.models import Album, AlbumType, DownloadResult, Playlist, Release, Track


module_logger = logging.getLogger(__name__)


# How each kind of failure reads in the log and in the skipped-tracks report
_KIND_LABELS = {
    ErrorKind.VALIDATION: "invalid track",
    ErrorKind.RESOLUTION: "master data not found",
    ErrorKind.FETCH: "catalog lookup failed",
    ErrorKind.PERSIST: "storage failed",
    ErrorKind.NOT_FOUND: "not found",
    ErrorKind.CONFIG: "configuration error",
}


class TrackStatus(Enum):
    ADDED = auto()
    EXISTING = auto()
    SKIPPED = auto()


@dataclass(frozen=True)
class TrackOutcome:
    """
    What processing one track did.

    Attributes:
        status: ADDED if the track was stored, EXISTING if it was already
                stored, SKIPPED if an error stopped it.
        release_type: Album type of the Release recorded for the track's
                      album, or None if no Release was recorded.
    """
    status: TrackStatus
    release_type: AlbumType | None = None


class PlaylistDownloader:
    """
    Reconcile one playlist against the catalog.

    Args:
        repositories: Local storage.
        catalog: Remote catalog.
        classifier: New-release policy; defaults to a 30-day window.
        logger: Logger for the run; defaults to this module's logger.
        master_data: Master Data Resolver; built from catalog if omitted.
        identity: Identity Resolver; built from repositories and catalog
                  if omitted.
    """

    def __init__(
        self,
        repositories: Repositories,
        catalog: CatalogService,
        classifier: ReleaseClassifier | None = None,
        logger: logging.Logger | None = None,
        master_data: MasterDataResolver | None = None,
        identity: IdentityResolver | None = None
    ) -> None:
        self._repositories = repositories
        self._catalog = catalog
        self._classifier = classifier or ReleaseClassifier()
        self._logger = logger or module_logger
        self._master_data = master_data or MasterDataResolver(catalog, self._logger)
        self._identity = identity or IdentityResolver(repositories, catalog, self._logger)

    def download(self, playlist_id: int) -> DownloadResult:
        """
        Reconcile the playlist with local id playlist_id.

        Never raises for failures of individual tracks, of the catalog or
        of the final playlist update: they are logged and reflected in the
        returned DownloadResult.

        Returns:
            DownloadResult. downloaded is False only if the playlist could
            not be loaded, in which case nothing was written.
        """
        try:
            playlist = self._load_playlist(playlist_id)
        except PlaylistSyncError as e:
            self._logger.error(f"Cannot reconcile playlist {playlist_id}: {e.message}")
            return DownloadResult.not_downloaded()

        now = self._classifier.now()
        self._logger.info(f"Reconciling playlist {playlist.id} ({playlist.service}:{playlist.playlist_id})")

        metadata = None
        tracks: list[Track] = []
        catalog_error = None
        try:
            metadata, tracks = self._catalog.download_playlist(playlist.playlist_id)
        except PlaylistSyncError as e:
            catalog_error = e.message
            self._logger.error(
                f"Failed to fetch playlist {playlist.playlist_id} from the catalog, "
                f"continuing without remote tracks: {e.message}"
            )

        result = DownloadResult(downloaded=True, catalog_error=catalog_error)
        for track in tracks:
            outcome = self._process_track(playlist, track, now)
            self._accumulate(result, outcome)

        if metadata is not None:
            playlist.name = metadata.name
            playlist.description = metadata.description
        if result.updated:
            playlist.last_changed = now

        try:
            self._repositories.playlists.update(playlist.id, playlist)
        except PlaylistSyncError as e:
            self._logger.error(f"Failed to update playlist {playlist.id}: {e.message}")

        self._logger.info(
            f"Playlist {playlist.id} '{playlist.name}': {result.tracks_added} tracks added, "
            f"{result.tracks_skipped} skipped, {result.albums_found} new albums, "
            f"{result.singles_found} new singles"
        )
        return result

    def _load_playlist(self, playlist_id: int) -> Playlist:
        playlist = self._repositories.playlists.get_by_id(playlist_id)
        if playlist is None:
            raise NotFoundError(
                f"Playlist not found: {playlist_id}",
                details={"playlist_id": playlist_id}
            )
        return playlist

    @staticmethod
    def _accumulate(result: DownloadResult, outcome: TrackOutcome) -> None:
        if outcome.status is TrackStatus.ADDED:
            result.tracks_added += 1
            result.updated = True
        elif outcome.status is TrackStatus.SKIPPED:
            result.tracks_skipped += 1

        if outcome.release_type is AlbumType.ALBUM:
            result.albums_found += 1
        elif outcome.release_type is AlbumType.SINGLE:
            result.singles_found += 1

    def _process_track(self, playlist: Playlist, track: Track, now: datetime) -> TrackOutcome:
        track.playlist_id = playlist.id
        stage = "validation"

        try:
            track.validate()

            if not track.master_data:
                stage = "master data"
                self._master_data.resolve(track)

            stage = "dedup check"
            existing = self._repositories.tracks.get_by_playlist_and_external_id(
                playlist.id, track.track_id
            )
            if existing is not None:
                self._logger.debug(f"Track {track.track_id} already in playlist {playlist.id}")
                return TrackOutcome(TrackStatus.EXISTING)

            stage = "artist"
            artist = self._identity.resolve_artist(track.service_artist_id)

            stage = "album"
            album, album_is_new = self._identity.resolve_album(track.service_album_id, artist.id)
            album.artist_id = artist.id
        except PlaylistSyncError as e:
            self._skip(track, stage, e)
            return TrackOutcome(TrackStatus.SKIPPED)

        release_type = None
        if album_is_new and self._classifier.is_new_release(album.release_date, now):
            release_type = self._record_release(playlist, album, track, now)

        track.artist_id = artist.id
        track.album_id = album.id
        try:
            track.id = self._repositories.tracks.store(track)
        except PlaylistSyncError as e:
            if e.kind is ErrorKind.PERSIST and e.details.get("constraint"):
                self._logger.debug(f"Track {track.track_id} was stored concurrently in playlist {playlist.id}")
                return TrackOutcome(TrackStatus.EXISTING, release_type)
            self._skip(track, "track store", e)
            return TrackOutcome(TrackStatus.SKIPPED, release_type)

        self._logger.debug(f"Added track {track.track_id} '{track.name}' to playlist {playlist.id}")
        return TrackOutcome(TrackStatus.ADDED, release_type)

    def _record_release(
        self,
        playlist: Playlist,
        album: Album,
        track: Track,
        now: datetime
    ) -> AlbumType | None:
        """Store a Release. Failures are logged as warnings and return None."""
        release = Release(album_id=album.id, playlist_id=playlist.id, sync_date=now)
        try:
            release.id = self._repositories.releases.store(release)
        except PlaylistSyncError as e:
            self._logger.warning(
                f"Failed to record release of album {album.album_id} in playlist {playlist.id} "
                f"(track {track.track_id}): {_KIND_LABELS[e.kind]}: {e.message}"
            )
            return None

        self._logger.info(
            f"New {album.album_type.value} '{album.name}' released {album.release_date} "
            f"in playlist {playlist.id}"
        )
        return album.album_type

    def _skip(self, track: Track, stage: str, error: PlaylistSyncError) -> None:
        log_track_skipped(
            self._logger,
            track_id=track.track_id,
            playlist_id=track.playlist_id,
            reason=f"{stage}: {_KIND_LABELS[error.kind]}: {error.message}",
            kind=error.kind,
            artist_id=track.service_artist_id or None,
            album_id=track.service_album_id or None,
        )
