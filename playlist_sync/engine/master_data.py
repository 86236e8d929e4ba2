"""
Master Data Resolver.

Fills in the catalog artist/album ids of a track that arrived without
them (a local file added to a Spotify playlist, for instance). The raw
catalog payload is tried first; when it has no ids, the catalog is
searched by artist and album name.
"""

import logging

from playlist_sync.catalog.service import CatalogService
from playlist_sync.core.exceptions import PlaylistSyncError, ResolutionError
from playlist_sync.models import Track


module_logger = logging.getLogger(__name__)


class MasterDataResolver:
    """
    Look up the catalog artist and album of tracks that lack them.

    Args:
        catalog: CatalogService used for the album search.
        logger: Logger for resolution diagnostics; defaults to this
                module's logger.
    """

    def __init__(self, catalog: CatalogService, logger: logging.Logger | None = None) -> None:
        self._catalog = catalog
        self._logger = logger or module_logger

    def resolve(self, track: Track) -> None:
        """
        Resolve the service-side artist/album ids of track, in place.

        On success the track carries master data (master_data=True).
        Tracks that already do are left untouched.

        Raises:
            ResolutionError: If the catalog fails or has no matching album.
        """
        if track.master_data:
            return

        if self._resolve_from_payload(track):
            self._logger.debug(f"Resolved {track.track_id} from its catalog payload")
        else:
            self._resolve_from_search(track)
            self._logger.debug(
                f"Resolved {track.track_id} by search: "
                f"artist {track.service_artist_id}, album {track.service_album_id}"
            )

        track.master_data = True

    @staticmethod
    def _resolve_from_payload(track: Track) -> bool:
        if not track.raw:
            return False

        artists = track.raw.get("artists") or []
        album = track.raw.get("album") or {}
        artist_id = (artists[0].get("id") if artists else None) or ""
        album_id = album.get("id") or ""
        if not artist_id or not album_id:
            return False

        track.service_artist_id = artist_id
        track.service_album_id = album_id
        track.service_artist_name = track.service_artist_name or artists[0].get("name") or ""
        track.service_album_name = track.service_album_name or album.get("name") or ""
        return True

    def _resolve_from_search(self, track: Track) -> None:
        details = {
            "track_id": track.track_id,
            "playlist_id": track.playlist_id,
            "artist_name": track.service_artist_name,
            "album_name": track.service_album_name,
        }

        try:
            record = self._catalog.find_album(track.service_artist_name, track.service_album_name)
        except PlaylistSyncError as e:
            raise ResolutionError(
                f"Catalog search failed for '{track.service_artist_name} - "
                f"{track.service_album_name}': {e.message}",
                details={**details, "cause_kind": e.kind.value, "original_error": e.message}
            ) from e

        if record is None:
            raise ResolutionError(
                f"No catalog album matches '{track.service_artist_name} - "
                f"{track.service_album_name}'",
                details=details
            )

        track.service_artist_id = record.artist_external_id
        track.service_album_id = record.external_id
        track.service_artist_name = record.artist_name
        track.service_album_name = record.name
