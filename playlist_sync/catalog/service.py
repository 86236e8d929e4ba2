"""
Catalog Service: what the reconciliation engine needs from a music catalog.

CatalogService is the contract; SpotifyCatalogService implements it over
SpotifyClient. Tests substitute a scripted in-memory implementation.

Track construction from playlist items:
    - Removed items (track is null) and podcast episodes are dropped.
    - Regular tracks carry master data: the first artist's id and the
      album id come straight from the playlist payload.
    - Local files (is_local) have no catalog ids. They become tracks with
      master_data=False, identified by their URI and carrying only the
      artist/album names, for the Master Data Resolver to look up.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from rapidfuzz import fuzz

from playlist_sync.catalog.client import SpotifyClient
from playlist_sync.catalog.models import AlbumRecord, ArtistRecord, PlaylistMetadata
from playlist_sync.core.exceptions import FetchError
from playlist_sync.models import Track


module_logger = logging.getLogger(__name__)

# Minimum combined similarity (0-100) for a search result to count as a match
ALBUM_MATCH_THRESHOLD = 80.0


class CatalogService(ABC):
    """
    Remote catalog contract.

    Every method raises FetchError when the catalog cannot answer.
    """

    @abstractmethod
    def fetch_playlist(self, external_id: str) -> PlaylistMetadata:
        """Return the playlist name and description, without its tracks."""

    @abstractmethod
    def download_playlist(self, external_id: str) -> tuple[PlaylistMetadata, list[Track]]:
        """Return the playlist metadata and its tracks, in playlist order."""

    @abstractmethod
    def fetch_artist(self, external_id: str) -> ArtistRecord:
        ...

    @abstractmethod
    def fetch_album(self, external_id: str) -> AlbumRecord:
        ...

    @abstractmethod
    def find_album(self, artist_name: str, album_name: str) -> AlbumRecord | None:
        """Search for an album by display names. None if nothing matches."""


class SpotifyCatalogService(CatalogService):
    """
    CatalogService backed by the Spotify Web API.

    Args:
        client: The SpotifyClient to query.
        logger: Logger for dropped items and search diagnostics.
    """

    def __init__(self, client: SpotifyClient, logger: logging.Logger | None = None) -> None:
        self._client = client
        self._logger = logger or module_logger

    def fetch_playlist(self, external_id: str) -> PlaylistMetadata:
        return PlaylistMetadata.from_spotify_api(self._client.playlist(external_id))

    def download_playlist(self, external_id: str) -> tuple[PlaylistMetadata, list[Track]]:
        metadata = self.fetch_playlist(external_id)
        items = self._client.playlist_all_items(external_id)

        tracks = []
        for position, item in enumerate(items):
            track = self._track_from_item(item)
            if track is None:
                self._logger.debug(f"Dropped item {position} of playlist {external_id}: not a track")
                continue
            tracks.append(track)

        self._logger.debug(
            f"Fetched playlist {external_id} '{metadata.name}': "
            f"{len(tracks)} tracks out of {len(items)} items"
        )
        return metadata, tracks

    @staticmethod
    def _track_from_item(item: dict[str, Any]) -> Track | None:
        """
        Build a Track from one playlist item, or None if the item must be dropped.
        """
        data = item.get("track")
        if not data or data.get("type", "track") != "track":
            return None

        artists = data.get("artists") or []
        first_artist = artists[0] if artists else {}
        album = data.get("album") or {}

        if item.get("is_local") or data.get("is_local"):
            uri = data.get("uri")
            if not uri:
                return None
            return Track(
                track_id=uri,
                name=data.get("name") or "",
                master_data=False,
                service_artist_name=first_artist.get("name") or "",
                service_album_name=album.get("name") or "",
                raw=data,
            )

        if not data.get("id"):
            return None

        return Track(
            track_id=data["id"],
            name=data.get("name") or "",
            master_data=True,
            service_artist_id=first_artist.get("id") or "",
            service_album_id=album.get("id") or "",
            service_artist_name=first_artist.get("name") or "",
            service_album_name=album.get("name") or "",
            raw=data,
        )

    def fetch_artist(self, external_id: str) -> ArtistRecord:
        record = ArtistRecord.from_spotify_api(self._client.artist(external_id))
        if not record.external_id:
            raise FetchError(
                f"Artist payload without id: {external_id}",
                details={"artist_id": external_id}
            )
        return record

    def fetch_album(self, external_id: str) -> AlbumRecord:
        record = AlbumRecord.from_spotify_api(self._client.album(external_id))
        if not record.external_id:
            raise FetchError(
                f"Album payload without id: {external_id}",
                details={"album_id": external_id}
            )
        return record

    def find_album(self, artist_name: str, album_name: str) -> AlbumRecord | None:
        """
        Search for an album, keeping the best fuzzy match.

        Each candidate is scored with the mean of the album-title and
        first-artist similarities (rapidfuzz ratio, case-insensitive).
        Candidates under ALBUM_MATCH_THRESHOLD are discarded.
        """
        candidates = self._client.search_albums(artist_name, album_name)

        best: AlbumRecord | None = None
        best_score = 0.0
        for candidate in candidates:
            record = AlbumRecord.from_spotify_api(candidate)
            if not record.external_id or not record.artist_external_id:
                continue

            score = (
                fuzz.ratio(album_name.lower(), record.name.lower())
                + fuzz.ratio(artist_name.lower(), record.artist_name.lower())
            ) / 2
            if score > best_score:
                best, best_score = record, score

        if best is None or best_score < ALBUM_MATCH_THRESHOLD:
            self._logger.debug(
                f"No album match for '{artist_name} - {album_name}' "
                f"({len(candidates)} candidates, best score {best_score:.1f})"
            )
            return None

        return best
