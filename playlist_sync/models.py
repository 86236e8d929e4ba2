"""
Domain entities for playlist-sync.

These dataclasses are the local, relational view of the music that has
appeared in reconciled playlists. They are what the repositories store and
return, and what the reconciliation engine works on.

Entities are mutable: the engine fills in resolved ids on Track objects
and copies remote metadata onto the Playlist during a run.

Identifiers:
    `id` fields are local database ids (None until stored).
    `*_id` string fields named after the service (playlist_id, artist_id,
    album_id, track_id on the external side) hold catalog identifiers.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from playlist_sync.core.exceptions import ValidationError


class AlbumType(str, Enum):
    """Album type as reported by the catalog."""
    ALBUM = "album"
    SINGLE = "single"
    COMPILATION = "compilation"
    OTHER = "other"

    @classmethod
    def from_catalog(cls, value: str | None) -> "AlbumType":
        """Map a catalog album_type string, falling back to OTHER."""
        if not value:
            return cls.OTHER
        try:
            return cls(value.lower())
        except ValueError:
            return cls.OTHER


@dataclass
class Playlist:
    """
    A playlist tracked locally.

    Attributes:
        id: Local id.
        playlist_id: External id of the playlist on the music service.
        service: Name of the music service hosting the playlist ("spotify").
        name: Display name, refreshed from the catalog on every run.
        description: Description, refreshed from the catalog on every run.
        last_changed: When a reconciliation run last added tracks.
                      None until the first run that persists a track.
    """
    playlist_id: str
    service: str = "spotify"
    name: str = ""
    description: str = ""
    last_changed: datetime | None = None
    id: int | None = None


@dataclass
class Artist:
    """An artist, created the first time one of its tracks is reconciled."""
    artist_id: str
    name: str
    id: int | None = None


@dataclass
class Album:
    """
    An album, created the first time one of its tracks is reconciled.

    Attributes:
        album_id: External id.
        artist_id: Local id of the owning Artist.
        album_type: Catalog album type; drives album/single counters.
        release_date: Release date, None if the catalog had none.
    """
    album_id: str
    name: str
    album_type: AlbumType = AlbumType.OTHER
    release_date: date | None = None
    artist_id: int | None = None
    id: int | None = None


@dataclass
class Release:
    """An album first observed as new, in a playlist, at sync_date."""
    album_id: int
    playlist_id: int
    sync_date: datetime
    id: int | None = None


@dataclass
class Track:
    """
    A track of a playlist.

    Persisted fields:
        playlist_id: Local id of the owning playlist.
        track_id: External id of the track. (playlist_id, track_id) is unique.
        name: Track title.
        artist_id, album_id: Local ids, set once identity is resolved.

    Resolution fields (not persisted):
        master_data: True if the catalog already delivered canonical
                     artist/album ids for this track.
        service_artist_id, service_album_id: External artist/album ids.
        service_artist_name, service_album_name: Display names.
        raw: The catalog payload the track was built from, if any.
    """
    track_id: str
    name: str = ""
    playlist_id: int | None = None
    artist_id: int | None = None
    album_id: int | None = None
    id: int | None = None

    master_data: bool = False
    service_artist_id: str = ""
    service_album_id: str = ""
    service_artist_name: str = ""
    service_album_name: str = ""
    raw: dict[str, Any] | None = field(default=None, repr=False, compare=False)

    def validate(self) -> None:
        """
        Check the track can be reconciled.

        Raises:
            ValidationError: If the track has no master data and is
                             missing the artist name or the album name
                             needed to look it up.
        """
        if not self.master_data and (not self.service_artist_name or not self.service_album_name):
            raise ValidationError(
                "missing service artist name or service album name",
                details={
                    "track_id": self.track_id,
                    "playlist_id": self.playlist_id,
                }
            )


@dataclass
class DownloadResult:
    """
    Summary of one reconciliation run.

    Attributes:
        downloaded: False only when the run could not start
                    (playlist not found locally).
        albums_found: Releases recorded this run for albums of type album.
        singles_found: Releases recorded this run for albums of type single.
        updated: True if at least one new track was persisted.
        tracks_added: Number of tracks persisted this run.
        tracks_skipped: Number of tracks skipped because of an error.
        catalog_error: Message of the catalog failure when the remote
                       playlist could not be fetched, else None.
    """
    downloaded: bool
    albums_found: int = 0
    singles_found: int = 0
    updated: bool = False
    tracks_added: int = 0
    tracks_skipped: int = 0
    catalog_error: str | None = None

    @property
    def degraded(self) -> bool:
        """True if the run went ahead without the remote track list."""
        return self.catalog_error is not None

    @classmethod
    def not_downloaded(cls) -> "DownloadResult":
        return cls(downloaded=False)
