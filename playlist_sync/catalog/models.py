"""
Catalog records for playlist-sync.

Immutable views of what the remote catalog returned, built from Spotify
Web API dictionaries. The engine turns them into local entities
(playlist_sync.models) through the Identity Resolver.

Release dates:
    Spotify reports release dates with a precision of 'year', 'month' or
    'day' ("1997", "1997-05", "1997-05-21"). parse_release_date() expands
    the coarser precisions to the first day of the period.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

from playlist_sync.models import AlbumType


def parse_release_date(value: str | None, precision: str | None = None) -> date | None:
    """
    Parse a Spotify release date.

    Args:
        value: The 'release_date' string.
        precision: The 'release_date_precision' string. When missing it is
                   guessed from the shape of value.

    Returns:
        The date, or None if value is empty or unparseable.

    Examples:
        >>> parse_release_date("2024-05-20", "day")
        datetime.date(2024, 5, 20)
        >>> parse_release_date("2024", "year")
        datetime.date(2024, 1, 1)
        >>> parse_release_date("0000", "year") is None
        True
    """
    if not value:
        return None

    if precision is None:
        precision = {4: "year", 7: "month"}.get(len(value), "day")

    try:
        if precision == "year":
            return date(int(value[:4]), 1, 1)
        if precision == "month":
            return date(int(value[:4]), int(value[5:7]), 1)
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


@dataclass(frozen=True)
class PlaylistMetadata:
    external_id: str
    name: str
    description: str = ""

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "PlaylistMetadata":
        return cls(
            external_id=data.get("id", ""),
            name=data.get("name") or "",
            description=data.get("description") or "",
        )


@dataclass(frozen=True)
class ArtistRecord:
    external_id: str
    name: str

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "ArtistRecord":
        return cls(external_id=data.get("id", ""), name=data.get("name") or "")


@dataclass(frozen=True)
class AlbumRecord:
    """
    An album as reported by the catalog.

    Attributes:
        external_id: Spotify album id.
        name: Album title.
        album_type: Mapped album type, OTHER for anything unknown.
        release_date: Parsed release date, None if missing or unparseable.
        artist_external_id: Spotify id of the album's first artist.
        artist_name: Name of the album's first artist.
    """
    external_id: str
    name: str
    album_type: AlbumType = AlbumType.OTHER
    release_date: date | None = None
    artist_external_id: str = ""
    artist_name: str = ""

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "AlbumRecord":
        """
        Build from a full or simplified Spotify album object.

        Example input (abridged):
            {
                "id": "1bt6q2SruMsBtcerNVtpZB",
                "name": "Nevermind",
                "album_type": "album",
                "release_date": "1991-09-24",
                "release_date_precision": "day",
                "artists": [{"id": "6olE6TJLqED3rqDCT0FyPh", "name": "Nirvana"}]
            }
        """
        artists = data.get("artists") or []
        first_artist = artists[0] if artists else {}

        return cls(
            external_id=data.get("id") or "",
            name=data.get("name") or "",
            album_type=AlbumType.from_catalog(data.get("album_type")),
            release_date=parse_release_date(
                data.get("release_date"), data.get("release_date_precision")
            ),
            artist_external_id=first_artist.get("id") or "",
            artist_name=first_artist.get("name") or "",
        )
