"""
Entity repositories over the SQLite database.

One repository per entity, each exposing lookup/store/update operations:

    get_by_id(id)                      -> entity or None
    get_by_external_id(external_id)    -> entity or None
    store(entity)                      -> new local id
    update(id, entity)                 -> entity

A lookup that finds nothing returns None: for the track dedup check that
is the normal case for a new track. Storage failures raise PersistError.
store() never overwrites: inserting a row that violates a UNIQUE
constraint raises PersistError with details['constraint'] = True.

Usage:
    repositories = Repositories.from_database(database)
    playlist = repositories.playlists.get_by_id(3)
    existing = repositories.tracks.get_by_playlist_and_external_id(3, "4cOd...")
"""

import sqlite3
from dataclasses import dataclass, replace

from playlist_sync.core.database import Database, parse_date, parse_datetime, to_iso
from playlist_sync.core.exceptions import PersistError
from playlist_sync.models import Album, AlbumType, Artist, Playlist, Release, Track


class PlaylistRepository:
    """
    Registered playlists, keyed locally by id and remotely by
    (service, playlist_id).

    Args:
        database: The Database to read and write.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Playlist:
        return Playlist(
            id=row["id"],
            playlist_id=row["playlist_id"],
            service=row["service"],
            name=row["name"] or "",
            description=row["description"] or "",
            last_changed=parse_datetime(row["last_changed"]),
        )

    def get_by_id(self, playlist_id: int) -> Playlist | None:
        row = self._database.fetch_one("SELECT * FROM playlists WHERE id = ?", (playlist_id,))
        return self._from_row(row) if row else None

    def get_by_external_id(self, service: str, external_id: str) -> Playlist | None:
        row = self._database.fetch_one(
            "SELECT * FROM playlists WHERE service = ? AND playlist_id = ?",
            (service, external_id)
        )
        return self._from_row(row) if row else None

    def get_all(self) -> list[Playlist]:
        rows = self._database.fetch_all("SELECT * FROM playlists ORDER BY id")
        return [self._from_row(row) for row in rows]

    def store(self, playlist: Playlist) -> int:
        """
        Register a playlist.

        Returns:
            The new local id.

        Raises:
            PersistError: If the playlist is already registered for its
                          service (details['constraint'] is set) or the
                          write fails.
        """
        now = self._database.now_iso()
        return self._database.insert("""
            INSERT INTO playlists (playlist_id, service, name, description, last_changed,
                                   created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            playlist.playlist_id, playlist.service, playlist.name, playlist.description,
            to_iso(playlist.last_changed), now, now
        ))

    def update(self, playlist_id: int, playlist: Playlist) -> Playlist:
        """
        Overwrite the mutable columns of a playlist.

        Raises:
            PersistError: If the playlist does not exist or the write fails.
        """
        changed = self._database.execute("""
            UPDATE playlists SET
                name = ?, description = ?, last_changed = ?, updated_at = ?
            WHERE id = ?
        """, (
            playlist.name, playlist.description, to_iso(playlist.last_changed),
            self._database.now_iso(), playlist_id
        ))
        if changed == 0:
            raise PersistError(
                f"Playlist not found: {playlist_id}",
                details={"playlist_id": playlist_id}
            )
        return replace(playlist, id=playlist_id)


class ArtistRepository:
    """
    Artists, unique by their catalog artist_id.

    Args:
        database: The Database to read and write.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Artist:
        return Artist(id=row["id"], artist_id=row["artist_id"], name=row["name"] or "")

    def get_by_id(self, artist_id: int) -> Artist | None:
        row = self._database.fetch_one("SELECT * FROM artists WHERE id = ?", (artist_id,))
        return self._from_row(row) if row else None

    def get_by_external_id(self, external_id: str) -> Artist | None:
        row = self._database.fetch_one("SELECT * FROM artists WHERE artist_id = ?", (external_id,))
        return self._from_row(row) if row else None

    def store(self, artist: Artist) -> int:
        """
        Insert a new artist and return its local id.

        Raises:
            PersistError: If the catalog id is already stored
                          (details['constraint'] is set) or the write fails.
        """
        now = self._database.now_iso()
        return self._database.insert(
            "INSERT INTO artists (artist_id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (artist.artist_id, artist.name, now, now)
        )

    def update(self, artist_id: int, artist: Artist) -> Artist:
        """Refresh the denormalized name of an artist."""
        changed = self._database.execute(
            "UPDATE artists SET name = ?, updated_at = ? WHERE id = ?",
            (artist.name, self._database.now_iso(), artist_id)
        )
        if changed == 0:
            raise PersistError(f"Artist not found: {artist_id}", details={"artist_id": artist_id})
        return replace(artist, id=artist_id)


class AlbumRepository:
    """
    Albums, unique by their catalog album_id, each owned by a local artist.

    Args:
        database: The Database to read and write.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Album:
        return Album(
            id=row["id"],
            album_id=row["album_id"],
            artist_id=row["artist_id"],
            name=row["name"] or "",
            album_type=AlbumType.from_catalog(row["album_type"]),
            release_date=parse_date(row["release_date"]),
        )

    def get_by_id(self, album_id: int) -> Album | None:
        row = self._database.fetch_one("SELECT * FROM albums WHERE id = ?", (album_id,))
        return self._from_row(row) if row else None

    def get_by_external_id(self, external_id: str) -> Album | None:
        row = self._database.fetch_one("SELECT * FROM albums WHERE album_id = ?", (external_id,))
        return self._from_row(row) if row else None

    def store(self, album: Album) -> int:
        """
        Insert a new album and return its local id.

        Raises:
            PersistError: If the catalog id is already stored
                          (details['constraint'] is set) or the write fails.
        """
        now = self._database.now_iso()
        return self._database.insert("""
            INSERT INTO albums (album_id, artist_id, name, album_type, release_date,
                                created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            album.album_id, album.artist_id, album.name, album.album_type.value,
            to_iso(album.release_date), now, now
        ))

    def update(self, album_id: int, album: Album) -> Album:
        """
        Overwrite owner, name, type and release date of an album.

        Raises:
            PersistError: If the album does not exist or the write fails.
        """
        changed = self._database.execute("""
            UPDATE albums SET
                artist_id = ?, name = ?, album_type = ?, release_date = ?, updated_at = ?
            WHERE id = ?
        """, (
            album.artist_id, album.name, album.album_type.value, to_iso(album.release_date),
            self._database.now_iso(), album_id
        ))
        if changed == 0:
            raise PersistError(f"Album not found: {album_id}", details={"album_id": album_id})
        return replace(album, id=album_id)


class ReleaseRepository:
    """
    Releases: albums that were freshly released when they first showed up
    in a playlist. Append-only.

    Args:
        database: The Database to read and write.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Release:
        return Release(
            id=row["id"],
            album_id=row["album_id"],
            playlist_id=row["playlist_id"],
            sync_date=parse_datetime(row["sync_date"]),
        )

    def get_by_id(self, release_id: int) -> Release | None:
        row = self._database.fetch_one("SELECT * FROM releases WHERE id = ?", (release_id,))
        return self._from_row(row) if row else None

    def get_by_playlist(self, playlist_id: int) -> list[Release]:
        """Releases of a playlist, newest sync first."""
        rows = self._database.fetch_all(
            "SELECT * FROM releases WHERE playlist_id = ? ORDER BY sync_date DESC, id DESC",
            (playlist_id,)
        )
        return [self._from_row(row) for row in rows]

    def store(self, release: Release) -> int:
        """
        Record a release and return its local id.

        Raises:
            PersistError: If the album or playlist does not exist or the
                          write fails.
        """
        return self._database.insert(
            "INSERT INTO releases (album_id, playlist_id, sync_date) VALUES (?, ?, ?)",
            (release.album_id, release.playlist_id, to_iso(release.sync_date))
        )


class TrackRepository:
    """
    Tracks seen in a playlist, unique by (playlist_id, track_id).

    The same catalog track in two playlists is two rows.

    Args:
        database: The Database to read and write.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Track:
        # Stored tracks are resolved: they carry local artist/album ids
        return Track(
            id=row["id"],
            playlist_id=row["playlist_id"],
            track_id=row["track_id"],
            name=row["name"] or "",
            artist_id=row["artist_id"],
            album_id=row["album_id"],
            master_data=True,
        )

    def get_by_id(self, track_id: int) -> Track | None:
        row = self._database.fetch_one("SELECT * FROM tracks WHERE id = ?", (track_id,))
        return self._from_row(row) if row else None

    def get_by_playlist_and_external_id(self, playlist_id: int, external_id: str) -> Track | None:
        """Dedup lookup on the (playlist_id, track_id) key. None means the track is new."""
        row = self._database.fetch_one(
            "SELECT * FROM tracks WHERE playlist_id = ? AND track_id = ?",
            (playlist_id, external_id)
        )
        return self._from_row(row) if row else None

    def get_by_playlist(self, playlist_id: int) -> list[Track]:
        rows = self._database.fetch_all(
            "SELECT * FROM tracks WHERE playlist_id = ? ORDER BY id", (playlist_id,)
        )
        return [self._from_row(row) for row in rows]

    def count_by_playlist(self, playlist_id: int) -> int:
        row = self._database.fetch_one(
            "SELECT COUNT(*) FROM tracks WHERE playlist_id = ?", (playlist_id,)
        )
        return row[0] if row else 0

    def store(self, track: Track) -> int:
        """
        Insert a track.

        Raises:
            PersistError: If the track has no playlist, or the (playlist_id,
                          track_id) pair is already stored (details['constraint']).
        """
        if track.playlist_id is None:
            raise PersistError(
                "Track has no playlist id",
                details={"track_id": track.track_id}
            )
        return self._database.insert("""
            INSERT INTO tracks (playlist_id, track_id, name, artist_id, album_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (
            track.playlist_id, track.track_id, track.name, track.artist_id, track.album_id,
            self._database.now_iso()
        ))


@dataclass
class Repositories:
    """All entity repositories, sharing one Database."""
    playlists: PlaylistRepository
    artists: ArtistRepository
    albums: AlbumRepository
    releases: ReleaseRepository
    tracks: TrackRepository

    @classmethod
    def from_database(cls, database: Database) -> "Repositories":
        return cls(
            playlists=PlaylistRepository(database),
            artists=ArtistRepository(database),
            albums=AlbumRepository(database),
            releases=ReleaseRepository(database),
            tracks=TrackRepository(database),
        )
