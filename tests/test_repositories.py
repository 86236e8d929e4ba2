"""Test the SQLite database and entity repositories"""

from datetime import date, datetime, timezone

import pytest

from playlist_sync.core.database import DATABASE_VERSION, Database
from playlist_sync.core.exceptions import ErrorKind, PersistError
from playlist_sync.models import Album, AlbumType, Artist, Playlist, Release, Track


class TestDatabase:
    """Test Database setup"""

    def test_missing_parent_directory(self, temp_dir):
        """Test a database in a missing directory is refused"""
        with pytest.raises(PersistError) as exc_info:
            Database(temp_dir / "missing" / "music.db")

        assert exc_info.value.kind is ErrorKind.PERSIST

    def test_reopen_keeps_data(self, temp_dir):
        """Test rows survive closing and reopening the file"""
        with Database(temp_dir / "music.db") as db:
            db.insert(
                "INSERT INTO artists (artist_id, name) VALUES (?, ?)", ("a1", "Artist")
            )

        with Database(temp_dir / "music.db") as db:
            row = db.fetch_one("SELECT name FROM artists WHERE artist_id = ?", ("a1",))
            assert row["name"] == "Artist"

    def test_version_mismatch(self, temp_dir):
        """Test a database from another schema version is refused"""
        with Database(temp_dir / "music.db") as db:
            db.execute("UPDATE schema_version SET version = ?", (DATABASE_VERSION + 1,))

        with pytest.raises(PersistError) as exc_info:
            Database(temp_dir / "music.db")

        assert exc_info.value.details["actual"] == DATABASE_VERSION + 1


class TestPlaylistRepository:
    """Test PlaylistRepository"""

    def test_store_and_lookup(self, repositories):
        """Test a stored playlist is found by local and external id"""
        playlist_id = repositories.playlists.store(Playlist(playlist_id="ext1", name="Mix"))

        by_id = repositories.playlists.get_by_id(playlist_id)
        by_external = repositories.playlists.get_by_external_id("spotify", "ext1")

        assert by_id == by_external
        assert by_id.name == "Mix"
        assert by_id.last_changed is None

    def test_not_found(self, repositories):
        """Test lookups return None when nothing matches"""
        assert repositories.playlists.get_by_id(42) is None
        assert repositories.playlists.get_by_external_id("spotify", "nope") is None

    def test_duplicate_external_id(self, repositories):
        """Test the same playlist cannot be registered twice"""
        repositories.playlists.store(Playlist(playlist_id="ext1"))

        with pytest.raises(PersistError) as exc_info:
            repositories.playlists.store(Playlist(playlist_id="ext1"))

        assert exc_info.value.details["constraint"] is True

    def test_update(self, repositories):
        """Test update overwrites name, description and last_changed"""
        playlist_id = repositories.playlists.store(Playlist(playlist_id="ext1", name="Old"))
        changed_at = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

        updated = repositories.playlists.update(
            playlist_id, Playlist(playlist_id="ext1", name="New", description="Desc", last_changed=changed_at)
        )

        assert updated.id == playlist_id
        stored = repositories.playlists.get_by_id(playlist_id)
        assert stored.name == "New"
        assert stored.description == "Desc"
        assert stored.last_changed == changed_at

    def test_update_unknown(self, repositories):
        """Test updating a missing playlist raises PersistError"""
        with pytest.raises(PersistError):
            repositories.playlists.update(99, Playlist(playlist_id="ext1"))

    def test_get_all(self, repositories):
        """Test get_all returns playlists in insertion order"""
        repositories.playlists.store(Playlist(playlist_id="a"))
        repositories.playlists.store(Playlist(playlist_id="b"))

        assert [p.playlist_id for p in repositories.playlists.get_all()] == ["a", "b"]


class TestArtistAndAlbumRepositories:
    """Test ArtistRepository and AlbumRepository"""

    def test_artist_roundtrip_and_rename(self, repositories):
        """Test an artist can be stored, found and renamed"""
        artist_id = repositories.artists.store(Artist(artist_id="a1", name="Old Name"))
        repositories.artists.update(artist_id, Artist(artist_id="a1", name="New Name"))

        assert repositories.artists.get_by_external_id("a1").name == "New Name"
        assert repositories.artists.get_by_id(artist_id).artist_id == "a1"

    def test_album_fields(self, repositories):
        """Test album type and release date survive storage"""
        artist_id = repositories.artists.store(Artist(artist_id="a1", name="Artist"))
        album_id = repositories.albums.store(Album(
            album_id="al1", name="Album", album_type=AlbumType.SINGLE,
            release_date=date(2024, 5, 20), artist_id=artist_id
        ))

        album = repositories.albums.get_by_id(album_id)
        assert album.album_type is AlbumType.SINGLE
        assert album.release_date == date(2024, 5, 20)
        assert album.artist_id == artist_id
        assert repositories.albums.get_by_external_id("al1") == album

    def test_album_without_release_date(self, repositories):
        """Test a missing release date is stored as None"""
        album_id = repositories.albums.store(Album(album_id="al1", name="Album"))

        assert repositories.albums.get_by_id(album_id).release_date is None

    def test_duplicate_artist(self, repositories):
        """Test an external artist id is stored only once"""
        repositories.artists.store(Artist(artist_id="a1", name="Artist"))

        with pytest.raises(PersistError) as exc_info:
            repositories.artists.store(Artist(artist_id="a1", name="Artist"))

        assert exc_info.value.details["constraint"] is True


class TestReleaseRepository:
    """Test ReleaseRepository"""

    def test_store_and_list_by_playlist(self, repositories, playlist):
        """Test releases are listed newest first"""
        album_1 = repositories.albums.store(Album(album_id="al1", name="One"))
        album_2 = repositories.albums.store(Album(album_id="al2", name="Two"))
        older = datetime(2024, 5, 1, tzinfo=timezone.utc)
        newer = datetime(2024, 6, 1, tzinfo=timezone.utc)

        release_id = repositories.releases.store(Release(album_id=album_1, playlist_id=playlist.id, sync_date=older))
        repositories.releases.store(Release(album_id=album_2, playlist_id=playlist.id, sync_date=newer))

        releases = repositories.releases.get_by_playlist(playlist.id)
        assert [r.album_id for r in releases] == [album_2, album_1]
        assert repositories.releases.get_by_id(release_id).sync_date == older

    def test_unknown_album(self, repositories, playlist):
        """Test a release must reference a stored album"""
        with pytest.raises(PersistError):
            repositories.releases.store(
                Release(album_id=999, playlist_id=playlist.id, sync_date=datetime.now(timezone.utc))
            )


class TestTrackRepository:
    """Test TrackRepository and the (playlist, track) dedup key"""

    def test_store_and_dedup_lookup(self, repositories, playlist):
        """Test a stored track is found by its dedup key"""
        track_id = repositories.tracks.store(Track(track_id="t1", name="Song", playlist_id=playlist.id))

        found = repositories.tracks.get_by_playlist_and_external_id(playlist.id, "t1")
        assert found.id == track_id
        assert found.name == "Song"
        assert repositories.tracks.get_by_id(track_id) == found

    def test_new_track_lookup(self, repositories, playlist):
        """Test the dedup lookup returns None for an unseen track"""
        assert repositories.tracks.get_by_playlist_and_external_id(playlist.id, "t1") is None

    def test_duplicate_rejected_not_overwritten(self, repositories, playlist):
        """Test a duplicate (playlist, track) pair is rejected and the first row kept"""
        repositories.tracks.store(Track(track_id="t1", name="First", playlist_id=playlist.id))

        with pytest.raises(PersistError) as exc_info:
            repositories.tracks.store(Track(track_id="t1", name="Second", playlist_id=playlist.id))

        assert exc_info.value.details["constraint"] is True
        assert repositories.tracks.count_by_playlist(playlist.id) == 1
        assert repositories.tracks.get_by_playlist_and_external_id(playlist.id, "t1").name == "First"

    def test_same_track_in_two_playlists(self, repositories, playlist):
        """Test the dedup key is per playlist"""
        other_id = repositories.playlists.store(Playlist(playlist_id="other"))

        repositories.tracks.store(Track(track_id="t1", playlist_id=playlist.id))
        repositories.tracks.store(Track(track_id="t1", playlist_id=other_id))

        assert repositories.tracks.count_by_playlist(playlist.id) == 1
        assert repositories.tracks.count_by_playlist(other_id) == 1

    def test_track_without_playlist(self, repositories):
        """Test a track must belong to a playlist"""
        with pytest.raises(PersistError):
            repositories.tracks.store(Track(track_id="t1"))
