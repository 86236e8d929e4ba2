"""Test configuration and fixtures"""

import tempfile
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from playlist_sync.catalog.models import AlbumRecord, ArtistRecord, PlaylistMetadata
from playlist_sync.catalog.service import CatalogService
from playlist_sync.core.database import Database
from playlist_sync.core.exceptions import FetchError
from playlist_sync.core.repositories import Repositories
from playlist_sync.engine.release import ReleaseClassifier
from playlist_sync.models import AlbumType, Playlist, Track


# Fixed sync time used by the engine tests
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

PLAYLIST_EXTERNAL_ID = "37i9dQZF1DXcBWIGoYBM5M"


class FakeCatalog(CatalogService):
    """
    Scripted in-memory CatalogService.

    Tracks are kept as keyword dictionaries so that every download returns
    fresh Track objects, like a real catalog response would.
    """

    def __init__(self):
        self.metadata = PlaylistMetadata(PLAYLIST_EXTERNAL_ID, "Release Radar", "New music")
        self.track_specs: list[dict] = []
        self.artists: dict[str, ArtistRecord] = {}
        self.albums: dict[str, AlbumRecord] = {}
        self.search_results: dict[tuple[str, str], AlbumRecord] = {}
        self.playlist_error: Exception | None = None
        self.failing_artists: set[str] = set()
        self.failing_albums: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def add_track(self, track_id, artist_id="artist_1", album_id="album_1",
                  album_type=AlbumType.ALBUM, release_date=date(2024, 5, 20), **overrides):
        """Script a master-data track and the catalog records behind it."""
        self.artists.setdefault(artist_id, ArtistRecord(artist_id, f"Artist {artist_id}"))
        self.albums.setdefault(album_id, AlbumRecord(
            external_id=album_id,
            name=f"Album {album_id}",
            album_type=album_type,
            release_date=release_date,
            artist_external_id=artist_id,
            artist_name=f"Artist {artist_id}",
        ))
        spec = {
            'track_id': track_id,
            'name': f"Song {track_id}",
            'master_data': True,
            'service_artist_id': artist_id,
            'service_album_id': album_id,
            'service_artist_name': f"Artist {artist_id}",
            'service_album_name': f"Album {album_id}",
        }
        spec.update(overrides)
        self.track_specs.append(spec)

    def fetch_playlist(self, external_id):
        self.calls.append(("fetch_playlist", external_id))
        if self.playlist_error is not None:
            raise self.playlist_error
        return self.metadata

    def download_playlist(self, external_id):
        self.calls.append(("download_playlist", external_id))
        if self.playlist_error is not None:
            raise self.playlist_error
        return self.metadata, [Track(**spec) for spec in self.track_specs]

    def fetch_artist(self, external_id):
        self.calls.append(("fetch_artist", external_id))
        if external_id in self.failing_artists or external_id not in self.artists:
            raise FetchError(f"Failed to fetch artist {external_id}", details={"artist_id": external_id})
        return self.artists[external_id]

    def fetch_album(self, external_id):
        self.calls.append(("fetch_album", external_id))
        if external_id in self.failing_albums or external_id not in self.albums:
            raise FetchError(f"Failed to fetch album {external_id}", details={"album_id": external_id})
        return self.albums[external_id]

    def find_album(self, artist_name, album_name):
        self.calls.append(("find_album", f"{artist_name} - {album_name}"))
        return self.search_results.get((artist_name, album_name))

    def resolution_calls(self):
        return [call for call in self.calls if call[0] not in ("fetch_playlist", "download_playlist")]


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def database(temp_dir):
    """On-disk SQLite database in the temporary directory"""
    db = Database(temp_dir / "music.db")
    yield db
    db.close()


@pytest.fixture
def repositories(database):
    return Repositories.from_database(database)


@pytest.fixture
def playlist(repositories):
    """A stored playlist, never reconciled"""
    playlist = Playlist(playlist_id=PLAYLIST_EXTERNAL_ID, name="Old name", description="Old description")
    playlist.id = repositories.playlists.store(playlist)
    return playlist


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def classifier():
    """30-day release window, clock frozen at NOW"""
    return ReleaseClassifier(window_days=30, clock=lambda: NOW)


@pytest.fixture
def sample_track_item():
    """Sample Spotify playlist item for a catalog track"""
    return {
        'added_at': '2024-05-28T09:00:00Z',
        'is_local': False,
        'track': {
            'id': '4cOdK2wGLETKBW3PvgPWqT',
            'type': 'track',
            'uri': 'spotify:track:4cOdK2wGLETKBW3PvgPWqT',
            'name': 'Test Song',
            'artists': [
                {'id': '0OdUWJ0sBjDrqHygGUXeCF', 'name': 'Test Artist'},
                {'id': '1vCWHaC5f2uS3yhpwWbIA6', 'name': 'Featured Artist'}
            ],
            'album': {
                'id': '1bt6q2SruMsBtcerNVtpZB',
                'name': 'Test Album',
                'album_type': 'album',
                'release_date': '2024-05-20',
                'release_date_precision': 'day',
                'artists': [{'id': '0OdUWJ0sBjDrqHygGUXeCF', 'name': 'Test Artist'}]
            },
            'duration_ms': 210000,
            'is_local': False
        }
    }


@pytest.fixture
def sample_local_item():
    """Sample Spotify playlist item for a local file"""
    return {
        'added_at': '2024-05-28T09:00:00Z',
        'is_local': True,
        'track': {
            'id': None,
            'type': 'track',
            'uri': 'spotify:local:Test+Artist:Test+Album:Local+Song:180',
            'name': 'Local Song',
            'artists': [{'id': None, 'name': 'Test Artist'}],
            'album': {'id': None, 'name': 'Test Album'},
            'duration_ms': 180000,
            'is_local': True
        }
    }
