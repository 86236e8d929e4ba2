"""
Music catalog integration for playlist-sync.

Components:
    - SpotifyClient: spotipy wrapper mapping failures to FetchError
    - PlaylistMetadata, ArtistRecord, AlbumRecord: catalog records
    - CatalogService: contract consumed by the reconciliation engine
    - SpotifyCatalogService: CatalogService over the Spotify Web API

Usage:
    from playlist_sync.catalog import SpotifyClient, SpotifyCatalogService

    client = SpotifyClient.from_credentials(client_id, client_secret)
    catalog = SpotifyCatalogService(client)
    metadata, tracks = catalog.download_playlist("37i9dQZF1DXcBWIGoYBM5M")
"""

from playlist_sync.catalog.client import SpotifyClient
from playlist_sync.catalog.models import (
    AlbumRecord,
    ArtistRecord,
    PlaylistMetadata,
    parse_release_date,
)
from playlist_sync.catalog.service import CatalogService, SpotifyCatalogService

__all__ = [
    "SpotifyClient",
    "PlaylistMetadata",
    "ArtistRecord",
    "AlbumRecord",
    "parse_release_date",
    "CatalogService",
    "SpotifyCatalogService",
]
