"""
Spotify Web API client for playlist-sync.

Thin wrapper around spotipy that converts every failure into FetchError,
so the rest of the application never sees spotipy or requests exceptions.

Unlike a process-wide singleton, a SpotifyClient is built explicitly and
handed to whatever needs it (normally a SpotifyCatalogService).

Authentication:
    Client Credentials only: playlist-sync reads public playlists and
    catalog metadata, it never touches user libraries.

Usage:
    client = SpotifyClient.from_credentials(
        client_id=config.spotify.client_id,
        client_secret=config.spotify.client_secret
    )
    items = client.playlist_all_items("37i9dQZF1DXcBWIGoYBM5M")
"""

from typing import Any

import requests
import spotipy
from spotipy.oauth2 import SpotifyClientCredentials, SpotifyOauthError

from playlist_sync.core.exceptions import FetchError


# Maximum page size accepted by the playlist items endpoint
PLAYLIST_PAGE_SIZE = 100


def _fetch_error(action: str, error: Exception, details: dict[str, Any]) -> FetchError:
    """Translate a spotipy/requests exception into a FetchError."""
    status = getattr(error, "http_status", None)
    details = {**details, "http_status": status, "original_error": str(error)}

    if status == 429:
        return FetchError(f"Rate limited while fetching {action}", details=details, is_rate_limit=True)
    # Token requests fail with SpotifyOauthError, which carries no http_status
    if isinstance(error, SpotifyOauthError) or status in (401, 403):
        return FetchError(f"Spotify rejected the credentials while fetching {action}",
                          details=details, is_auth_error=True)
    if status == 404:
        return FetchError(f"Not found on Spotify: {action}", details=details)
    return FetchError(f"Failed to fetch {action}: {error}", details=details)


class SpotifyClient:
    """
    Wrapper over spotipy.Spotify.

    Every method returns the raw JSON dictionaries of the Web API.

    Raises (all methods):
        FetchError: On HTTP errors, transport errors or empty responses.
                    is_rate_limit is set for HTTP 429, is_auth_error for
                    HTTP 401/403 and for failed token requests.
    """

    def __init__(self, spotify: spotipy.Spotify) -> None:
        self._spotify = spotify

    @classmethod
    def from_credentials(cls, client_id: str, client_secret: str) -> "SpotifyClient":
        """
        Build a client using the Client Credentials flow.

        A one-result search is issued to check the credentials right away,
        so a bad client_id/secret fails at startup instead of mid-run.

        Raises:
            FetchError: With is_auth_error=True if the credentials don't work.
        """
        try:
            auth_manager = SpotifyClientCredentials(
                client_id=client_id,
                client_secret=client_secret
            )
            spotify = spotipy.Spotify(auth_manager=auth_manager)
            spotify.search(q="test", type="track", limit=1)
        except (spotipy.SpotifyException, SpotifyOauthError,
                requests.exceptions.RequestException) as e:
            raise FetchError(
                f"Spotify authentication failed: {e}",
                details={"original_error": str(e)},
                is_auth_error=True
            ) from e

        return cls(spotify)

    def _call(self, action: str, details: dict[str, Any], method: str, *args: Any,
              **kwargs: Any) -> dict[str, Any]:
        try:
            result = getattr(self._spotify, method)(*args, **kwargs)
        except (spotipy.SpotifyException, SpotifyOauthError,
                requests.exceptions.RequestException) as e:
            raise _fetch_error(action, e, details) from e

        if result is None:
            raise FetchError(f"Empty response while fetching {action}", details=details)
        return result

    def playlist(self, playlist_id: str) -> dict[str, Any]:
        """Get playlist metadata (id, name, description, snapshot_id)."""
        return self._call(
            f"playlist {playlist_id}", {"playlist_id": playlist_id},
            "playlist", playlist_id, fields="id,name,description,snapshot_id"
        )

    def playlist_items(
        self,
        playlist_id: str,
        limit: int = PLAYLIST_PAGE_SIZE,
        offset: int = 0
    ) -> dict[str, Any]:
        """
        Get one page of playlist items.

        Returns:
            Paging object with 'items', 'total' and 'next' (None on the
            last page).
        """
        return self._call(
            f"items of playlist {playlist_id}", {"playlist_id": playlist_id, "offset": offset},
            "playlist_items", playlist_id,
            limit=min(limit, PLAYLIST_PAGE_SIZE), offset=offset, additional_types=["track"]
        )

    def playlist_all_items(self, playlist_id: str) -> list[dict[str, Any]]:
        """
        Get every item of a playlist, following pagination.

        Items are returned in playlist order.
        """
        all_items: list[dict[str, Any]] = []
        offset = 0

        while True:
            response = self.playlist_items(playlist_id, limit=PLAYLIST_PAGE_SIZE, offset=offset)
            all_items.extend(response.get("items", []))

            if response.get("next") is None:
                break
            offset += PLAYLIST_PAGE_SIZE

        return all_items

    def artist(self, artist_id: str) -> dict[str, Any]:
        return self._call(f"artist {artist_id}", {"artist_id": artist_id}, "artist", artist_id)

    def album(self, album_id: str) -> dict[str, Any]:
        return self._call(f"album {album_id}", {"album_id": album_id}, "album", album_id)

    def search_albums(self, artist_name: str, album_name: str, limit: int = 5) -> list[dict[str, Any]]:
        """
        Search the catalog for albums matching an artist and an album name.

        Returns:
            Simplified album objects, best match first. Empty if none.
        """
        query = f'album:"{album_name}" artist:"{artist_name}"'
        result = self._call(
            f"album search {query}", {"artist_name": artist_name, "album_name": album_name},
            "search", q=query, type="album", limit=limit
        )
        return result.get("albums", {}).get("items", [])
