"""
Utility functions for playlist-sync.

Usage:
    from playlist_sync.utils import ensure_directory, extract_playlist_id
"""

import re
from pathlib import Path


# Spotify ids are 22 base62 characters
_SPOTIFY_ID_PATTERN = re.compile(r"^[0-9A-Za-z]{22}$")


def ensure_directory(path: Path) -> Path:
    """
    Create path and its parents if missing, and return it.

    Raises:
        OSError: If the directory cannot be created.
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def extract_spotify_id(url_or_id: str) -> str:
    """
    Extract the Spotify id from a URL or URI, or return the id as-is.

    Examples:
        extract_spotify_id("https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=x")
        # Returns: "37i9dQZF1DXcBWIGoYBM5M"

        extract_spotify_id("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M")
        # Returns: "37i9dQZF1DXcBWIGoYBM5M"
    """
    url_or_id = url_or_id.strip()

    if url_or_id.startswith("spotify:"):
        return url_or_id.split(":")[-1]

    if "spotify.com" in url_or_id:
        url_or_id = url_or_id.split("?")[0]
        return url_or_id.rstrip("/").split("/")[-1]

    return url_or_id


def extract_playlist_id(url: str) -> str:
    """
    Extract the playlist id from a Spotify playlist URL, URI or bare id.

    Raises:
        ValueError: If url points to something other than a playlist, or
                    the id is not a valid Spotify id.
    """
    is_bare_id = "spotify" not in url
    if not is_bare_id and "playlist" not in url:
        raise ValueError(f"Not a playlist URL: {url}")

    playlist_id = extract_spotify_id(url)
    if not _SPOTIFY_ID_PATTERN.match(playlist_id):
        raise ValueError(f"Invalid Spotify playlist id: {playlist_id}")
    return playlist_id
