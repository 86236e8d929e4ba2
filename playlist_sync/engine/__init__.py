"""
Reconciliation engine for playlist-sync.

Components:
    - ReleaseClassifier / is_new_release: new-release policy
    - MasterDataResolver: catalog ids for tracks that arrive without them
    - IdentityResolver: catalog ids to local Artist/Album rows
    - PlaylistDownloader: reconciles one playlist end to end

Usage:
    from playlist_sync.engine import PlaylistDownloader, ReleaseClassifier

    downloader = PlaylistDownloader(repositories, catalog, ReleaseClassifier(30))
    result = downloader.download(playlist_id)
"""

from playlist_sync.engine.downloader import PlaylistDownloader, TrackOutcome, TrackStatus
from playlist_sync.engine.identity import IdentityResolver
from playlist_sync.engine.master_data import MasterDataResolver
from playlist_sync.engine.release import ReleaseClassifier, is_new_release

__all__ = [
    "PlaylistDownloader",
    "TrackOutcome",
    "TrackStatus",
    "IdentityResolver",
    "MasterDataResolver",
    "ReleaseClassifier",
    "is_new_release",
]
