"""
Identity Resolver.

Maps catalog artist/album ids to local Artist/Album rows, creating the
row from catalog data the first time an id is seen.

Concurrent runs:
    Two runs may try to create the same artist or album at once. The
    UNIQUE constraint on the external id rejects the second insert; the
    loser re-reads the row the winner stored and uses it as an existing
    entity.
"""

import logging

from playlist_sync.catalog.service import CatalogService
from playlist_sync.core.exceptions import ErrorKind, PlaylistSyncError, ValidationError
from playlist_sync.core.repositories import Repositories
from playlist_sync.models import Album, Artist


module_logger = logging.getLogger(__name__)


class IdentityResolver:
    """
    Resolve artists and albums to local entities.

    Both methods raise:
        ValidationError: If the external id is empty.
        FetchError: If the catalog lookup for a new entity fails.
        PersistError: If reading or storing the entity fails.

    An entity is returned only once it is stored, with its local id set.
    """

    def __init__(
        self,
        repositories: Repositories,
        catalog: CatalogService,
        logger: logging.Logger | None = None
    ) -> None:
        self._repositories = repositories
        self._catalog = catalog
        self._logger = logger or module_logger

    def resolve_artist(self, external_id: str) -> Artist:
        """
        Resolve a catalog artist id to the local artist.

        A stored artist is returned as-is. An unseen one is fetched from
        the catalog and stored first.

        Args:
            external_id: Catalog artist id.

        Returns:
            The stored Artist, with its local id set.
        """
        if not external_id:
            raise ValidationError("Empty artist id", details={"artist_id": external_id})

        existing = self._repositories.artists.get_by_external_id(external_id)
        if existing is not None:
            return existing

        record = self._catalog.fetch_artist(external_id)
        artist = Artist(artist_id=external_id, name=record.name)

        try:
            artist.id = self._repositories.artists.store(artist)
        except PlaylistSyncError as e:
            stored = self._stored_after_conflict(e, self._repositories.artists.get_by_external_id,
                                                 external_id)
            if stored is None:
                raise
            return stored

        self._logger.debug(f"New artist {external_id} '{artist.name}' (id {artist.id})")
        return artist

    def resolve_album(self, external_id: str, artist_id: int | None) -> tuple[Album, bool]:
        """
        Resolve an album, owned by the local artist artist_id.

        Returns:
            (album, is_new): is_new is True only when this call created
            the album row. It gates release detection.
        """
        if not external_id:
            raise ValidationError("Empty album id", details={"album_id": external_id})

        existing = self._repositories.albums.get_by_external_id(external_id)
        if existing is not None:
            return existing, False

        record = self._catalog.fetch_album(external_id)
        album = Album(
            album_id=external_id,
            name=record.name,
            album_type=record.album_type,
            release_date=record.release_date,
            artist_id=artist_id,
        )

        try:
            album.id = self._repositories.albums.store(album)
        except PlaylistSyncError as e:
            stored = self._stored_after_conflict(e, self._repositories.albums.get_by_external_id,
                                                 external_id)
            if stored is None:
                raise
            return stored, False

        self._logger.debug(
            f"New {album.album_type.value} {external_id} '{album.name}' "
            f"released {album.release_date} (id {album.id})"
        )
        return album, True

    def _stored_after_conflict(self, error: PlaylistSyncError, lookup, external_id: str):
        """Row stored by another run in the meantime, or None if the failure was something else."""
        if error.kind is not ErrorKind.PERSIST or not error.details.get("constraint"):
            return None
        stored = lookup(external_id)
        if stored is not None:
            self._logger.debug(f"{external_id} was stored concurrently, using the stored row")
        return stored
