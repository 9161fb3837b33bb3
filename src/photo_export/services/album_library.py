"""Album list cache for presentation layers.

:class:`AlbumLibrary` keeps the album list a user picks from. It listens
for the catalog's "library changed" signal and re-fetches the list. The
export engine does not use it; exports run on their own snapshots.

Example:
    >>> library = AlbumLibrary(catalog)
    >>> for album in library.albums:
    ...     print(album.display_name)
    >>> library.close()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from photo_export.catalog.base import CatalogError

if TYPE_CHECKING:
    from collections.abc import Callable

    from photo_export.catalog.base import AssetCatalog
    from photo_export.core.types import Album

logger = logging.getLogger(__name__)


def sort_albums(albums: list[Album]) -> list[Album]:
    """Sort albums by display name; albums without a name sort first."""
    return sorted(albums, key=lambda album: album.display_name or "")


class AlbumLibrary:
    """Sorted list of the catalog's smart and user albums.

    Args:
        catalog: Catalog to read albums from.
        on_change: Called with the new album list after each refresh.
        observe: Subscribe to the catalog's change notifications.
    """

    def __init__(
        self,
        catalog: AssetCatalog,
        *,
        on_change: Callable[[list[Album]], None] | None = None,
        observe: bool = True,
    ) -> None:
        self._catalog = catalog
        self._on_change = on_change
        self._lock = threading.Lock()
        self._albums: list[Album] = []
        self._is_loading = False
        self._last_error: str | None = None
        self._observing = observe

        if observe:
            catalog.add_change_observer(self.library_did_change)
        self.refresh()

    @property
    def albums(self) -> list[Album]:
        with self._lock:
            return list(self._albums)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def last_error(self) -> str | None:
        """Message of the last failed refresh, or None."""
        return self._last_error

    def find(self, name: str) -> list[Album]:
        """Return albums whose display name equals ``name``."""
        return [album for album in self.albums if album.display_name == name]

    def refresh(self) -> list[Album]:
        """Re-fetch the album list from the catalog.

        A failed fetch keeps the previous list and records the error.
        """
        self._is_loading = True
        try:
            albums = sort_albums(list(self._catalog.list_albums()))
        except CatalogError as e:
            logger.warning(f"Failed to load albums: {e}")
            self._last_error = str(e)
            return self.albums
        finally:
            self._is_loading = False

        with self._lock:
            self._albums = albums
        self._last_error = None
        logger.debug(f"Loaded {len(albums)} albums")

        if self._on_change is not None:
            self._on_change(list(albums))
        return list(albums)

    def library_did_change(self) -> None:
        logger.info("Library changed, refreshing album list")
        self.refresh()

    def close(self) -> None:
        if self._observing:
            self._catalog.remove_change_observer(self.library_did_change)
            self._observing = False

    def __enter__(self) -> AlbumLibrary:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.close()


__all__ = ["AlbumLibrary", "sort_albums"]
