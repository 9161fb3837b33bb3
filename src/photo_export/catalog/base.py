"""Asset catalog interface consumed by the export engine.

A catalog is a read-only, enumerable view of a media library: its
albums, the assets in each album, album memberships of an asset, and the
downloadable resources of an asset. The engine only reads from it and
works on snapshots, so it never subscribes to change notifications.
Presentation layers that cache album lists can register change observers
and re-fetch on a "library changed" signal.

Contract:
    Every listing method returns its results in a stable order. In
    particular ``album_memberships_of`` must return memberships in the
    same order on every call, since the first named user album decides
    where an asset is filed in an all-assets export.
"""

from __future__ import annotations

import logging
import shutil
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from photo_export.utils.constants import COPY_BUFFER_SIZE

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from photo_export.core.types import Album, Asset, AssetResource

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base exception for asset catalog operations."""


class CatalogAccessDeniedError(CatalogError):
    """Raised when the process is not allowed to read the library.

    On macOS this usually means the terminal or application lacks
    Full Disk Access.
    """

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = (
                "Photos library access denied. "
                "Grant Full Disk Access permission in System Settings."
            )
        super().__init__(message)


class CatalogNotFoundError(CatalogError):
    """Raised when the library cannot be found."""

    def __init__(self, path: Path | None = None) -> None:
        if path:
            message = f"Photos library not found at: {path}"
        else:
            message = "Default Photos library not found"
        super().__init__(message)


class ResourceUnavailableError(CatalogError):
    """Raised when a resource's bytes cannot be retrieved.

    Covers originals that are missing locally and cannot be (or may not
    be) fetched from the remote store.
    """

    def __init__(self, filename: str, reason: str) -> None:
        self.filename = filename
        self.reason = reason
        super().__init__(f"'{filename}' is not available: {reason}")


class LocalFileHandle:
    """Resource handle backed by a file that is resident on local storage.

    Copies in chunks and preserves the source modification time.
    """

    def __init__(self, source: Path, buffer_size: int = COPY_BUFFER_SIZE) -> None:
        self.source = source
        self.buffer_size = buffer_size

    def write_to(self, destination: Path, *, allow_network_access: bool = True) -> None:
        _ = allow_network_access

        if not self.source.exists():
            raise ResourceUnavailableError(self.source.name, "source file is missing")

        with open(self.source, "rb") as fsrc, open(destination, "xb") as fdst:
            while True:
                chunk = fsrc.read(self.buffer_size)
                if not chunk:
                    break
                fdst.write(chunk)

        shutil.copystat(self.source, destination)

    def __repr__(self) -> str:
        return f"LocalFileHandle({str(self.source)!r})"


class AssetCatalog(ABC):
    """Read-only source of albums, assets and resources.

    Subclasses implement the listing methods. Change observers are
    handled here; a subclass calls :meth:`notify_changed` when it learns
    the underlying library changed.
    """

    def __init__(self) -> None:
        self._observers: list[Callable[[], None]] = []
        self._observers_lock = threading.Lock()

    @abstractmethod
    def list_albums(self) -> Sequence[Album]:
        """Return smart and user albums, in catalog order."""

    @abstractmethod
    def list_assets(self, album: Album) -> Sequence[Asset]:
        """Return the assets of ``album``, in catalog order."""

    @abstractmethod
    def list_all_assets(self) -> Sequence[Asset]:
        """Return every asset in the library, in catalog order."""

    @abstractmethod
    def album_memberships_of(self, asset: Asset, *, user_only: bool = True) -> Sequence[Album]:
        """Return the albums containing ``asset``, in a stable order.

        Args:
            asset: Asset to look up.
            user_only: Only return user-created (non-smart) albums.
        """

    @abstractmethod
    def resources_of(self, asset: Asset) -> Sequence[AssetResource]:
        """Return the downloadable resources of ``asset``."""

    def add_change_observer(self, callback: Callable[[], None]) -> None:
        with self._observers_lock:
            if callback not in self._observers:
                self._observers.append(callback)

    def remove_change_observer(self, callback: Callable[[], None]) -> None:
        with self._observers_lock:
            if callback in self._observers:
                self._observers.remove(callback)

    def notify_changed(self) -> None:
        """Signal every registered observer that the library changed."""
        with self._observers_lock:
            observers = list(self._observers)

        logger.debug("Library changed, notifying %d observer(s)", len(observers))
        for callback in observers:
            try:
                callback()
            except Exception:
                logger.exception("Library change observer failed")


__all__ = [
    "AssetCatalog",
    "CatalogAccessDeniedError",
    "CatalogError",
    "CatalogNotFoundError",
    "LocalFileHandle",
    "ResourceUnavailableError",
]
