"""macOS Photos library catalog.

This module exposes the macOS Photos library as an :class:`AssetCatalog`
using the osxphotos library. User albums come from the library itself;
system albums (Favorites, Videos, ...) are synthesized from asset flags.

Example:
    >>> catalog = PhotosCatalog()
    >>> if catalog.check_permissions():
    ...     for album in catalog.list_albums():
    ...         print(album.display_name, len(catalog.list_assets(album)))
    ... else:
    ...     print(get_permission_instructions())
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from photo_export.catalog.base import (
    AssetCatalog,
    CatalogAccessDeniedError,
    CatalogError,
    CatalogNotFoundError,
    LocalFileHandle,
    ResourceUnavailableError,
)
from photo_export.core.types import Album, Asset, AssetResource, ResourceKind
from photo_export.utils.constants import (
    DEFAULT_PHOTOS_LIBRARY,
    PHOTOS_DATABASE_RELPATH,
    SMART_ALBUM_FAVORITES,
    SMART_ALBUM_LIVE_PHOTOS,
    SMART_ALBUM_SCREENSHOTS,
    SMART_ALBUM_SELFIES,
    SMART_ALBUM_TITLES,
    SMART_ALBUM_VIDEOS,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    import osxphotos

logger = logging.getLogger(__name__)


# Smart album membership predicates, in listing order
SMART_ALBUM_RULES: dict[str, Callable[[osxphotos.PhotoInfo], bool]] = {
    SMART_ALBUM_FAVORITES: lambda photo: bool(photo.favorite),
    SMART_ALBUM_VIDEOS: lambda photo: bool(photo.ismovie),
    SMART_ALBUM_SELFIES: lambda photo: bool(photo.selfie),
    SMART_ALBUM_SCREENSHOTS: lambda photo: bool(photo.screenshot),
    SMART_ALBUM_LIVE_PHOTOS: lambda photo: bool(photo.live_photo),
}


class PhotosExportHandle:
    """Resource handle that asks Photos to materialize an asset.

    Used for originals that are not resident locally. Photos downloads
    the asset from iCloud if needed, which can take a long time.
    """

    def __init__(self, photo: osxphotos.PhotoInfo, *, edited: bool = False) -> None:
        self._photo = photo
        self._edited = edited

    def write_to(self, destination: Path, *, allow_network_access: bool = True) -> None:
        filename = self._photo.original_filename
        if not allow_network_access:
            raise ResourceUnavailableError(
                filename, "stored in iCloud only and network access is disabled"
            )

        logger.debug(f"Requesting {filename} from Photos (edited={self._edited})")
        try:
            exported = self._photo.export(
                str(destination.parent),
                destination.name,
                edited=self._edited,
                overwrite=False,
                increment=False,
                use_photos_export=True,
            )
        except Exception as e:
            raise ResourceUnavailableError(filename, str(e)) from e

        if not exported:
            raise ResourceUnavailableError(filename, "Photos did not return the file")

        written = Path(exported[0])
        if written != destination and written.exists():
            written.rename(destination)

    def __repr__(self) -> str:
        return f"PhotosExportHandle({self._photo.uuid!r}, edited={self._edited})"


class PhotosCatalog(AssetCatalog):
    """Asset catalog for the macOS Photos library via osxphotos.

    The library database is opened lazily on first use. Listings are
    cached until :meth:`check_for_changes` detects that the library
    database was modified, or :meth:`close` is called.

    Attributes:
        library_path: Path to the Photos library (default or custom).
    """

    def __init__(
        self,
        library_path: Path | None = None,
        *,
        include_smart_albums: bool = True,
        include_hidden: bool = False,
    ) -> None:
        """Initialize the catalog.

        Args:
            library_path: Custom library path. None uses the system library.
            include_smart_albums: List synthesized smart albums.
            include_hidden: Include hidden assets in listings.

        Raises:
            CatalogNotFoundError: If a custom library path doesn't exist.
        """
        super().__init__()
        if library_path is not None and not library_path.exists():
            raise CatalogNotFoundError(library_path)

        self._library_path = library_path
        self._include_smart_albums = include_smart_albums
        self._include_hidden = include_hidden
        self._db: osxphotos.PhotosDB | None = None
        self._photos: dict[str, osxphotos.PhotoInfo] | None = None
        self._user_albums: dict[str, osxphotos.AlbumInfo] | None = None
        self._db_mtime: float | None = None
        self._permission_checked = False
        self._has_permission = False

    @property
    def library_path(self) -> Path:
        if self._library_path is not None:
            return self._library_path
        return DEFAULT_PHOTOS_LIBRARY

    @property
    def db(self) -> osxphotos.PhotosDB:
        """The PhotosDB instance, opened on first access.

        Raises:
            CatalogAccessDeniedError: If access is denied.
            CatalogNotFoundError: If the library cannot be found.
        """
        if self._db is None:
            self._db = self._open_db()
            self._db_mtime = self._database_mtime()
        return self._db

    def open(self) -> None:
        """Open the library now instead of on first use.

        Raises:
            CatalogAccessDeniedError: If access is denied.
            CatalogNotFoundError: If the library cannot be found.
        """
        _ = self.db

    def _open_db(self) -> osxphotos.PhotosDB:
        import osxphotos

        logger.info("Opening Photos library")
        try:
            if self._library_path is not None:
                db = osxphotos.PhotosDB(dbfile=str(self._library_path))
            else:
                db = osxphotos.PhotosDB()
        except FileNotFoundError as e:
            logger.error(f"Photos library not found: {e}")
            raise CatalogNotFoundError(self._library_path) from e
        except PermissionError as e:
            logger.error(f"Photos library access denied: {e}")
            raise CatalogAccessDeniedError() from e
        except Exception as e:
            # osxphotos reports missing Full Disk Access in several ways
            error_str = str(e).lower()
            if "permission" in error_str or "access" in error_str:
                logger.error(f"Photos library access denied: {e}")
                raise CatalogAccessDeniedError(str(e)) from e
            logger.error(f"Failed to open Photos library: {e}")
            raise CatalogError(f"Failed to open Photos library: {e}") from e

        logger.info(f"Photos library opened: {db.library_path}")
        return db

    def check_permissions(self) -> bool:
        """Return True if the library can be opened. The result is cached."""
        if self._permission_checked:
            return self._has_permission

        try:
            _ = self.db.library_path
            self._has_permission = True
        except CatalogError as e:
            self._has_permission = False
            logger.warning(f"Photos library permission check failed: {e}")

        self._permission_checked = True
        return self._has_permission

    def _photo_index(self) -> dict[str, osxphotos.PhotoInfo]:
        if self._photos is None:
            self._photos = {
                photo.uuid: photo
                for photo in self.db.photos()
                if self._include_hidden or not photo.hidden
            }
            logger.debug(f"Indexed {len(self._photos)} assets")
        return self._photos

    def _album_index(self) -> dict[str, osxphotos.AlbumInfo]:
        if self._user_albums is None:
            self._user_albums = {album.uuid: album for album in self.db.album_info}
        return self._user_albums

    def _photo_for(self, asset: Asset) -> osxphotos.PhotoInfo:
        try:
            return self._photo_index()[asset.asset_id]
        except KeyError:
            raise CatalogError(f"Asset not found in library: {asset.asset_id}") from None

    def _to_asset(self, photo: osxphotos.PhotoInfo) -> Asset:
        return Asset(asset_id=photo.uuid, filename=photo.original_filename or "")

    def _to_album(self, album: osxphotos.AlbumInfo) -> Album:
        return Album(album_id=album.uuid, display_name=album.title or None, is_smart=False)

    def _smart_albums(self) -> list[Album]:
        return [
            Album(album_id=album_id, display_name=SMART_ALBUM_TITLES[album_id], is_smart=True)
            for album_id in SMART_ALBUM_RULES
        ]

    def list_albums(self) -> list[Album]:
        albums: list[Album] = []
        if self._include_smart_albums:
            albums.extend(self._smart_albums())
        albums.extend(self._to_album(album) for album in self._album_index().values())
        return albums

    def list_assets(self, album: Album) -> list[Asset]:
        index = self._photo_index()

        if album.is_smart:
            rule = SMART_ALBUM_RULES.get(album.album_id)
            if rule is None:
                raise CatalogError(f"Unknown smart album: {album.album_id}")
            return [self._to_asset(photo) for photo in index.values() if rule(photo)]

        album_info = self._album_index().get(album.album_id)
        if album_info is None:
            raise CatalogError(f"Album not found in library: {album.display_name or album.album_id}")
        return [self._to_asset(photo) for photo in album_info.photos if photo.uuid in index]

    def list_all_assets(self) -> list[Asset]:
        return [self._to_asset(photo) for photo in self._photo_index().values()]

    def album_memberships_of(self, asset: Asset, *, user_only: bool = True) -> list[Album]:
        """Return the albums containing ``asset``.

        User albums are ordered by their position in the library's album
        list rather than by the per-asset membership order, so the result
        is the same on every call.
        """
        photo = self._photo_for(asset)
        member_ids = {album.uuid for album in photo.album_info}

        memberships: list[Album] = []
        if not user_only and self._include_smart_albums:
            memberships.extend(
                album for album in self._smart_albums() if SMART_ALBUM_RULES[album.album_id](photo)
            )
        memberships.extend(
            self._to_album(album)
            for album_id, album in self._album_index().items()
            if album_id in member_ids
        )
        return memberships

    def resources_of(self, asset: Asset) -> list[AssetResource]:
        """Return resources of ``asset``: edited rendition, original, then derived forms."""
        photo = self._photo_for(asset)
        original_name = photo.original_filename or photo.filename
        if not original_name:
            return []

        is_movie = bool(photo.ismovie)
        full_size_kind = ResourceKind.FULL_SIZE_VIDEO if is_movie else ResourceKind.FULL_SIZE_PHOTO
        original_kind = ResourceKind.VIDEO if is_movie else ResourceKind.PHOTO
        resources: list[AssetResource] = []

        if photo.hasadjustments:
            if photo.path_edited:
                edited_path = Path(photo.path_edited)
                edited_name = Path(original_name).stem + edited_path.suffix
                resources.append(
                    AssetResource(full_size_kind, edited_name, LocalFileHandle(edited_path), photo.uuid)
                )
            elif photo.iscloudasset:
                resources.append(
                    AssetResource(
                        full_size_kind,
                        original_name,
                        PhotosExportHandle(photo, edited=True),
                        photo.uuid,
                    )
                )

        if photo.path:
            resources.append(
                AssetResource(original_kind, original_name, LocalFileHandle(Path(photo.path)), photo.uuid)
            )
        elif photo.iscloudasset:
            resources.append(
                AssetResource(original_kind, original_name, PhotosExportHandle(photo), photo.uuid)
            )

        if photo.live_photo and photo.path_live_photo:
            live_path = Path(photo.path_live_photo)
            resources.append(
                AssetResource(ResourceKind.OTHER, live_path.name, LocalFileHandle(live_path), photo.uuid)
            )

        for derivative in photo.path_derivatives or []:
            derivative_path = Path(derivative)
            resources.append(
                AssetResource(
                    ResourceKind.OTHER,
                    derivative_path.name,
                    LocalFileHandle(derivative_path),
                    photo.uuid,
                )
            )

        return resources

    def _database_mtime(self) -> float | None:
        try:
            return (self.library_path / PHOTOS_DATABASE_RELPATH).stat().st_mtime
        except OSError:
            return None

    def check_for_changes(self) -> bool:
        """Poll the library database and notify observers if it changed.

        Returns:
            True if a change was detected and caches were dropped.
        """
        if self._db is None:
            return False

        mtime = self._database_mtime()
        if mtime is None or mtime == self._db_mtime:
            return False

        logger.info("Photos library changed, reloading")
        self._db = None
        self._photos = None
        self._user_albums = None
        self.notify_changed()
        return True

    def close(self) -> None:
        """Release the library connection; it is reopened on next use."""
        self._db = None
        self._photos = None
        self._user_albums = None
        self._db_mtime = None
        self._permission_checked = False
        logger.debug("Photos library connection closed")

    def __enter__(self) -> PhotosCatalog:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        self.close()


def get_permission_instructions() -> str:
    """Get instructions for granting Photos library access."""
    return """
Photos Library Access Denied

Photo Export needs access to your Photos library.

To grant access:
1. Open System Settings → Privacy & Security → Full Disk Access
2. Click the + button
3. Navigate to: /Applications/Utilities/Terminal.app
   (or the application running this command)
4. Add it to the list and enable the toggle
5. Restart the application and try again

Quick access command:
  open "x-apple.systempreferences:com.apple.preference.security?Privacy_AllFiles"
""".strip()


__all__ = [
    "PhotosCatalog",
    "PhotosExportHandle",
    "SMART_ALBUM_RULES",
    "get_permission_instructions",
]
