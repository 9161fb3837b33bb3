"""Destination planning for exported resources.

Every exported file lands at
``<destination_root>/<album name or placeholder>/<original filename>``.
How the album is chosen depends on the export mode:

* Selected albums: the album being iterated. An album without a name is
  written to ``UnknownAlbum``.
* All assets: the first user album with a non-empty name, in the
  catalog's stable membership order. Assets without one go to
  ``Unorganized``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from photo_export.core.types import ExportMode
from photo_export.utils.constants import UNKNOWN_ALBUM_FOLDER, UNORGANIZED_FOLDER

if TYPE_CHECKING:
    from collections.abc import Iterable

    from photo_export.core.types import Album, AssetResource


@dataclass(frozen=True)
class PlannedDestination:
    """Where one resource is written, relative to the destination root.

    Attributes:
        subdirectory: Album directory name (or a placeholder).
        filename: Output filename.
    """

    subdirectory: str
    filename: str

    def path(self, root: Path) -> Path:
        return root / self.subdirectory / self.filename


def folder_name(name: str, placeholder: str) -> str:
    """Turn an album name into a single directory name below the root.

    Path separators become ``_`` so a name like ``Trip/2024`` does not
    nest, and ``.`` or ``..`` fall back to ``placeholder``.
    """
    name = name.replace("/", "_").replace("\\", "_")
    if name in (".", ".."):
        return placeholder
    return name


def album_folder_name(album: Album | None) -> str:
    """Directory name for a selected album."""
    if album is None or not album.has_name:
        return UNKNOWN_ALBUM_FOLDER
    return folder_name(album.display_name, UNKNOWN_ALBUM_FOLDER)


def infer_album(memberships: Iterable[Album]) -> Album | None:
    """Pick the album an asset is filed under in an all-assets export.

    Smart albums and albums with an empty or missing name are ignored.
    """
    for album in memberships:
        if not album.is_smart and album.has_name:
            return album
    return None


def inferred_folder_name(memberships: Iterable[Album]) -> str:
    album = infer_album(memberships)
    if album is None:
        return UNORGANIZED_FOLDER
    return folder_name(album.display_name, UNORGANIZED_FOLDER)


def plan_destination(
    resource: AssetResource,
    mode: ExportMode,
    album: Album | None = None,
    memberships: Iterable[Album] = (),
) -> PlannedDestination:
    """Plan the subdirectory and filename for ``resource``.

    Args:
        resource: Selected resource; its original filename is used as-is.
        mode: Export mode of the job.
        album: Album being iterated (SELECTED_ALBUMS mode).
        memberships: Album memberships of the asset (ALL_ASSETS mode).

    Returns:
        The planned destination.
    """
    if mode is ExportMode.SELECTED_ALBUMS:
        subdirectory = album_folder_name(album)
    else:
        subdirectory = inferred_folder_name(memberships)

    return PlannedDestination(subdirectory=subdirectory, filename=resource.original_filename)


__all__ = [
    "PlannedDestination",
    "album_folder_name",
    "folder_name",
    "infer_album",
    "inferred_folder_name",
    "plan_destination",
]
