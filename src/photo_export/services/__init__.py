"""Services shared by user-facing layers."""

from photo_export.services.album_library import AlbumLibrary, sort_albums

__all__ = ["AlbumLibrary", "sort_albums"]
