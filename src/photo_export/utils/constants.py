"""Centralized constants for photo_export.

This module contains the placeholder names and default values used
throughout the application. Import from here to ensure consistency.

Example:
    >>> from photo_export.utils.constants import UNORGANIZED_FOLDER
    >>> print(UNORGANIZED_FOLDER)
    Unorganized
"""

from __future__ import annotations

from pathlib import Path

# =============================================================================
# Size Units (bytes)
# =============================================================================
BYTES_PER_KB = 1024
BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 * 1024 * 1024

# =============================================================================
# Destination Layout
# =============================================================================
# Subdirectory for a selected album that has no display name
UNKNOWN_ALBUM_FOLDER = "UnknownAlbum"

# Subdirectory for assets without a named user album (all-assets export)
UNORGANIZED_FOLDER = "Unorganized"

DEFAULT_EXPORT_DESTINATION = Path("~/Pictures/Photo Export")

# =============================================================================
# Transfer
# =============================================================================
# Buffer size for chunked file copies (1 MB)
COPY_BUFFER_SIZE = BYTES_PER_MB

# =============================================================================
# Photos Library
# =============================================================================
DEFAULT_PHOTOS_LIBRARY = Path.home() / "Pictures" / "Photos Library.photoslibrary"

# Relative path of the library database inside a .photoslibrary bundle
PHOTOS_DATABASE_RELPATH = Path("database") / "Photos.sqlite"

# Synthesized smart albums, keyed by stable identifier
SMART_ALBUM_FAVORITES = "smart:favorites"
SMART_ALBUM_VIDEOS = "smart:videos"
SMART_ALBUM_SELFIES = "smart:selfies"
SMART_ALBUM_SCREENSHOTS = "smart:screenshots"
SMART_ALBUM_LIVE_PHOTOS = "smart:live_photos"

SMART_ALBUM_TITLES = {
    SMART_ALBUM_FAVORITES: "Favorites",
    SMART_ALBUM_VIDEOS: "Videos",
    SMART_ALBUM_SELFIES: "Selfies",
    SMART_ALBUM_SCREENSHOTS: "Screenshots",
    SMART_ALBUM_LIVE_PHOTOS: "Live Photos",
}
