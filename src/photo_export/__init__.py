"""Photo Export - Export a photo library to an album-organized directory tree."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("photo-export")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"

__author__ = "Photo Export Team"
