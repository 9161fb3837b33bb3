"""Utility helpers for paths, sizes and shared constants."""

from photo_export.utils.file_utils import (
    DirectoryCreationError,
    check_disk_space,
    ensure_directory,
    expand_path,
    format_size,
    is_writable_directory,
)

__all__ = [
    "DirectoryCreationError",
    "check_disk_space",
    "ensure_directory",
    "expand_path",
    "format_size",
    "is_writable_directory",
]
