"""File utilities for destination paths and directory management.

Example:
    >>> from photo_export.utils.file_utils import ensure_directory, format_size
    >>> ensure_directory("~/Pictures/Photo Export/Vacation")
    PosixPath('/Users/username/Pictures/Photo Export/Vacation')
    >>> print(format_size(1536000000))
    1.43 GB
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from photo_export.utils.constants import BYTES_PER_KB

SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


class DirectoryCreationError(OSError):
    """Raised when a destination subdirectory cannot be created."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to create directory '{path}': {reason}")


def expand_path(path: str | Path) -> Path:
    """Expand ``~`` and resolve to an absolute path.

    Args:
        path: Path string or Path object to expand.

    Returns:
        Fully expanded and resolved absolute Path.
    """
    return Path(path).expanduser().resolve()


def format_size(size_bytes: int | float, precision: int = 2) -> str:
    """Format bytes into a human-readable size string.

    Args:
        size_bytes: Size in bytes.
        precision: Number of decimal places. Default is 2.

    Returns:
        Human-readable size string (e.g., "1.43 GB").

    Example:
        >>> format_size(1023)
        '1023 B'
        >>> format_size(1024)
        '1.00 KB'
    """
    if size_bytes < 0:
        return f"-{format_size(-size_bytes, precision)}"

    if size_bytes < BYTES_PER_KB:
        return f"{int(size_bytes)} B"

    size = float(size_bytes)
    for unit in SIZE_UNITS[1:]:
        size /= BYTES_PER_KB
        if size < BYTES_PER_KB:
            return f"{size:.{precision}f} {unit}"

    return f"{size:.{precision}f} {SIZE_UNITS[-1]}"


def check_disk_space(path: str | Path) -> int:
    """Return the free disk space in bytes at ``path`` or its nearest existing parent."""
    check_path = expand_path(path)
    while not check_path.exists():
        if check_path == check_path.parent:
            break
        check_path = check_path.parent

    return shutil.disk_usage(check_path).free


def ensure_directory(path: str | Path) -> Path:
    """Ensure a directory exists, creating intermediate directories as needed.

    An already-existing directory is not an error.

    Args:
        path: Path to the directory.

    Returns:
        Path to the directory.

    Raises:
        DirectoryCreationError: If the directory cannot be created, or the
            path exists and is not a directory.
    """
    dir_path = Path(path)
    try:
        dir_path.mkdir(parents=True, exist_ok=True)
    except FileExistsError as e:
        raise DirectoryCreationError(dir_path, "a file with that name already exists") from e
    except OSError as e:
        raise DirectoryCreationError(dir_path, e.strerror or str(e)) from e
    return dir_path


def is_writable_directory(path: str | Path) -> tuple[bool, str | None]:
    """Check that ``path`` is an existing directory the process can write to.

    Returns:
        Tuple of (ok, reason). ``reason`` is None when ``ok`` is True.
    """
    dir_path = Path(path)
    if not dir_path.exists():
        return False, f"Destination does not exist: {dir_path}"
    if not dir_path.is_dir():
        return False, f"Destination is not a directory: {dir_path}"
    if not os.access(dir_path, os.W_OK | os.X_OK):
        return False, f"Permission denied for destination: {dir_path}"
    return True, None
