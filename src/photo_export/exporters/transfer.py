"""Transfer of one resource to one destination file.

The transfer blocks until the resource's bytes are written, which can
include fetching them from a remote store. Failures are returned as a
:class:`TransferResult` rather than raised, so the caller decides what a
failure means for the rest of the batch.

Example:
    >>> transferer = Transferer()
    >>> result = transferer.transfer(resource, Path("/exports/Trip/IMG_0001.HEIC"))
    >>> if not result.ok:
    ...     print(result.reason)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from photo_export.catalog.base import CatalogError

if TYPE_CHECKING:
    from pathlib import Path

    from photo_export.core.types import AssetResource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    """Outcome of a single transfer.

    Attributes:
        ok: True if the destination file was written.
        reason: Failure description when ``ok`` is False.
        bytes_written: Size of the written file, when known.
        duration_seconds: Time spent in the transfer.
    """

    ok: bool
    reason: str | None = None
    bytes_written: int = 0
    duration_seconds: float = 0.0

    @classmethod
    def success(cls, bytes_written: int = 0, duration_seconds: float = 0.0) -> TransferResult:
        return cls(ok=True, bytes_written=bytes_written, duration_seconds=duration_seconds)

    @classmethod
    def failed(cls, reason: str, duration_seconds: float = 0.0) -> TransferResult:
        return cls(ok=False, reason=reason, duration_seconds=duration_seconds)


class Transferer:
    """Write resources to destination files.

    The transferer does not check whether the destination already exists;
    skipping existing files is the engine's decision. A destination that
    exists before the transfer is never removed. A file left behind by a
    failed transfer is removed so a later run does not mistake it for a
    finished export.

    Attributes:
        allow_network_access: Whether handles may fetch remote bytes.
    """

    def __init__(self, allow_network_access: bool = True) -> None:
        self.allow_network_access = allow_network_access

    def transfer(self, resource: AssetResource, destination: Path) -> TransferResult:
        """Write ``resource`` to ``destination``.

        Args:
            resource: Resource to transfer.
            destination: Full path of the file to create.

        Returns:
            TransferResult describing success or the failure reason.
        """
        existed_before = destination.exists()
        start = time.monotonic()

        logger.debug(f"Transferring {resource.original_filename} -> {destination}")
        try:
            resource.handle.write_to(destination, allow_network_access=self.allow_network_access)
        except FileExistsError:
            return TransferResult.failed(
                f"File already exists: {destination.name}", time.monotonic() - start
            )
        except (OSError, CatalogError) as e:
            elapsed = time.monotonic() - start
            if not existed_before:
                self._remove_partial(destination)
            reason = e.strerror if isinstance(e, OSError) and e.strerror else str(e)
            logger.warning(f"Transfer failed for {resource.original_filename}: {reason}")
            return TransferResult.failed(reason, elapsed)
        except Exception as e:
            if not existed_before:
                self._remove_partial(destination)
            logger.exception(f"Unexpected error transferring {resource.original_filename}")
            return TransferResult.failed(f"Unexpected error: {e}", time.monotonic() - start)

        elapsed = time.monotonic() - start
        try:
            size = destination.stat().st_size
        except OSError:
            size = 0
        return TransferResult.success(bytes_written=size, duration_seconds=elapsed)

    @staticmethod
    def _remove_partial(destination: Path) -> None:
        try:
            destination.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to remove partial file {destination}: {e}")


__all__ = ["TransferResult", "Transferer"]
