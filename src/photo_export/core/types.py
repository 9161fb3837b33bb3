"""Core type definitions for the export workflow.

This module defines the data model shared by the catalog, the export
components and the engine: albums, assets, their downloadable resources,
and the per-run job and summary records.

Example:
    >>> from photo_export.catalog.base import LocalFileHandle
    >>> from photo_export.core.types import AssetResource, ResourceKind
    >>> resource = AssetResource(
    ...     kind=ResourceKind.PHOTO,
    ...     original_filename="IMG_0001.HEIC",
    ...     handle=LocalFileHandle(Path("/path/to/IMG_0001.HEIC")),
    ... )
    >>> resource.is_full_size
    False
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable


class ResourceKind(Enum):
    """Kinds of downloadable representations of an asset.

    Attributes:
        PHOTO: Original photo as imported.
        VIDEO: Original video as imported.
        FULL_SIZE_PHOTO: Full-size rendition of the current (edited) photo.
        FULL_SIZE_VIDEO: Full-size rendition of the current (edited) video.
        OTHER: Derived forms such as thumbnails, proxies or paired videos.
    """

    PHOTO = "photo"
    VIDEO = "video"
    FULL_SIZE_PHOTO = "full_size_photo"
    FULL_SIZE_VIDEO = "full_size_video"
    OTHER = "other"


class ExportMode(Enum):
    """What an export job iterates over.

    Attributes:
        SELECTED_ALBUMS: Each chosen album in turn, one subdirectory per album.
        ALL_ASSETS: Every asset once, filed under an inferred album.
    """

    SELECTED_ALBUMS = "selected_albums"
    ALL_ASSETS = "all_assets"


class JobState(Enum):
    """Lifecycle of an export job.

    Attributes:
        IDLE: Created, not started.
        RUNNING: Worker is processing items.
        COMPLETED: All items were processed.
        CANCELLED: Cancellation was observed.
        FAILED: The destination root could not be accessed; nothing ran.
    """

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.CANCELLED, JobState.FAILED)


@runtime_checkable
class ResourceHandle(Protocol):
    """Opaque handle that writes one resource's bytes to a file.

    Implementations may need to fetch the bytes from a remote store,
    which blocks until the data is written or the fetch fails.
    """

    def write_to(self, destination: Path, *, allow_network_access: bool = True) -> None:
        """Write the resource to ``destination``.

        Raises:
            OSError: On local I/O failure.
            ResourceUnavailableError: If the bytes cannot be fetched.
        """
        ...


@dataclass(frozen=True)
class Album:
    """A named collection of assets.

    Attributes:
        album_id: Stable, unique identifier.
        display_name: Title shown to the user; may be absent.
        is_smart: True for system-generated albums.
    """

    album_id: str
    display_name: str | None = None
    is_smart: bool = False

    @property
    def has_name(self) -> bool:
        return bool(self.display_name)


@dataclass(frozen=True)
class Asset:
    """A logical photo or video in the library.

    Attributes:
        asset_id: Stable identifier.
        filename: Original filename, for messages only.
    """

    asset_id: str
    filename: str = ""

    def __str__(self) -> str:
        return self.filename or self.asset_id


@dataclass(frozen=True)
class AssetResource:
    """A concrete, transferable form of an asset.

    Attributes:
        kind: Which representation this is.
        original_filename: Output filename, used verbatim.
        handle: Handle that performs the byte transfer.
        asset_id: Identifier of the owning asset, when known.
    """

    kind: ResourceKind
    original_filename: str
    handle: ResourceHandle = field(compare=False, repr=False)
    asset_id: str | None = None

    def __post_init__(self) -> None:
        if not self.original_filename:
            raise ValueError("original_filename must be a non-empty string")

    @property
    def is_full_size(self) -> bool:
        return self.kind in (ResourceKind.FULL_SIZE_PHOTO, ResourceKind.FULL_SIZE_VIDEO)

    @property
    def is_original(self) -> bool:
        return self.kind in (ResourceKind.PHOTO, ResourceKind.VIDEO)


@dataclass
class ExportJob:
    """Mutable state of one engine run.

    Only the engine's worker thread mutates the counters. The cancellation
    event is the single piece of state shared with the caller.

    Attributes:
        mode: What the job iterates over.
        destination_root: Root directory for the exported tree.
        albums: Albums to export in SELECTED_ALBUMS mode.
        total_count: Number of items, computed before transfers begin.
        processed_count: Items processed so far.
        errors: Per-item failure messages, in order.
        exported: Items written by a successful transfer.
        skipped: Items already present at the destination.
        failed: Items whose transfer failed.
        no_resource: Items with no eligible resource.
        state: Lifecycle state.
    """

    mode: ExportMode
    destination_root: Path
    albums: tuple[Album, ...] = ()
    total_count: int = 0
    processed_count: int = 0
    errors: list[str] = field(default_factory=list)
    exported: int = 0
    skipped: int = 0
    failed: int = 0
    no_resource: int = 0
    state: JobState = JobState.IDLE
    _cancel_event: threading.Event = field(default_factory=threading.Event, repr=False)

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def request_cancel(self) -> None:
        """Set the cancellation flag. It can never be cleared."""
        self._cancel_event.set()

    def mark_processed(self) -> int:
        if self.processed_count >= self.total_count:
            raise RuntimeError(
                f"processed count would exceed total ({self.processed_count}/{self.total_count})"
            )
        self.processed_count += 1
        return self.processed_count

    def add_error(self, message: str) -> None:
        self.errors.append(message)


@dataclass(frozen=True)
class ExportSummary:
    """Terminal report of an export job.

    Attributes:
        cancelled: Whether cancellation was requested before the job ended.
        processed_count: Items processed.
        total_count: Items the job planned to process.
        errors: Failure messages in the order they were reported.
        exported: Items written.
        skipped: Items already present.
        failed: Items whose transfer failed.
        no_resource: Items without an eligible resource.
        duration_seconds: Wall-clock duration of the run.
        state: Terminal job state.
    """

    cancelled: bool
    processed_count: int
    total_count: int
    errors: tuple[str, ...] = ()
    exported: int = 0
    skipped: int = 0
    failed: int = 0
    no_resource: int = 0
    duration_seconds: float = 0.0
    state: JobState = JobState.COMPLETED

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def is_complete(self) -> bool:
        return self.processed_count == self.total_count

    @classmethod
    def from_job(cls, job: ExportJob, duration_seconds: float = 0.0) -> ExportSummary:
        return cls(
            cancelled=job.cancelled,
            processed_count=job.processed_count,
            total_count=job.total_count,
            errors=tuple(job.errors),
            exported=job.exported,
            skipped=job.skipped,
            failed=job.failed,
            no_resource=job.no_resource,
            duration_seconds=duration_seconds,
            state=job.state,
        )


# Callback type aliases
ProgressCallback = Callable[[int, int, str], None]
CompleteCallback = Callable[[bool, int, int], None]
ErrorCallback = Callable[[str], None]
Dispatcher = Callable[[Callable[[], None]], None]


__all__ = [
    "Album",
    "Asset",
    "AssetResource",
    "CompleteCallback",
    "Dispatcher",
    "ErrorCallback",
    "ExportJob",
    "ExportMode",
    "ExportSummary",
    "JobState",
    "ProgressCallback",
    "ResourceHandle",
    "ResourceKind",
]
