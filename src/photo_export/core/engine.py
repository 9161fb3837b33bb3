"""Export engine for album-organized library exports.

The engine runs one export job on a dedicated worker thread. Items are
processed strictly one after another: for each asset it selects a
resource, plans the destination, and transfers the bytes. Cancellation
is cooperative and checked before each album and each asset, so an
in-flight transfer always finishes first.

Progress, error and completion notifications are handed to a dispatcher
(the caller's notification context) and never block the worker. Per-item
failures are reported and the batch continues; the only fatal condition
is a destination root that cannot be written to, checked once before the
job starts.

Example:
    >>> engine = ExportEngine(PhotosCatalog())
    >>> handle = engine.run_all_assets(
    ...     Path("~/Pictures/Export").expanduser(),
    ...     on_progress=lambda done, total, msg: print(f"{done}/{total} {msg}"),
    ...     on_complete=lambda cancelled, done, total: print("cancelled" if cancelled else "done"),
    ...     on_error=print,
    ... )
    >>> summary = handle.wait()
    >>> print(f"Exported {summary.exported}, skipped {summary.skipped}")
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING

from photo_export.catalog.base import CatalogError
from photo_export.core.types import (
    ExportJob,
    ExportMode,
    ExportSummary,
    JobState,
)
from photo_export.exporters.planner import (
    album_folder_name,
    inferred_folder_name,
    plan_destination,
)
from photo_export.exporters.selector import select_best_resource
from photo_export.exporters.transfer import Transferer
from photo_export.utils.file_utils import (
    DirectoryCreationError,
    check_disk_space,
    ensure_directory,
    format_size,
    is_writable_directory,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from photo_export.catalog.base import AssetCatalog
    from photo_export.core.types import (
        Album,
        Asset,
        CompleteCallback,
        Dispatcher,
        ErrorCallback,
        ProgressCallback,
    )

logger = logging.getLogger(__name__)


class DestinationAccessError(Exception):
    """Raised when the destination root cannot be used for an export."""


def verify_destination(destination_root: Path) -> None:
    """Check that ``destination_root`` is an existing, writable directory.

    Raises:
        DestinationAccessError: If the directory is missing, is not a
            directory, or cannot be written to.
    """
    ok, reason = is_writable_directory(destination_root)
    if not ok:
        raise DestinationAccessError(reason or f"Destination is not accessible: {destination_root}")


class ExportJobHandle:
    """Caller-side view of a running export job.

    Callbacks registered here are invoked through the job's dispatcher.
    Register them before :meth:`start` (or pass them to the engine's
    ``run_*`` methods) to be sure no notification is missed.
    """

    def __init__(
        self,
        job: ExportJob,
        body: Callable[[ExportJob, ExportJobHandle], None],
        dispatch: Dispatcher | None = None,
    ) -> None:
        self._job = job
        self._body = body
        self._lock = threading.Lock()
        self._progress_callbacks: list[ProgressCallback] = []
        self._complete_callbacks: list[CompleteCallback] = []
        self._error_callbacks: list[ErrorCallback] = []
        self._summary: ExportSummary | None = None
        self._thread: threading.Thread | None = None
        self._done = threading.Event()

        self._executor: ThreadPoolExecutor | None = None
        if dispatch is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="photo-export-notify")
            self._dispatch: Dispatcher = self._submit
        else:
            self._dispatch = dispatch

    def _submit(self, fn: Callable[[], None]) -> None:
        assert self._executor is not None
        self._executor.submit(fn)

    @property
    def job(self) -> ExportJob:
        return self._job

    @property
    def state(self) -> JobState:
        return self._job.state

    @property
    def summary(self) -> ExportSummary | None:
        """Terminal summary, or None while running or if the job failed to start."""
        return self._summary

    @property
    def is_running(self) -> bool:
        return self._job.state is JobState.RUNNING

    def add_progress_callback(self, callback: ProgressCallback) -> None:
        with self._lock:
            self._progress_callbacks.append(callback)

    def add_complete_callback(self, callback: CompleteCallback) -> None:
        with self._lock:
            self._complete_callbacks.append(callback)

    def add_error_callback(self, callback: ErrorCallback) -> None:
        with self._lock:
            self._error_callbacks.append(callback)

    def request_cancel(self) -> None:
        """Ask the worker to stop at its next check point.

        Has no effect once the job has finished.
        """
        if self._job.state.is_terminal:
            return
        if not self._job.cancelled:
            logger.info("Cancellation requested")
        self._job.request_cancel()

    def start(self) -> ExportJobHandle:
        """Verify the destination root and start the worker thread.

        A destination that is missing, not a directory or not writable is
        reported once through the error callbacks; the job moves to
        ``JobState.FAILED`` and no completion notification is sent.
        """
        with self._lock:
            if self._job.state is not JobState.IDLE:
                raise RuntimeError(f"Job already started (state: {self._job.state.value})")

        try:
            verify_destination(self._job.destination_root)
        except DestinationAccessError as e:
            logger.error(str(e))
            self._job.state = JobState.FAILED
            self._job.add_error(str(e))
            self.emit_error(str(e))
            self._done.set()
            self._release_notifier()
            return self

        with self._lock:
            self._job.state = JobState.RUNNING
            self._thread = threading.Thread(
                target=self._run,
                name=f"photo-export-{self._job.mode.value}",
                daemon=True,
            )
            self._thread.start()
        return self

    def wait(self, timeout: float | None = None) -> ExportSummary | None:
        """Block until the job has finished and its notifications were delivered.

        Args:
            timeout: Maximum seconds to wait for the worker. None waits forever.

        Returns:
            The terminal summary, or None if the job failed to start or the
            timeout expired first.
        """
        if self._job.state is JobState.IDLE:
            raise RuntimeError("Job has not been started")

        if not self._done.wait(timeout):
            return None

        if self._executor is not None:
            self._executor.shutdown(wait=True)
        return self._summary

    def _run(self) -> None:
        job = self._job
        start_time = time.monotonic()
        logger.info(f"Export started: mode={job.mode.value}, destination={job.destination_root}")

        try:
            logger.info(f"Free space at destination: {format_size(check_disk_space(job.destination_root))}")
            self._body(job, self)
        except Exception as e:
            logger.exception("Export worker stopped unexpectedly")
            job.add_error(f"Export stopped unexpectedly: {e}")
            self.emit_error(f"Export stopped unexpectedly: {e}")

        job.state = JobState.CANCELLED if job.cancelled else JobState.COMPLETED
        summary = ExportSummary.from_job(job, time.monotonic() - start_time)
        self._summary = summary

        logger.info(
            f"Export {job.state.value}: {summary.processed_count}/{summary.total_count} processed, "
            f"{summary.exported} exported, {summary.skipped} skipped, {summary.error_count} errors"
        )
        self.emit_complete(summary.cancelled, summary.processed_count, summary.total_count)
        self._done.set()
        self._release_notifier()

    def _release_notifier(self) -> None:
        # Notifications already queued are still delivered.
        if self._executor is not None:
            self._executor.shutdown(wait=False)

    def _deliver(self, callbacks: list[Callable[..., None]], *args: object) -> None:
        def deliver() -> None:
            for callback in callbacks:
                try:
                    callback(*args)
                except Exception:
                    logger.exception("Export callback failed")

        self._dispatch(deliver)

    def emit_progress(self, processed: int, total: int, message: str) -> None:
        with self._lock:
            callbacks = list(self._progress_callbacks)
        self._deliver(callbacks, processed, total, message)

    def emit_error(self, message: str) -> None:
        with self._lock:
            callbacks = list(self._error_callbacks)
        self._deliver(callbacks, message)

    def emit_complete(self, cancelled: bool, processed: int, total: int) -> None:
        with self._lock:
            callbacks = list(self._complete_callbacks)
        self._deliver(callbacks, cancelled, processed, total)


class ExportEngine:
    """Export albums or the whole library from a catalog to a directory tree.

    Each ``run_*`` call creates a new job with its own worker thread. The
    engine itself keeps no per-job state, so one engine can start several
    jobs; each job processes its own items sequentially.

    Args:
        catalog: Source of albums, assets and resources.
        transferer: Writes resources to files. Defaults to a Transferer
            with network access allowed.
        dispatch: Callable that schedules a notification in the caller's
            context. Defaults to a per-job single notification thread.
    """

    def __init__(
        self,
        catalog: AssetCatalog,
        *,
        transferer: Transferer | None = None,
        dispatch: Dispatcher | None = None,
    ) -> None:
        self._catalog = catalog
        self._transferer = transferer or Transferer()
        self._dispatch = dispatch

    @property
    def catalog(self) -> AssetCatalog:
        return self._catalog

    def run_selected_albums(
        self,
        albums: Iterable[Album],
        destination_root: Path,
        *,
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
        start: bool = True,
    ) -> ExportJobHandle:
        """Export each album into its own subdirectory.

        An asset in several selected albums is exported once per album
        and counted once per album.

        Args:
            albums: Albums to export, in export order.
            destination_root: Existing, writable root directory.
            on_progress: Called with (processed, total, message).
            on_complete: Called with (cancelled, processed, total).
            on_error: Called with a message for each failure.
            start: Start the worker immediately.

        Returns:
            Handle for the job.
        """
        job = ExportJob(
            mode=ExportMode.SELECTED_ALBUMS,
            destination_root=Path(destination_root),
            albums=tuple(albums),
        )
        return self._create_handle(job, self._run_selected_albums, on_progress, on_complete, on_error, start)

    def run_all_assets(
        self,
        destination_root: Path,
        *,
        on_progress: ProgressCallback | None = None,
        on_complete: CompleteCallback | None = None,
        on_error: ErrorCallback | None = None,
        start: bool = True,
    ) -> ExportJobHandle:
        """Export every asset once, filed under its first named user album.

        Files that already exist at their destination are skipped, so
        running the same export again only writes what is missing.

        Args:
            destination_root: Existing, writable root directory.
            on_progress: Called with (processed, total, message).
            on_complete: Called with (cancelled, processed, total).
            on_error: Called with a message for each failure.
            start: Start the worker immediately.

        Returns:
            Handle for the job.
        """
        job = ExportJob(mode=ExportMode.ALL_ASSETS, destination_root=Path(destination_root))
        return self._create_handle(job, self._run_all_assets, on_progress, on_complete, on_error, start)

    def _create_handle(
        self,
        job: ExportJob,
        body: Callable[[ExportJob, ExportJobHandle], None],
        on_progress: ProgressCallback | None,
        on_complete: CompleteCallback | None,
        on_error: ErrorCallback | None,
        start: bool,
    ) -> ExportJobHandle:
        handle = ExportJobHandle(job, body, self._dispatch)
        if on_progress is not None:
            handle.add_progress_callback(on_progress)
        if on_complete is not None:
            handle.add_complete_callback(on_complete)
        if on_error is not None:
            handle.add_error_callback(on_error)
        if start:
            handle.start()
        return handle

    def _report(self, job: ExportJob, handle: ExportJobHandle, message: str) -> None:
        logger.error(message)
        job.add_error(message)
        handle.emit_error(message)

    def _ensure_subdirectory(
        self,
        job: ExportJob,
        handle: ExportJobHandle,
        folder: str,
        created: set[str],
    ) -> Path | None:
        directory = job.destination_root / folder
        if folder in created:
            return directory

        try:
            ensure_directory(directory)
        except DirectoryCreationError as e:
            self._report(job, handle, f"Failed to create album directory '{folder}': {e.reason}")
            return None

        created.add(folder)
        return directory

    def _count_failed_item(self, job: ExportJob, handle: ExportJobHandle, message: str) -> None:
        self._report(job, handle, message)
        job.failed += 1
        processed = job.mark_processed()
        handle.emit_progress(processed, job.total_count, message)

    # Selected albums

    def _run_selected_albums(self, job: ExportJob, handle: ExportJobHandle) -> None:
        snapshot: list[tuple[Album, list[Asset]]] = []
        for album in job.albums:
            try:
                assets = list(self._catalog.list_assets(album))
            except CatalogError as e:
                self._report(job, handle, f"Failed to read album '{album_folder_name(album)}': {e}")
                assets = []
            snapshot.append((album, assets))

        job.total_count = sum(len(assets) for _, assets in snapshot)
        logger.info(f"Exporting {len(snapshot)} album(s), {job.total_count} item(s)")

        created: set[str] = set()
        for album, assets in snapshot:
            if job.cancelled:
                break

            folder = album_folder_name(album)
            if self._ensure_subdirectory(job, handle, folder, created) is None:
                continue

            logger.debug(f"Exporting album '{folder}' ({len(assets)} items)")
            for asset in assets:
                if job.cancelled:
                    break
                self._export_album_item(job, handle, album, folder, asset)

    def _export_album_item(
        self,
        job: ExportJob,
        handle: ExportJobHandle,
        album: Album,
        folder: str,
        asset: Asset,
    ) -> None:
        try:
            resources = self._catalog.resources_of(asset)
        except CatalogError as e:
            self._count_failed_item(job, handle, f"Error reading {asset} from {folder}: {e}")
            return

        resource = select_best_resource(resources)
        if resource is None:
            logger.debug(f"No exportable resource for {asset}, skipping")
            job.no_resource += 1
            job.mark_processed()
            return

        planned = plan_destination(resource, ExportMode.SELECTED_ALBUMS, album=album)
        result = self._transferer.transfer(resource, planned.path(job.destination_root))

        if result.ok:
            job.exported += 1
            message = f"Exported {resource.original_filename} from {folder}"
        else:
            job.failed += 1
            message = f"Failed to export {resource.original_filename} from {folder}"
            self._report(
                job,
                handle,
                f"Error saving {resource.original_filename} ({asset.asset_id}): {result.reason}",
            )

        processed = job.mark_processed()
        handle.emit_progress(processed, job.total_count, message)

    # All assets

    def _run_all_assets(self, job: ExportJob, handle: ExportJobHandle) -> None:
        try:
            assets = list(self._catalog.list_all_assets())
        except CatalogError as e:
            self._report(job, handle, f"Failed to read library: {e}")
            assets = []

        job.total_count = len(assets)
        logger.info(f"Exporting library, {job.total_count} item(s)")

        created: set[str] = set()
        for asset in assets:
            if job.cancelled:
                break
            self._export_library_item(job, handle, asset, created)

    def _export_library_item(
        self,
        job: ExportJob,
        handle: ExportJobHandle,
        asset: Asset,
        created: set[str],
    ) -> None:
        try:
            memberships = list(self._catalog.album_memberships_of(asset, user_only=True))
        except CatalogError as e:
            self._count_failed_item(job, handle, f"Error reading albums of {asset}: {e}")
            return

        folder = inferred_folder_name(memberships)
        if self._ensure_subdirectory(job, handle, folder, created) is None:
            return

        try:
            resources = self._catalog.resources_of(asset)
        except CatalogError as e:
            self._count_failed_item(job, handle, f"Error reading {asset}: {e}")
            return

        resource = select_best_resource(resources)
        if resource is None:
            logger.debug(f"No exportable resource for {asset}, skipping")
            job.no_resource += 1
            job.mark_processed()
            return

        planned = plan_destination(resource, ExportMode.ALL_ASSETS, memberships=memberships)
        destination = planned.path(job.destination_root)

        if destination.exists():
            job.skipped += 1
            processed = job.mark_processed()
            handle.emit_progress(
                processed,
                job.total_count,
                f"Skipped existing {resource.original_filename} in {folder}",
            )
            return

        result = self._transferer.transfer(resource, destination)
        if result.ok:
            job.exported += 1
            message = f"Exported {resource.original_filename} into {folder}"
        else:
            job.failed += 1
            message = f"Failed to export {resource.original_filename} into {folder}"
            self._report(
                job,
                handle,
                f"Error saving {resource.original_filename} ({asset.asset_id}): {result.reason}",
            )

        processed = job.mark_processed()
        handle.emit_progress(processed, job.total_count, message)


__all__ = ["DestinationAccessError", "ExportEngine", "ExportJobHandle", "verify_destination"]
