"""Upload every file of one local directory to an object store container.

This module is the orchestrator. It lists the source directory, reads each
file in listing order, hands the bytes to an UploadOperation running on a
thread pool, and reports progress and failures to a NotificationSink as the
uploads resolve:

- A failing file (undecodable name, unreadable content, rejected upload)
  is recorded and reported; its siblings carry on.
- Uploads are never cancelled. The run finalizes only after every
  dispatched upload resolved.
- Any failure, at any stage, marks the run as failed. The final error
  event enumerates every failing file in listing order.

Basic Usage:
    from blobpush_cli.events import CollectingSink
    from blobpush_cli.models import StorageCredentials, UploadRequest
    from blobpush_cli.upload import upload_directory

    request = UploadRequest(
        source_directory="output/",
        destination_prefix="backups/2024",
        container_name="archive",
        credentials=StorageCredentials("myaccount", "secret"),
    )
    summary = upload_directory(request, CollectingSink())
    if not summary.success:
        for failed in summary.failed:
            print(failed.identifier, failed.detail)

Custom upload operation (tests, other stores):
    orchestrator = UploadOrchestrator(my_uploader, max_concurrency=4)
    summary = orchestrator.run(request, sink)
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, as_completed, wait
from dataclasses import dataclass
from pathlib import Path

from blobpush_cli.errors import (
    DirectoryReadError,
    EntryError,
    EntryReadError,
    UploadError,
    ValidationError,
)
from blobpush_cli.events import (
    Error,
    Info,
    NotificationSink,
    Progress,
    RunCompleted,
    SerializedSink,
    UploadStarted,
)
from blobpush_cli.listing import display_name, list_directory, printable_name, read_file
from blobpush_cli.models import (
    FailedFile,
    FileEntry,
    OutcomeStage,
    PendingUpload,
    RunSummary,
    UploadOutcome,
    UploadRequest,
)
from blobpush_cli.storage import ObjectStoreUploader, UploadOperation, azure_store

logger = logging.getLogger(__name__)

# Uploads allowed in flight at once; further files wait before being read
DEFAULT_MAX_CONCURRENCY = 8

NOTHING_TO_UPLOAD = "No files to upload."
ALL_UPLOADED = "All files uploaded successfully!"


# =============================================================================
# Request validation and key building
# =============================================================================


def validate_request(request: UploadRequest) -> None:
    """Check that every field of the request is usable.

    Fields are checked in the order a person fills them in. A source
    directory that does not exist is left to the listing step, which
    reports it as a DirectoryReadError.

    Raises:
        ValidationError: Naming the first missing or invalid field.
    """
    if not request.container_name:
        raise ValidationError("container_name")
    if not os.fspath(request.source_directory):
        raise ValidationError("source_directory")
    if not request.destination_prefix:
        raise ValidationError("destination_prefix")
    if not request.credentials.account:
        raise ValidationError("account")
    if not request.credentials.access_key:
        raise ValidationError("access_key")

    source = request.source_path
    if source.exists() and not source.is_dir():
        raise ValidationError("source_directory", "is not a directory")


def build_destination_key(prefix: str, file_name: str) -> str:
    """Build the object key for a file: ``{prefix}/{file_name}``.

    Trailing slashes on the prefix are dropped so keys never contain "//".

    Example:
        >>> build_destination_key("backups/2024", "a.txt")
        'backups/2024/a.txt'
        >>> build_destination_key("backups/2024/", "a.txt")
        'backups/2024/a.txt'
    """
    return f"{prefix.rstrip('/')}/{file_name}"


def plan_uploads(request: UploadRequest) -> list[tuple[FileEntry, str]]:
    """List the files a run would upload and their destination keys.

    Nothing is read or uploaded. Files whose names cannot be decoded are
    left out.

    Raises:
        ValidationError: If the request is invalid.
        DirectoryReadError: If the source directory cannot be listed.
    """
    validate_request(request)
    plan = []
    for entry in list_directory(request.source_path):
        try:
            name = display_name(entry)
        except EntryError:
            continue
        plan.append((entry, build_destination_key(request.destination_prefix, name)))
    return plan


# =============================================================================
# Run accounting
# =============================================================================


@dataclass(frozen=True)
class _Dispatched:
    """An in-flight upload; ``index`` is the file's position in the listing."""

    index: int
    pending: PendingUpload


class _RunTracker:
    """Accumulates outcomes for one run.

    Every listed file is recorded exactly once, whatever stage decided it.
    """

    def __init__(self, total_files: int) -> None:
        self.total_files = total_files
        self.dispatched = 0
        self._processed = 0
        self._succeeded = 0
        self._failures: dict[int, FailedFile] = {}
        self._seen: set[int] = set()
        self._lock = threading.Lock()

    def record(self, index: int, outcome: UploadOutcome) -> float:
        """Record one file's outcome and return the run's progress percentage."""
        with self._lock:
            if index in self._seen:
                raise RuntimeError(f"Outcome recorded twice for file #{index}")
            self._seen.add(index)
            self._processed += 1
            if outcome.success:
                self._succeeded += 1
            else:
                self._failures[index] = FailedFile(
                    outcome.identifier, outcome.error or "", outcome.stage
                )
            return self._processed / self.total_files * 100.0

    def summary(self) -> RunSummary:
        with self._lock:
            if self._processed != self.total_files:
                raise RuntimeError(
                    f"Run finalized with {self._processed}/{self.total_files} files accounted for"
                )
            failed = tuple(self._failures[i] for i in sorted(self._failures))
            return RunSummary(
                total_files=self.total_files,
                succeeded=self._succeeded,
                failed=failed,
            )


def _upload_one(uploader: UploadOperation, pending: PendingUpload) -> UploadOutcome:
    """Run one upload on a worker thread and turn any failure into an outcome."""
    key = pending.destination_key
    try:
        uploader.put(key, pending.payload)
    except Exception as e:
        err = UploadError(key, str(e) or type(e).__name__)
        logger.warning("%s", err.message)
        return UploadOutcome.fail(key, OutcomeStage.UPLOAD, err.detail)
    return UploadOutcome.ok(key)


# =============================================================================
# Orchestrator
# =============================================================================


class UploadOrchestrator:
    """Uploads the files of a directory concurrently and reports on the run.

    Args:
        uploader: Operation that stores one object.
        max_concurrency: Uploads allowed in flight at once. Reading the next
            file waits until a slot frees up, so at most this many payloads
            are held in memory.
        lister: Directory lister (defaults to list_directory).
        reader: File reader (defaults to read_file). An OSError it raises is
            recorded as a read failure for that file.
    """

    def __init__(
        self,
        uploader: UploadOperation,
        *,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        lister: Callable[[Path], list[FileEntry]] = list_directory,
        reader: Callable[[Path], bytes] = read_file,
    ) -> None:
        self.uploader = uploader
        # At least one slot, ThreadPoolExecutor rejects zero workers
        self.max_concurrency = max(1, max_concurrency)
        self._lister = lister
        self._reader = reader

    def run(self, request: UploadRequest, sink: NotificationSink) -> RunSummary:
        """Upload every regular file of ``request.source_directory``.

        Args:
            request: What to upload and where.
            sink: Receives progress, info, error and completion events.

        Returns:
            RunSummary accounting for every listed file.

        Raises:
            ValidationError: If the request is invalid; nothing is listed.
            DirectoryReadError: If the directory cannot be listed; nothing
                is uploaded.
        """
        sink = SerializedSink(sink)

        try:
            validate_request(request)
            entries = self._lister(request.source_path)
        except (ValidationError, DirectoryReadError) as err:
            logger.error("%s", err.message)
            sink.notify(Error(err.message, code=err.code))
            raise

        tracker = _RunTracker(total_files=len(entries))
        logger.info(
            "Found %d file(s) in %s for %s/%s",
            len(entries),
            request.source_directory,
            request.container_name,
            request.destination_prefix,
        )

        with ThreadPoolExecutor(
            max_workers=self.max_concurrency, thread_name_prefix="blobpush-upload"
        ) as executor:
            in_flight: dict[Future[UploadOutcome], _Dispatched] = {}

            for index, entry in enumerate(entries):
                if len(in_flight) >= self.max_concurrency:
                    done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                    for future in done:
                        self._resolve(in_flight.pop(future), future, tracker, sink)

                pending = self._prepare(index, entry, request, tracker, sink)
                if pending is None:
                    continue

                future = executor.submit(_upload_one, self.uploader, pending)
                in_flight[future] = _Dispatched(index, pending)
                tracker.dispatched += 1
                logger.debug(
                    "Dispatched upload #%d: %s (%d bytes)",
                    index,
                    pending.destination_key,
                    pending.size,
                )
                sink.notify(UploadStarted(entry.name, pending.destination_key))

            if tracker.dispatched == 0:
                sink.notify(Info(NOTHING_TO_UPLOAD))

            for future in as_completed(in_flight):
                self._resolve(in_flight[future], future, tracker, sink)

        return self._finalize(tracker, sink)

    def _prepare(
        self,
        index: int,
        entry: FileEntry,
        request: UploadRequest,
        tracker: _RunTracker,
        sink: NotificationSink,
    ) -> PendingUpload | None:
        """Derive the key and read the payload; record a failure if either fails."""
        try:
            name = display_name(entry)
            key = build_destination_key(request.destination_prefix, name)
            payload = self._read(entry)
        except EntryError as err:
            stage = OutcomeStage.READ if isinstance(err, EntryReadError) else OutcomeStage.NAME
            logger.warning("%s", err.message)
            tracker.record(index, UploadOutcome.fail(err.identifier, stage, err.detail))
            failed = FailedFile(err.identifier, err.detail, stage)
            sink.notify(Error(err.message, failures=(failed,), code=err.code))
            return None
        return PendingUpload(file_entry=entry, destination_key=key, payload=payload)

    def _read(self, entry: FileEntry) -> bytes:
        """Read a payload, reporting any OS error from the reader as an EntryReadError."""
        try:
            return self._reader(entry.absolute_path)
        except OSError as e:
            raise EntryReadError(printable_name(entry.name), e.strerror or str(e)) from e

    def _resolve(
        self,
        dispatched: _Dispatched,
        future: Future[UploadOutcome],
        tracker: _RunTracker,
        sink: NotificationSink,
    ) -> None:
        """Account for a resolved upload and report it."""
        outcome = future.result()
        percentage = tracker.record(dispatched.index, outcome)
        if outcome.success:
            logger.debug("Uploaded %s", outcome.identifier)
        else:
            detail = outcome.error or ""
            sink.notify(
                Error(
                    f"Failed to upload {outcome.identifier}: {detail}",
                    failures=(FailedFile(outcome.identifier, detail, outcome.stage),),
                    code=UploadError.code,
                )
            )
        sink.notify(Progress(percentage))

    def _finalize(self, tracker: _RunTracker, sink: NotificationSink) -> RunSummary:
        summary = tracker.summary()
        if summary.failed:
            logger.warning(
                "Run finished with %d failure(s) out of %d file(s)",
                len(summary.failed),
                summary.total_files,
            )
            sink.notify(
                Error(
                    f"Failed to upload files: {len(summary.failed)} of "
                    f"{summary.total_files} failed",
                    failures=summary.failed,
                )
            )
        elif tracker.dispatched:
            sink.notify(Progress(100.0))
            sink.notify(Info(ALL_UPLOADED, level="success"))
        sink.notify(RunCompleted(summary))
        return summary


def upload_directory(
    request: UploadRequest,
    sink: NotificationSink,
    *,
    uploader: UploadOperation | None = None,
    endpoint: str | None = None,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> RunSummary:
    """Upload a directory to the request's Azure Blob Storage container.

    Args:
        request: What to upload and where.
        sink: Receives the run's events.
        uploader: Upload operation to use instead of the Azure store built
            from the request's credentials.
        endpoint: Custom blob endpoint (e.g., Azurite) for the Azure store.
        max_concurrency: Uploads allowed in flight at once.

    Returns:
        RunSummary for the run.
    """
    if uploader is None:
        try:
            validate_request(request)
        except ValidationError as err:
            sink.notify(Error(err.message, code=err.code))
            raise
        store = azure_store(request.container_name, request.credentials, endpoint=endpoint)
        uploader = ObjectStoreUploader(store)
    orchestrator = UploadOrchestrator(uploader, max_concurrency=max_concurrency)
    return orchestrator.run(request, sink)
