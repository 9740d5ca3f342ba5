"""Data model for a directory upload run.

The types here follow a run from request to summary:

    UploadRequest -> FileEntry -> PendingUpload -> UploadOutcome -> RunSummary

All of them are frozen dataclasses. A RunSummary is built once, after every
outcome of the run is known, and never changes afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class StorageCredentials:
    """Opaque storage account name and access key.

    The key is kept out of repr() so requests can be logged safely.
    """

    account: str
    access_key: str = field(repr=False)


@dataclass(frozen=True)
class UploadRequest:
    """Parameters for one upload run.

    Attributes:
        source_directory: Local directory whose files are uploaded (non-recursive).
            Kept as given so an empty value can be told apart from ".".
        destination_prefix: Key prefix inside the container (e.g., "backups/2024").
        container_name: Target container in the object store.
        credentials: Account name and key used to reach the container.
    """

    source_directory: str | Path
    destination_prefix: str
    container_name: str
    credentials: StorageCredentials

    @property
    def source_path(self) -> Path:
        return Path(self.source_directory)


@dataclass(frozen=True)
class FileEntry:
    """A regular file found directly inside the source directory.

    ``name`` is the raw name reported by the filesystem. On POSIX it may
    carry surrogate escapes for bytes that are not valid UTF-8.
    """

    name: str
    absolute_path: Path


@dataclass(frozen=True)
class PendingUpload:
    """A file that was read and is ready to be handed to the object store."""

    file_entry: FileEntry
    destination_key: str
    payload: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.payload)


class OutcomeStage(Enum):
    """Where in the pipeline an outcome was decided."""

    NAME = "name"
    READ = "read"
    UPLOAD = "upload"


@dataclass(frozen=True)
class UploadOutcome:
    """Result for exactly one file of a run.

    Successful outcomes are always produced by the upload stage. Failed
    outcomes record the stage that failed; ``identifier`` is the
    destination key for upload failures and the file name otherwise.
    """

    identifier: str
    stage: OutcomeStage
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, destination_key: str) -> UploadOutcome:
        return cls(identifier=destination_key, stage=OutcomeStage.UPLOAD)

    @classmethod
    def fail(cls, identifier: str, stage: OutcomeStage, error: str) -> UploadOutcome:
        return cls(identifier=identifier, stage=stage, error=error)


@dataclass(frozen=True)
class FailedFile:
    """A single entry of RunSummary.failed, with the stage that failed."""

    identifier: str
    detail: str
    stage: OutcomeStage

    def to_dict(self) -> dict[str, str]:
        return {"identifier": self.identifier, "detail": self.detail, "stage": self.stage.value}


@dataclass(frozen=True)
class RunSummary:
    """Final accounting of a run.

    Attributes:
        total_files: Regular files found in the source directory.
        succeeded: Files stored in the object store.
        failed: Failing files in dispatch (listing) order, whatever stage failed.
    """

    total_files: int
    succeeded: int
    failed: tuple[FailedFile, ...] = ()

    @property
    def success(self) -> bool:
        """True when no file failed at any stage."""
        return not self.failed

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "total_files": self.total_files,
            "succeeded": self.succeeded,
            "failed": [f.to_dict() for f in self.failed],
            "success": self.success,
        }
