"""blobpush - Upload a local directory to Azure Blob Storage."""

import logging

from blobpush_cli.cli import cli
from blobpush_cli.events import CollectingSink, NotificationSink
from blobpush_cli.models import RunSummary, StorageCredentials, UploadRequest
from blobpush_cli.upload import UploadOrchestrator, upload_directory

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "CollectingSink",
    "NotificationSink",
    "RunSummary",
    "StorageCredentials",
    "UploadOrchestrator",
    "UploadRequest",
    "cli",
    "upload_directory",
]
