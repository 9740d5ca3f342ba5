"""Object store adapter for the upload operation.

The orchestrator only needs "store these bytes under this key". Anything
that implements the UploadOperation protocol can stand in for the real
store: tests pass in-memory doubles, the CLI passes an ObjectStoreUploader
backed by obstore's Azure Blob Storage client.

Basic Usage:
    from blobpush_cli.models import StorageCredentials
    from blobpush_cli.storage import ObjectStoreUploader, azure_store

    store = azure_store("my-container", StorageCredentials("acct", "key"))
    uploader = ObjectStoreUploader(store)
    uploader.put("backups/2024/a.txt", b"...")

Local emulator (Azurite):
    store = azure_store(
        "my-container",
        StorageCredentials("devstoreaccount1", "..."),
        endpoint="http://127.0.0.1:10000/devstoreaccount1",
    )
"""

from __future__ import annotations

import logging
import time
from typing import Protocol, runtime_checkable

import obstore as obs
from obstore.store import AzureStore, MemoryStore

from blobpush_cli.models import StorageCredentials

logger = logging.getLogger(__name__)

# Type alias for the stores this tool writes to
ObjectStore = AzureStore | MemoryStore


@runtime_checkable
class UploadOperation(Protocol):
    """Stores one object. Raises on any transport or service failure."""

    def put(self, key: str, payload: bytes) -> None:
        """Store ``payload`` under ``key``, replacing any existing object."""
        ...


class ObjectStoreUploader:
    """UploadOperation backed by an obstore store.

    Safe to call from several threads at once; obstore stores are
    thread-safe.
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store

    def put(self, key: str, payload: bytes) -> None:
        size_mb = len(payload) / (1024 * 1024)
        start_time = time.time()

        obs.put(self.store, key, payload)

        elapsed = time.time() - start_time
        speed_mbps = size_mb / elapsed if elapsed > 0 else 0
        logger.debug("Stored %s (%.2f MB, %.2f MB/s)", key, size_mb, speed_mbps)


def azure_store(
    container: str,
    credentials: StorageCredentials,
    *,
    endpoint: str | None = None,
) -> AzureStore:
    """Build an Azure Blob Storage store for one container.

    Args:
        container: Container name.
        credentials: Storage account name and access key.
        endpoint: Custom blob endpoint URL (e.g., an Azurite emulator).

    Returns:
        AzureStore bound to the container.
    """
    store_kwargs: dict[str, str] = {
        "account_name": credentials.account,
        "account_key": credentials.access_key,
    }
    if endpoint:
        store_kwargs["endpoint"] = endpoint

    logger.debug("Creating AzureStore for %s/%s", credentials.account, container)
    return AzureStore(container, **store_kwargs)  # type: ignore[arg-type]
