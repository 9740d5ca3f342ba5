"""Shared pytest fixtures for blobpush tests."""

from __future__ import annotations

import os
import random
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from blobpush_cli.models import StorageCredentials, UploadRequest

# =============================================================================
# Environment isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep settings from the developer's shell out of every test."""
    for name in list(os.environ):
        if name.startswith("BLOBPUSH_") or name in ("STORAGE_ACCOUNT", "STORAGE_ACCESS_KEY"):
            monkeypatch.delenv(name)


# =============================================================================
# Upload operation double
# =============================================================================


class StubUploader:
    """Thread-safe in-memory UploadOperation with injectable latency and failures.

    Attributes:
        stored: Objects stored so far, by key.
        calls: Keys passed to put(), in call order.
        peak_in_flight: Highest number of put() calls running at once.
    """

    def __init__(
        self,
        *,
        failing_keys: Iterable[str] = (),
        max_latency: float = 0.0,
        seed: int | None = None,
    ) -> None:
        self.failing_keys = set(failing_keys)
        self.max_latency = max_latency
        self.stored: dict[str, bytes] = {}
        self.calls: list[str] = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self._random = random.Random(seed)
        self._lock = threading.Lock()

    def put(self, key: str, payload: bytes) -> None:
        with self._lock:
            self.calls.append(key)
            self.in_flight += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
            delay = self._random.uniform(0, self.max_latency) if self.max_latency else 0.0
        try:
            if delay:
                time.sleep(delay)
            if key in self.failing_keys:
                raise ConnectionError(f"simulated failure for {key}")
            with self._lock:
                self.stored[key] = payload
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def make_uploader() -> Callable[..., StubUploader]:
    """Factory for StubUploader instances (see StubUploader for options)."""
    return StubUploader


@pytest.fixture
def uploader() -> StubUploader:
    """An uploader that stores everything instantly."""
    return StubUploader()


# =============================================================================
# Requests and source directories
# =============================================================================


@pytest.fixture
def credentials() -> StorageCredentials:
    return StorageCredentials(account="testaccount", access_key="dGVzdC1rZXktMTIzNA==")


@pytest.fixture
def make_request(credentials: StorageCredentials) -> Callable[..., UploadRequest]:
    """Factory for UploadRequest with test defaults for everything but the source."""

    def _make(
        source: str | Path,
        prefix: str = "backups/2024",
        container: str = "archive",
    ) -> UploadRequest:
        return UploadRequest(
            source_directory=source,
            destination_prefix=prefix,
            container_name=container,
            credentials=credentials,
        )

    return _make


@pytest.fixture
def source_dir(tmp_path: Path) -> Path:
    """Directory with three small files and a subdirectory that must be skipped."""
    data_dir = tmp_path / "out"
    data_dir.mkdir()
    (data_dir / "a.txt").write_bytes(b"alpha")
    (data_dir / "b.txt").write_bytes(b"bravo")
    (data_dir / "c.txt").write_bytes(b"charlie")
    (data_dir / "nested").mkdir()
    (data_dir / "nested" / "d.txt").write_bytes(b"delta")
    return data_dir


@pytest.fixture
def empty_dir(tmp_path: Path) -> Path:
    data_dir = tmp_path / "empty"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def make_source_dir(tmp_path: Path) -> Callable[[int], Path]:
    """Factory for a directory holding ``count`` files named file_000.bin, file_001.bin, ..."""

    def _make(count: int) -> Path:
        data_dir = tmp_path / f"many_{count}"
        data_dir.mkdir()
        for i in range(count):
            (data_dir / f"file_{i:03d}.bin").write_bytes(f"payload {i}".encode())
        return data_dir

    return _make
