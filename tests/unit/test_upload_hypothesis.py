"""Property-based tests for the upload orchestrator using Hypothesis.

Whatever the directory holds and whichever uploads fail, every listed file
ends up counted exactly once and the event stream keeps its shape.
"""

from __future__ import annotations

import string
import tempfile
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from blobpush_cli.events import CollectingSink, Error, Info, Progress, RunCompleted, UploadStarted
from blobpush_cli.models import StorageCredentials, UploadRequest
from blobpush_cli.upload import ALL_UPLOADED, UploadOrchestrator, build_destination_key

# =============================================================================
# Custom Strategies
# =============================================================================

safe_chars = st.sampled_from(string.ascii_lowercase + string.digits + "_-.")
safe_filename = st.text(safe_chars, min_size=1, max_size=20).filter(
    lambda s: s not in (".", "..")
)
prefix_segment = st.text(st.sampled_from(string.ascii_lowercase + string.digits), min_size=1)
prefix = st.lists(prefix_segment, min_size=1, max_size=4).map("/".join)


class _FailingUploader:
    """Fails every key in ``failing``; thread-safe because it only reads."""

    def __init__(self, failing: frozenset[str]) -> None:
        self.failing = failing

    def put(self, key: str, payload: bytes) -> None:
        if key in self.failing:
            raise ConnectionError("rejected")


# =============================================================================
# Property: destination keys
# =============================================================================


class TestDestinationKeyProperties:
    @pytest.mark.unit
    @given(prefix=prefix, trailing=st.sampled_from(["", "/", "//"]), name=safe_filename)
    def test_key_is_prefix_slash_name(self, prefix: str, trailing: str, name: str) -> None:
        key = build_destination_key(prefix + trailing, name)

        assert key == f"{prefix}/{name}"
        assert "//" not in key
        assert key.rsplit("/", 1)[1] == name


# =============================================================================
# Property: every file is accounted for exactly once
# =============================================================================


class TestRunAccountingProperties:
    @pytest.mark.unit
    @settings(max_examples=40, deadline=None)
    @given(
        names=st.sets(safe_filename, max_size=25),
        data=st.data(),
        max_concurrency=st.integers(min_value=1, max_value=6),
    )
    def test_succeeded_plus_failed_equals_total(
        self, names: set[str], data: st.DataObject, max_concurrency: int
    ) -> None:
        failing_names = data.draw(st.sets(st.sampled_from(sorted(names)))) if names else set()
        failing = frozenset(f"p/{n}" for n in failing_names)

        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp)
            for name in names:
                (source / name).write_bytes(name.encode())
            request = UploadRequest(source, "p", "archive", StorageCredentials("a", "k"))
            sink = CollectingSink()

            summary = UploadOrchestrator(
                _FailingUploader(failing), max_concurrency=max_concurrency
            ).run(request, sink)

        assert summary.total_files == len(names)
        assert summary.succeeded + len(summary.failed) == summary.total_files
        assert [f.identifier for f in summary.failed] == sorted(failing)

        # Event stream shape
        assert sink.events[-1] == RunCompleted(summary)
        assert len(sink.of_type(RunCompleted)) == 1
        assert len(sink.of_type(UploadStarted)) == len(names)
        values = [p.percentage for p in sink.of_type(Progress)]
        assert values == sorted(values)
        if names:
            assert values[-1] == 100.0
        if failing:
            assert sink.events[-2] == Error(
                f"Failed to upload files: {len(failing)} of {len(names)} failed",
                failures=summary.failed,
            )
        elif names:
            assert sink.events[-2] == Info(ALL_UPLOADED, level="success")
