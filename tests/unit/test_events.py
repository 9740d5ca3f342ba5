"""Tests for events.py - event payloads and sinks."""

from __future__ import annotations

import json
import threading
import time

import pytest

from blobpush_cli.events import (
    CollectingSink,
    Error,
    Event,
    Info,
    NotificationSink,
    Progress,
    RunCompleted,
    SerializedSink,
    UploadStarted,
)
from blobpush_cli.models import FailedFile, OutcomeStage, RunSummary


class TestEventPayloads:
    """Every event serializes to a JSON-friendly dict tagged with its kind."""

    @pytest.mark.unit
    def test_upload_started(self) -> None:
        assert UploadStarted("a.txt", "p/a.txt").to_dict() == {
            "event": "upload_started",
            "file_name": "a.txt",
            "destination_key": "p/a.txt",
        }

    @pytest.mark.unit
    def test_progress_and_info(self) -> None:
        assert Progress(50.0).to_dict() == {"event": "progress", "percentage": 50.0}
        assert Info("hi").to_dict() == {"event": "info", "message": "hi", "level": "info"}

    @pytest.mark.unit
    def test_error_with_failures(self) -> None:
        failed = FailedFile("a.txt", "nope", OutcomeStage.READ)
        event = Error("Failed", failures=(failed,), code="BLPSH-ENT001")

        assert event.to_dict() == {
            "event": "error",
            "message": "Failed",
            "code": "BLPSH-ENT001",
            "failures": [{"identifier": "a.txt", "detail": "nope", "stage": "read"}],
        }

    @pytest.mark.unit
    def test_run_completed_is_json_serializable(self) -> None:
        failed = FailedFile("p/a.txt", "timeout", OutcomeStage.UPLOAD)
        event = RunCompleted(RunSummary(1, 0, (failed,)))

        decoded = json.loads(json.dumps(event.to_dict()))

        assert decoded["event"] == "run_completed"
        assert decoded["summary"]["success"] is False


class TestCollectingSink:
    @pytest.mark.unit
    def test_is_a_notification_sink(self) -> None:
        assert isinstance(CollectingSink(), NotificationSink)

    @pytest.mark.unit
    def test_keeps_arrival_order_and_filters_by_type(self) -> None:
        sink = CollectingSink()
        events: list[Event] = [
            UploadStarted("a.txt", "p/a.txt"),
            Progress(50.0),
            UploadStarted("b.txt", "p/b.txt"),
            Progress(100.0),
        ]
        for event in events:
            sink.notify(event)

        assert sink.events == events
        assert sink.of_type(Progress) == [Progress(50.0), Progress(100.0)]
        assert [e["event"] for e in sink.to_list()] == [
            "upload_started",
            "progress",
            "upload_started",
            "progress",
        ]


class TestSerializedSink:
    """SerializedSink lets several threads share a sink that is not thread-safe."""

    @pytest.mark.unit
    def test_callers_never_overlap(self) -> None:
        class _Detector:
            def __init__(self) -> None:
                self.active = 0
                self.overlaps = 0
                self.count = 0

            def notify(self, event: Event) -> None:
                self.active += 1
                if self.active > 1:
                    self.overlaps += 1
                time.sleep(0.0001)
                self.count += 1
                self.active -= 1

        inner = _Detector()
        sink = SerializedSink(inner)

        def _worker() -> None:
            for i in range(50):
                sink.notify(Progress(float(i)))

        threads = [threading.Thread(target=_worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert inner.overlaps == 0
        assert inner.count == 400
