"""Events emitted by the upload orchestrator and the sinks that receive them.

The orchestrator never renders anything. It calls ``sink.notify(event)``
for each of the events below and leaves presentation to the sink:

| Event         | Cardinality                                              |
|---------------|----------------------------------------------------------|
| UploadStarted | once per dispatched file, in listing order               |
| Progress      | once per resolved upload, plus 100.0 on full success     |
| Info          | at most once ("nothing to upload" or the success note)   |
| Error         | per pre-dispatch failure, per failed upload, and one      |
|               | aggregate at the end when anything failed                |
| RunCompleted  | exactly once, last                                       |

Usage:
    from blobpush_cli.events import CollectingSink

    sink = CollectingSink()
    summary = orchestrator.run(request, sink)
    started = sink.of_type(UploadStarted)
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, TypeVar, runtime_checkable

from blobpush_cli.models import FailedFile, RunSummary


@dataclass(frozen=True)
class UploadStarted:
    """A file was read and handed to the object store."""

    file_name: str
    destination_key: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": "upload_started",
            "file_name": self.file_name,
            "destination_key": self.destination_key,
        }


@dataclass(frozen=True)
class Progress:
    """Share of the run's files that are fully processed, 0.0 to 100.0."""

    percentage: float

    def to_dict(self) -> dict[str, Any]:
        return {"event": "progress", "percentage": self.percentage}


@dataclass(frozen=True)
class Info:
    """An informational message; level "success" marks the full-success note."""

    message: str
    level: Literal["info", "success"] = "info"

    def to_dict(self) -> dict[str, Any]:
        return {"event": "info", "message": self.message, "level": self.level}


@dataclass(frozen=True)
class Error:
    """An error message, optionally enumerating the files it covers.

    Attributes:
        message: Human-readable description.
        failures: (identifier, detail) pairs covered by this error. Single-file
            errors carry one pair, the final aggregate carries all of them.
        code: Structured error code of the underlying error, when known.
    """

    message: str
    failures: tuple[FailedFile, ...] = ()
    code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event": "error",
            "message": self.message,
            "code": self.code,
            "failures": [f.to_dict() for f in self.failures],
        }


@dataclass(frozen=True)
class RunCompleted:
    """Terminal event carrying the final summary."""

    summary: RunSummary

    def to_dict(self) -> dict[str, Any]:
        return {"event": "run_completed", "summary": self.summary.to_dict()}


Event = UploadStarted | Progress | Info | Error | RunCompleted

E = TypeVar("E", UploadStarted, Progress, Info, Error, RunCompleted)


@runtime_checkable
class NotificationSink(Protocol):
    """Receiver of orchestrator events.

    Implementations decide how to present events (terminal, JSON, UI).
    The orchestrator calls ``notify`` from a single thread at a time.
    """

    def notify(self, event: Event) -> None:
        """Handle one event."""
        ...


@dataclass
class CollectingSink:
    """Sink that keeps every event in arrival order."""

    events: list[Event] = field(default_factory=list)

    def notify(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, event_type: type[E]) -> list[E]:
        """Return the received events of one type, in arrival order."""
        return [e for e in self.events if isinstance(e, event_type)]

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self.events]


class SerializedSink:
    """Wrap a sink so that concurrent callers reach it one at a time."""

    def __init__(self, inner: NotificationSink) -> None:
        self._inner = inner
        self._lock = threading.Lock()

    def notify(self, event: Event) -> None:
        with self._lock:
            self._inner.notify(event)
