"""Terminal rendering of orchestrator events."""

from __future__ import annotations

import sys

from blobpush_cli.events import Error, Event, Info, Progress, RunCompleted, UploadStarted
from blobpush_cli.output import detail, error, info, success


class ConsoleSink:
    """NotificationSink that prints each event as a styled line."""

    def notify(self, event: Event) -> None:
        if isinstance(event, UploadStarted):
            detail(f"{event.file_name} -> {event.destination_key}")
        elif isinstance(event, Progress):
            detail(f"Progress: {event.percentage:.2f}%")
        elif isinstance(event, Info):
            if event.level == "success":
                success(event.message)
            else:
                info(event.message)
        elif isinstance(event, Error):
            error(event.message)
            # Only the final aggregate lists its files; single-file errors name theirs
            if event.code is None:
                for failed in event.failures:
                    detail(f"{failed.identifier}: {failed.detail}", file=sys.stderr)
        elif isinstance(event, RunCompleted):
            summary = event.summary
            line = (
                f"{summary.succeeded}/{summary.total_files} file(s) uploaded, "
                f"{len(summary.failed)} failed"
            )
            if summary.success:
                info(line)
            else:
                error(line)
