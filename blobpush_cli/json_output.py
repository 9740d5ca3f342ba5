"""JSON envelope for machine-readable CLI output.

With ``blobpush --format json`` each command prints exactly one envelope:

    {
        "success": true|false,
        "command": "upload",
        "data": { ... },
        "errors": [ ... ]  # Only present when success=false
    }

Usage:
    from blobpush_cli.json_output import ErrorDetail, error_envelope, success_envelope

    click.echo(success_envelope("upload", {"summary": summary.to_dict()}).to_json())

    errors = [ErrorDetail.from_exception(err)]
    click.echo(error_envelope("upload", errors).to_json())
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from blobpush_cli.errors import BlobpushError


@dataclass
class ErrorDetail:
    """One entry of the envelope's errors array.

    Attributes:
        type: Error class name (e.g., "ValidationError")
        message: Human-readable error description
        code: Structured error code, when the error has one
    """

    type: str
    message: str
    code: str | None = None

    @classmethod
    def from_exception(cls, err: Exception) -> ErrorDetail:
        if isinstance(err, BlobpushError):
            return cls(type=type(err).__name__, message=err.message, code=err.code)
        return cls(type=type(err).__name__, message=str(err))

    def to_dict(self) -> dict[str, str]:
        result = {"type": self.type, "message": self.message}
        if self.code is not None:
            result["code"] = self.code
        return result


@dataclass
class OutputEnvelope:
    """Wrapper structure for all JSON command output."""

    success: bool
    command: str
    data: dict[str, Any] | None
    errors: list[ErrorDetail] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary; errors are omitted when None."""
        result: dict[str, Any] = {
            "success": self.success,
            "command": self.command,
            "data": self.data,
        }

        if self.errors is not None:
            result["errors"] = [e.to_dict() for e in self.errors]

        return result

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def success_envelope(command: str, data: dict[str, Any]) -> OutputEnvelope:
    return OutputEnvelope(success=True, command=command, data=data)


def error_envelope(
    command: str,
    errors: list[ErrorDetail],
    *,
    data: dict[str, Any] | None = None,
) -> OutputEnvelope:
    """Create a failed envelope; ``data`` may carry partial results."""
    return OutputEnvelope(
        success=False,
        command=command,
        data=data if data is not None else {},
        errors=errors,
    )
