"""Structured error codes for blobpush.

All errors follow the format BLPSH-{category}{number}:
- BLPSH-VAL*: Request validation errors
- BLPSH-DIR*: Source directory (preflight) errors
- BLPSH-ENT*: Per-file errors raised before an upload is dispatched
- BLPSH-UPL*: Per-upload errors reported by the object store
- BLPSH-CFG*: Configuration errors

Validation, directory and configuration errors abort a run. Entry and
upload errors are recorded against a single file and never stop its
siblings; they travel inside outcomes and events rather than being raised
out of the orchestrator.
"""

from __future__ import annotations

from typing import Any


class BlobpushError(Exception):
    """Base class for all blobpush errors.

    All errors have:
    - code: Structured error code (e.g., BLPSH-VAL001)
    - message: Human-readable error message
    """

    code: str = "BLPSH-000"

    _RESERVED_ATTRS = frozenset({"code", "message", "context", "args"})

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize a blobpush error.

        Args:
            message: Human-readable error message.
            **context: Additional context stored as error attributes.
                Reserved keys (code, message, context, args) are ignored.
        """
        self.message = message
        self.context = context
        for key, value in context.items():
            if key not in self._RESERVED_ATTRS:
                setattr(self, key, value)
        super().__init__(f"[{self.code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# Human labels for request fields, as shown to the person who filled them in
_FIELD_LABELS: dict[str, str] = {
    "container_name": "Container",
    "source_directory": "Folder Path",
    "destination_prefix": "Upload Folder",
    "account": "Storage Account",
    "access_key": "Storage Account Key",
}


# Validation Errors (BLPSH-VAL*)
class ValidationError(BlobpushError):
    """Raised when an upload request is missing or has an invalid field.

    Error code: BLPSH-VAL001
    """

    code = "BLPSH-VAL001"

    def __init__(self, field: str, reason: str = "is required") -> None:
        super().__init__(f"{_FIELD_LABELS.get(field, field)} {reason}.", field=field)


# Directory Errors (BLPSH-DIR*)
class DirectoryReadError(BlobpushError):
    """Raised when the source directory cannot be listed.

    Error code: BLPSH-DIR001
    """

    code = "BLPSH-DIR001"

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Directory read error: {detail}", path=path, detail=detail)


# Entry Errors (BLPSH-ENT*)
class EntryError(BlobpushError):
    """Base class for per-file errors that happen before dispatch."""

    code = "BLPSH-ENT000"

    identifier: str
    detail: str


class EntryReadError(EntryError):
    """Raised when a file's content cannot be read.

    Error code: BLPSH-ENT001
    """

    code = "BLPSH-ENT001"

    def __init__(self, identifier: str, detail: str) -> None:
        super().__init__(
            f"Failed to read file {identifier}: {detail}",
            identifier=identifier,
            detail=detail,
        )


class NameDecodeError(EntryError):
    """Raised when a file name cannot be represented as text.

    Error code: BLPSH-ENT002
    """

    code = "BLPSH-ENT002"

    def __init__(self, identifier: str) -> None:
        detail = "Failed to convert file name to string"
        super().__init__(f"{detail}: {identifier}", identifier=identifier, detail=detail)


# Upload Errors (BLPSH-UPL*)
class UploadError(BlobpushError):
    """Raised when the object store rejects or fails a single upload.

    Error code: BLPSH-UPL001
    """

    code = "BLPSH-UPL001"

    identifier: str
    detail: str

    def __init__(self, destination_key: str, detail: str) -> None:
        super().__init__(
            f"Failed to upload {destination_key}: {detail}",
            destination_key=destination_key,
            detail=detail,
        )
        self.identifier = destination_key


# Configuration Errors (BLPSH-CFG*)
class ConfigError(BlobpushError):
    """Base class for configuration-related errors."""

    code = "BLPSH-CFG000"


class ConfigParseError(ConfigError):
    """Raised when a configuration file cannot be parsed.

    Error code: BLPSH-CFG001
    """

    code = "BLPSH-CFG001"

    def __init__(self, path: str, parse_error: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {parse_error}",
            path=path,
            parse_error=parse_error,
        )


class MissingSettingError(ConfigError):
    """Raised when a required setting is not provided at any level.

    Error code: BLPSH-CFG002
    """

    code = "BLPSH-CFG002"

    def __init__(self, key: str, hint: str) -> None:
        super().__init__(f"Missing required setting '{key}'. {hint}", key=key, hint=hint)
