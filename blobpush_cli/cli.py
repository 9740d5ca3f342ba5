"""blobpush CLI - upload a local directory to an Azure Blob Storage container.

The CLI is a thin wrapper around the Python API (see upload.py). It sources
parameters from arguments, prompts, environment variables and the config
file, builds an UploadRequest, and renders the run's events.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from blobpush_cli.config import (
    default_config_path,
    get_max_concurrency,
    get_setting,
    list_settings,
    load_config,
    require_setting,
)
from blobpush_cli.errors import BlobpushError, ConfigError, DirectoryReadError, ValidationError
from blobpush_cli.events import CollectingSink, NotificationSink
from blobpush_cli.json_output import ErrorDetail, error_envelope, success_envelope
from blobpush_cli.models import StorageCredentials, UploadRequest
from blobpush_cli.output import detail, error, info, success, warn
from blobpush_cli.render import ConsoleSink
from blobpush_cli.storage import ObjectStoreUploader, azure_store
from blobpush_cli.upload import plan_uploads, upload_directory, validate_request

# Prompt labels for --interactive, in the order they are asked
_PROMPTS: dict[str, str] = {
    "container": "Container",
    "folder_path": "Folder Path",
    "upload_folder": "Upload Folder",
    "account": "Storage Account",
    "access_key": "Storage Account Key",
}


def should_output_json(ctx: click.Context) -> bool:
    """True when the global --format option asks for JSON."""
    obj = ctx.find_root().obj or {}
    return bool(obj.get("format") == "json")


def _fail(
    ctx: click.Context,
    command: str,
    err: Exception,
    *,
    data: dict[str, Any] | None = None,
    already_reported: bool = False,
) -> NoReturn:
    """Report an error in the active output format and exit with status 1."""
    if should_output_json(ctx):
        envelope = error_envelope(command, [ErrorDetail.from_exception(err)], data=data)
        click.echo(envelope.to_json())
    elif not already_reported:
        message = err.message if isinstance(err, BlobpushError) else str(err)
        error(message)
    raise SystemExit(1) from err


@click.group()
@click.version_option(package_name="blobpush")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Output format (json for machine parsing, text for humans).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details to stderr.")
@click.pass_context
def cli(ctx: click.Context, output_format: str, verbose: bool) -> None:
    """blobpush - Upload a local directory to Azure Blob Storage."""
    ctx.ensure_object(dict)
    ctx.obj["format"] = output_format
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )


# Values that may also come from the environment or the config file
_SETTING_KEYS: frozenset[str] = frozenset({"account", "access_key"})


def _load_config(config_path: Path | None) -> dict[str, Any]:
    """Load the --config file, or ./blobpush.yaml when no path is given."""
    if config_path is not None and not config_path.exists():
        warn(f"Config file not found: {config_path}")
    return load_config(config_path or default_config_path())


def _resolve_value(
    key: str,
    cli_value: str | None,
    config: dict[str, Any],
    *,
    interactive: bool,
) -> str:
    """Resolve one required value, prompting for it in interactive mode.

    Raises:
        MissingSettingError: If a credential is missing and prompting is off.
        click.UsageError: If a positional argument is missing and prompting is off.
    """
    value = get_setting(key, cli_value, config) if key in _SETTING_KEYS else cli_value
    if value not in (None, ""):
        return str(value)
    if interactive:
        return str(click.prompt(_PROMPTS[key], hide_input=key == "access_key"))
    if key in _SETTING_KEYS:
        return require_setting(key, cli_value, config)
    raise click.UsageError(f"Missing argument '{key.upper()}'.")


@cli.command()
@click.argument("container", required=False)
@click.argument("folder_path", required=False)
@click.argument("upload_folder", required=False)
@click.option("--account", help="Storage account name [env: STORAGE_ACCOUNT].")
@click.option("--access-key", help="Storage account key [env: STORAGE_ACCESS_KEY].")
@click.option("--endpoint", help="Custom blob endpoint URL (e.g., an Azurite emulator).")
@click.option(
    "--max-concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Uploads in flight at once (default: 8).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./blobpush.yaml when present).",
)
@click.option(
    "--interactive",
    "-i",
    is_flag=True,
    help="Prompt for any value not given as argument, option or setting.",
)
@click.option("--dry-run", is_flag=True, help="Show what would be uploaded without uploading.")
@click.pass_context
def upload(
    ctx: click.Context,
    container: str | None,
    folder_path: str | None,
    upload_folder: str | None,
    account: str | None,
    access_key: str | None,
    endpoint: str | None,
    max_concurrency: int | None,
    config_path: Path | None,
    interactive: bool,
    dry_run: bool,
) -> None:
    """Upload the files in FOLDER_PATH to CONTAINER under UPLOAD_FOLDER.

    Only files directly inside FOLDER_PATH are uploaded; each one is stored
    as UPLOAD_FOLDER/<file name>. Credentials come from --account and
    --access-key, the STORAGE_ACCOUNT and STORAGE_ACCESS_KEY environment
    variables, or the config file.

    Exits with status 1 if any file fails to upload.
    """
    use_json = should_output_json(ctx)

    try:
        config = _load_config(config_path)
        values = {
            key: _resolve_value(key, cli_value, config, interactive=interactive)
            for key, cli_value in (
                ("container", container),
                ("folder_path", folder_path),
                ("upload_folder", upload_folder),
                ("account", account),
                ("access_key", access_key),
            )
        }
        concurrency = get_max_concurrency(max_concurrency, config)
        resolved_endpoint = get_setting("endpoint", endpoint, config)
    except ConfigError as err:
        _fail(ctx, "upload", err)

    request = UploadRequest(
        source_directory=values["folder_path"],
        destination_prefix=values["upload_folder"],
        container_name=values["container"],
        credentials=StorageCredentials(values["account"], values["access_key"]),
    )

    if dry_run:
        _dry_run(ctx, request)
        return

    try:
        validate_request(request)
    except ValidationError as err:
        _fail(ctx, "upload", err)

    try:
        store = azure_store(
            request.container_name, request.credentials, endpoint=resolved_endpoint
        )
    except Exception as err:
        _fail(ctx, "upload", BlobpushError(f"Failed to configure storage client: {err}"))

    collector = CollectingSink()
    sink: NotificationSink = collector
    if not use_json:
        sink = ConsoleSink()
        info(
            f"Uploading files from {request.source_directory} to "
            f"{request.credentials.account}/{request.destination_prefix} "
            f"in container {request.container_name}..."
        )

    try:
        summary = upload_directory(
            request, sink, uploader=ObjectStoreUploader(store), max_concurrency=concurrency
        )
    except (ValidationError, DirectoryReadError) as err:
        _fail(ctx, "upload", err, data={"events": collector.to_list()}, already_reported=True)

    if use_json:
        data = {"summary": summary.to_dict(), "events": collector.to_list()}
        if summary.success:
            click.echo(success_envelope("upload", data).to_json())
        else:
            errors = [
                ErrorDetail(type="UploadFailure", message=f"{f.identifier}: {f.detail}")
                for f in summary.failed
            ]
            click.echo(error_envelope("upload", errors, data=data).to_json())

    if not summary.success:
        raise SystemExit(1)


def _dry_run(ctx: click.Context, request: UploadRequest) -> None:
    """List the files an upload would send, without reading or sending them."""
    try:
        plan = plan_uploads(request)
    except (ValidationError, DirectoryReadError) as err:
        _fail(ctx, "upload", err)

    if should_output_json(ctx):
        files = [{"file_name": entry.name, "destination_key": key} for entry, key in plan]
        click.echo(success_envelope("upload", {"dry_run": True, "files": files}).to_json())
        return

    info(
        f"Would upload {len(plan)} file(s) to container {request.container_name}",
        dry_run=True,
    )
    for entry, key in plan:
        detail(f"{entry.name} -> {key}")


@cli.command("config")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ./blobpush.yaml when present).",
)
@click.pass_context
def config_cmd(ctx: click.Context, config_path: Path | None) -> None:
    """Show resolved settings and where each one comes from."""
    try:
        config = _load_config(config_path)
    except ConfigError as err:
        _fail(ctx, "config", err)

    settings = list_settings(config)

    if should_output_json(ctx):
        click.echo(success_envelope("config", {"settings": settings}).to_json())
        return

    for key, entry in settings.items():
        if entry["value"] is None:
            detail(f"{key}: (not set)")
        else:
            success(f"{key}: {entry['value']} ({entry['source']})")
