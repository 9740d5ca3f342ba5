"""Configuration resolution for the blobpush CLI.

Settings resolve with the following precedence (highest to lowest):
1. CLI argument (or a value typed at a prompt)
2. Environment variable
3. Config file (`blobpush.yaml` in the working directory, or --config)
4. Built-in default

Credentials use the storage-account variables shared with other tooling
(STORAGE_ACCOUNT, STORAGE_ACCESS_KEY); every other setting reads
BLOBPUSH_<KEY>.

Only the CLI reads the environment or config files. The orchestrator
receives everything it needs in the UploadRequest.

Usage:
    from blobpush_cli.config import load_config, get_setting, require_setting

    config = load_config(Path("blobpush.yaml"))
    account = require_setting("account", cli_value=cli_account, config=config)
    endpoint = get_setting("endpoint", config=config)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from blobpush_cli.errors import ConfigError, ConfigParseError, MissingSettingError

CONFIG_FILENAME = "blobpush.yaml"

KNOWN_SETTINGS: frozenset[str] = frozenset(
    {"account", "access_key", "endpoint", "max_concurrency"}
)

# Settings read from a fixed variable name instead of BLOBPUSH_<KEY>
ENV_VAR_NAMES: dict[str, str] = {
    "account": "STORAGE_ACCOUNT",
    "access_key": "STORAGE_ACCESS_KEY",
}

# Settings whose values are never shown in full
SECRET_SETTINGS: frozenset[str] = frozenset({"access_key"})

DEFAULTS: dict[str, Any] = {"max_concurrency": 8}


def default_config_path(cwd: Path | None = None) -> Path:
    """Return the config file looked up when --config is not given."""
    return (cwd or Path.cwd()) / CONFIG_FILENAME


def load_config(path: Path | None) -> dict[str, Any]:
    """Load settings from a YAML config file.

    Args:
        path: Config file path. None or a missing file yields no settings.

    Returns:
        Config dictionary.

    Raises:
        ConfigParseError: If the file cannot be read as UTF-8 text, is not
            valid YAML, or is not a mapping.
    """
    if path is None or not path.exists():
        return {}

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(str(path), str(e)) from e
    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(path), str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(str(path), f"expected a mapping, got {type(data).__name__}")
    return data


def get_env_var_name(key: str) -> str:
    """Environment variable consulted for a setting.

    Example:
        >>> get_env_var_name("account")
        'STORAGE_ACCOUNT'
        >>> get_env_var_name("max_concurrency")
        'BLOBPUSH_MAX_CONCURRENCY'
    """
    return ENV_VAR_NAMES.get(key, f"BLOBPUSH_{key.upper()}")


def get_setting_source(
    key: str,
    cli_value: Any | None = None,
    config: dict[str, Any] | None = None,
) -> str:
    """Return where a setting's value comes from: cli, env, config or default."""
    if cli_value is not None:
        return "cli"
    if get_env_var_name(key) in os.environ:
        return "env"
    if config and config.get(key) is not None:
        return "config"
    return "default"


def get_setting(
    key: str,
    cli_value: Any | None = None,
    config: dict[str, Any] | None = None,
) -> Any | None:
    """Resolve a setting with full precedence.

    Args:
        key: Setting key (e.g., "account", "endpoint").
        cli_value: Value passed on the command line (highest precedence).
        config: Settings loaded from the config file.

    Returns:
        Resolved value, or None if not set at any level.
    """
    source = get_setting_source(key, cli_value, config)
    if source == "cli":
        return cli_value
    if source == "env":
        return os.environ[get_env_var_name(key)]
    if source == "config" and config is not None:
        return config[key]
    return DEFAULTS.get(key)


def require_setting(
    key: str,
    cli_value: Any | None = None,
    config: dict[str, Any] | None = None,
) -> str:
    """Resolve a setting that must be present and non-empty.

    Raises:
        MissingSettingError: With a hint on how to provide the setting.
    """
    value = get_setting(key, cli_value, config)
    if value is None or str(value) == "":
        option = "--" + key.replace("_", "-")
        hint = (
            f"Set the {get_env_var_name(key)} environment variable, pass {option}, "
            f"or add '{key}' to {CONFIG_FILENAME}."
        )
        raise MissingSettingError(key, hint)
    return str(value)


def get_max_concurrency(
    cli_value: int | None = None,
    config: dict[str, Any] | None = None,
) -> int:
    """Resolve max_concurrency as a positive integer.

    Raises:
        ConfigError: If the configured value is not a positive integer.
    """
    value = get_setting("max_concurrency", cli_value, config)
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(
            f"max_concurrency must be an integer, got {value!r}", key="max_concurrency"
        ) from e
    if number < 1:
        raise ConfigError(
            f"max_concurrency must be at least 1, got {number}", key="max_concurrency"
        )
    return number


def mask_secret(value: str) -> str:
    """Hide all but the last four characters of a secret.

    Example:
        >>> mask_secret("abcdefgh1234")
        '********1234'
    """
    if len(value) <= 4:
        return "*" * len(value)
    return "*" * (len(value) - 4) + value[-4:]


def list_settings(config: dict[str, Any] | None = None) -> dict[str, dict[str, Any]]:
    """List known settings with their resolved values and sources.

    Secret values are masked.

    Returns:
        Dict mapping setting keys to {"value": ..., "source": ...}
    """
    result: dict[str, dict[str, Any]] = {}
    for key in sorted(KNOWN_SETTINGS | set(config or {})):
        value = get_setting(key, config=config)
        if value is not None and key in SECRET_SETTINGS:
            value = mask_secret(str(value))
        result[key] = {"value": value, "source": get_setting_source(key, config=config)}
    return result
