"""On-disk credentials record.

The record lives in the platform config directory:
~/.config/linear/credentials.yml (or $XDG_CONFIG_HOME/linear, %APPDATA%\\linear)

It lists workspace names and the default workspace only. Older releases kept
each workspace's API key inline in credentials.toml (`<workspace> = "<key>"`);
that file is read when no credentials.yml exists, and its keys are handed
back separately so the store can migrate them.
"""
import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from ...errors import CliError, CredentialsFileError
from .models import CredentialsRecord, LegacyRecord

logger = logging.getLogger(__name__)

APP_DIR = "linear"
CREDENTIALS_FILE = "credentials.yml"
LEGACY_CREDENTIALS_FILE = "credentials.toml"

_RECORD_KEYS = ("default", "workspaces")


def get_credentials_path() -> Optional[Path]:
    """
    Get the path to the credentials file.

    Follows the XDG Base Directory standard on Unix-like systems and uses
    APPDATA on Windows.

    Returns:
        Path to credentials.yml, or None if no config directory can be determined
    """
    if sys.platform == "win32":
        app_data = os.getenv("APPDATA")
        if app_data:
            return Path(app_data) / APP_DIR / CREDENTIALS_FILE
        return None

    xdg_config_home = os.getenv("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / APP_DIR / CREDENTIALS_FILE

    home = os.getenv("HOME")
    if home:
        return Path(home) / ".config" / APP_DIR / CREDENTIALS_FILE
    return None


def read_record(path: Optional[Path]) -> Dict[str, Any]:
    """
    Read the raw top-level mapping of the credentials file.

    Args:
        path: Credentials file path (None means no location is available)

    Returns:
        Parsed mapping, or an empty dict if the file doesn't exist or is empty

    Raises:
        CredentialsFileError: If the file cannot be read or parsed
    """
    if path is None or not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CredentialsFileError(
            f"Failed to parse credentials file at {path}: {e}",
            suggestion="Fix or remove the file, then run `linear auth login` again.",
        ) from e
    except OSError as e:
        raise CredentialsFileError(f"Failed to read credentials file at {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CredentialsFileError(
            f"Credentials file at {path} must contain a mapping, got {type(data).__name__}"
        )
    return data


def legacy_credentials_path(path: Optional[Path]) -> Optional[Path]:
    """Location of the older TOML credentials file next to the record."""
    if path is None:
        return None
    return path.with_name(LEGACY_CREDENTIALS_FILE)


def read_legacy_record(path: Optional[Path]) -> Dict[str, Any]:
    """
    Read an older credentials.toml with API keys stored inline.

    Returns:
        Parsed mapping, or an empty dict if the file doesn't exist

    Raises:
        CredentialsFileError: If the file cannot be read or parsed
    """
    if path is None or not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise CredentialsFileError(
            f"Failed to parse credentials file at {path}: {e}",
            suggestion="Fix or remove the file, then run `linear auth login` again.",
        ) from e
    except OSError as e:
        raise CredentialsFileError(f"Failed to read credentials file at {path}: {e}") from e


def parse_record(data: Dict[str, Any]) -> Tuple[CredentialsRecord, LegacyRecord]:
    """
    Split a raw mapping into the current record shape and any legacy secrets.

    Any key other than `default`/`workspaces` whose value is a string is a
    legacy `<workspace>: <api key>` entry.

    Returns:
        (CredentialsRecord, LegacyRecord); the record's default is not validated here
    """
    record = CredentialsRecord()

    workspaces = data.get("workspaces")
    if isinstance(workspaces, list):
        for name in workspaces:
            if isinstance(name, str) and name and name not in record.workspaces:
                record.workspaces.append(name)
    elif workspaces is not None:
        logger.warning(f"Ignoring malformed 'workspaces' entry in credentials file: {workspaces!r}")

    legacy = LegacyRecord()
    for key, value in data.items():
        if key in _RECORD_KEYS:
            continue
        if isinstance(value, str):
            name = str(key)
            legacy.secrets[name] = value
            if name not in record.workspaces:
                record.workspaces.append(name)
        else:
            logger.debug(f"Ignoring unknown credentials key: {key}")

    default = data.get("default")
    if isinstance(default, str) and default:
        record.default = default

    return record, legacy


def write_record(path: Optional[Path], record: CredentialsRecord) -> None:
    """
    Write the record to disk, replacing any previous contents.

    Args:
        path: Credentials file path
        record: Record to persist (never contains secrets)

    Raises:
        CliError: If no credentials path could be determined
    """
    if path is None:
        raise CliError(
            "Could not determine credentials path",
            suggestion="Set HOME or XDG_CONFIG_HOME (APPDATA on Windows).",
        )

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create credentials directory {path.parent}: {e}")
        raise

    # Write beside the record and swap it in, so a crash never truncates it
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump(record.to_dict(), f, default_flow_style=False, sort_keys=False)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise
    logger.debug(f"Credentials record written to {path}")
