"""Workspace credential store.

Secrets live in the OS secure storage (see linear_cli.keyring); the on-disk
record only tracks workspace names and the default workspace. The store keeps
a per-process cache of workspace -> API key, filled on first access.

Every mutation writes to secure storage first and only then touches the
record and the cache, so a failed secret write never leaves a workspace
registered without its key.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ...errors import CliError, SecureStorageError, ValidationError
from ...keyring.backend import get_backend
from ..domains.models import CredentialsRecord, LegacyRecord
from ..domains.record_file import (
    get_credentials_path,
    legacy_credentials_path,
    parse_record,
    read_legacy_record,
    read_record,
    write_record,
)

logger = logging.getLogger(__name__)

_DEFAULT_PATH = object()


class CredentialStore:
    """
    Per-workspace API keys backed by a keyring backend and a credentials file.

    Construct one per process and pass it to the commands that need it.
    """

    def __init__(self, backend=None, path=_DEFAULT_PATH):
        """
        Args:
            backend: Secure-storage backend (get/set/delete by account name);
                selected for the host platform on first use when omitted
            path: Credentials file path; defaults to the platform config location
        """
        self._backend = backend
        self._path: Optional[Path] = get_credentials_path() if path is _DEFAULT_PATH else path
        self._loaded = False
        self._record = CredentialsRecord()
        self._legacy = LegacyRecord()
        self._cache: Dict[str, str] = {}
        self._legacy_file: Optional[Path] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> None:
        """
        Read the credentials file and resolve every workspace's API key.

        A workspace whose key cannot be read stays registered with no key.
        Keys found inline in a legacy file are served directly and staged for
        migration into secure storage on the next change.
        """
        legacy_file = None
        if self._path is not None and not self._path.exists():
            legacy_file = legacy_credentials_path(self._path)
            if not legacy_file.exists():
                legacy_file = None

        if legacy_file is not None:
            record, legacy = parse_record(read_legacy_record(legacy_file))
        else:
            record, legacy = parse_record(read_record(self._path))

        cache: Dict[str, str] = {}
        for workspace in record.workspaces:
            if workspace in legacy.secrets:
                if legacy.secrets[workspace]:
                    cache[workspace] = legacy.secrets[workspace]
                continue

            try:
                api_key = self.backend.get(workspace)
            except SecureStorageError as e:
                logger.warning(f"Could not read API key for workspace '{workspace}': {e}")
                continue

            if api_key:
                cache[workspace] = api_key
            else:
                logger.warning(
                    f"No API key found in secure storage for workspace '{workspace}'. "
                    f"Run `linear auth login` to add it again."
                )

        if record.default is not None and record.default not in record.workspaces:
            logger.warning(f"Default workspace '{record.default}' is not configured, ignoring it")
            record.default = None

        if legacy:
            logger.info(
                f"Credentials file {legacy_file or self._path} stores API keys inline; "
                f"they will be moved to secure storage on the next change"
            )

        self._record = record
        self._legacy = legacy
        self._cache = cache
        self._legacy_file = legacy_file
        self._loaded = True

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    @property
    def backend(self):
        """Secure-storage backend, selected for the host platform on first use."""
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_credential(self, workspace: str, api_key: str) -> None:
        """
        Add or update a workspace's API key.

        The first workspace added becomes the default.

        Raises:
            ValidationError: If the workspace name or API key is empty
            ToolUnavailableError, SecureStorageError: If the key cannot be stored;
                nothing is changed in that case
        """
        if not workspace:
            raise ValidationError("Workspace name cannot be empty")
        if not api_key:
            raise ValidationError("API key cannot be empty")

        self._ensure_loaded()
        self._require_path()

        self.backend.set(workspace, api_key)
        self._migrate_legacy(skip=workspace)

        record = self._copy_record()
        if workspace not in record.workspaces:
            record.workspaces.append(workspace)
        if record.default is None:
            record.default = workspace

        self._save(record)
        self._cache[workspace] = api_key
        logger.info(f"Stored API key for workspace '{workspace}'")

    def remove_credential(self, workspace: str) -> None:
        """
        Remove a workspace and its API key.

        If it was the default, the next remaining workspace becomes the default.

        Raises:
            ToolUnavailableError, SecureStorageError: If the key cannot be cleared;
                the workspace stays registered in that case
        """
        self._ensure_loaded()
        self._require_path()

        self.backend.delete(workspace)
        self._migrate_legacy(skip=workspace)

        record = self._copy_record()
        if workspace in record.workspaces:
            record.workspaces.remove(workspace)
        if record.default == workspace:
            record.default = record.workspaces[0] if record.workspaces else None

        self._save(record)
        self._cache.pop(workspace, None)
        logger.info(f"Removed workspace '{workspace}'")

    def set_default_workspace(self, workspace: str) -> None:
        """
        Make a configured workspace the default.

        Raises:
            ValidationError: If the workspace is not configured
        """
        self._ensure_loaded()
        if workspace not in self._record.workspaces:
            available = ", ".join(self._record.workspaces) or "none"
            raise ValidationError(
                f'Workspace "{workspace}" not found in credentials',
                suggestion=f"Available workspaces: {available}",
            )
        self._require_path()

        self._migrate_legacy()
        record = self._copy_record()
        record.default = workspace
        self._save(record)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_credential_api_key(self, workspace: Optional[str] = None) -> Optional[str]:
        """Get the API key for a workspace, or for the default if none is given."""
        self._ensure_loaded()
        if workspace:
            return self._cache.get(workspace)
        if self._record.default:
            return self._cache.get(self._record.default)
        return None

    def get_default_workspace(self) -> Optional[str]:
        self._ensure_loaded()
        return self._record.default

    def get_workspaces(self) -> List[str]:
        self._ensure_loaded()
        return list(self._record.workspaces)

    def has_workspace(self, workspace: str) -> bool:
        self._ensure_loaded()
        return workspace in self._record.workspaces

    def get_all_credentials(self) -> Dict[str, str]:
        """Copy of workspace -> API key for every workspace with a resolved key."""
        self._ensure_loaded()
        return dict(self._cache)

    def get_credentials_path(self) -> Optional[Path]:
        return self._path

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _require_path(self) -> None:
        if self._path is None:
            raise CliError(
                "Could not determine credentials path",
                suggestion="Set HOME or XDG_CONFIG_HOME (APPDATA on Windows).",
            )

    def _copy_record(self) -> CredentialsRecord:
        return CredentialsRecord(list(self._record.workspaces), self._record.default)

    def _migrate_legacy(self, skip: Optional[str] = None) -> None:
        """Move inline legacy API keys into secure storage."""
        for workspace, api_key in self._legacy.secrets.items():
            if workspace == skip or not api_key:
                continue
            self.backend.set(workspace, api_key)
            logger.info(f"Moved API key for workspace '{workspace}' to secure storage")

    def _save(self, record: CredentialsRecord) -> None:
        write_record(self._path, record)
        self._record = record
        self._legacy = LegacyRecord()
        if self._legacy_file is not None:
            # The YAML record now supersedes the older TOML file and its inline keys
            try:
                self._legacy_file.unlink()
            except FileNotFoundError:
                pass
            logger.info(f"Removed legacy credentials file {self._legacy_file}")
            self._legacy_file = None
