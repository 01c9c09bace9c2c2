"""Project configuration loader for linear-cli.

Options come from, in priority order:
1. An explicit value (command-line flag)
2. A project config file (linear.yml / .linear.yml)
3. An environment variable LINEAR_<OPTION>

The credential store is consulted only after all three come up empty.
"""
import logging
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import dotenv_values

from ...errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAMES = ("linear.yml", ".linear.yml")
OPTION_NAMES = ("api_key", "workspace", "team_id", "issue_sort")
ENV_PREFIX = "LINEAR_"
ENV_FILE_NAME = ".env"
ENV_FILE_PREFIXES = ("LINEAR_", "GH_", "GITHUB_")


def _get_git_root(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the top-level directory of the enclosing git work tree, if any."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            capture_output=True, text=True, check=True, cwd=cwd
        )
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"Not in a git repository: {e}")
        return None
    root = result.stdout.strip()
    return Path(root) if root else None


def _candidate_paths(cwd: Optional[Path] = None) -> List[Path]:
    """Config file locations, most specific first."""
    base = cwd or Path.cwd()
    paths = [base / name for name in CONFIG_FILE_NAMES]

    git_root = _get_git_root(cwd)
    if git_root:
        paths.extend(git_root / name for name in CONFIG_FILE_NAMES)
        paths.append(git_root / ".config" / "linear.yml")
    return paths


def load_env_file(cwd: Optional[Path] = None, environ=None) -> Dict[str, str]:
    """
    Apply variables from a project .env file to the environment.

    The .env in the working directory wins; otherwise the one at the git root
    is used. Only LINEAR_, GH_ and GITHUB_ variables are applied, and a variable
    that is already set is never overridden.

    Args:
        cwd: Directory to search from (defaults to the current directory)
        environ: Mapping to update (defaults to os.environ)

    Returns:
        The variables that were applied
    """
    if environ is None:
        environ = os.environ

    path = (cwd or Path.cwd()) / ENV_FILE_NAME
    if not path.is_file():
        git_root = _get_git_root(cwd)
        if git_root is None:
            return {}
        path = git_root / ENV_FILE_NAME
        if not path.is_file():
            return {}

    logger.debug(f"Loading environment from {path}")
    applied = {}
    for key, value in dotenv_values(path).items():
        if value is None or not key.startswith(ENV_FILE_PREFIXES):
            continue
        if key in environ:
            continue
        environ[key] = value
        applied[key] = value
    return applied


def find_config_path(cwd: Optional[Path] = None) -> Optional[Path]:
    """
    Locate the project config file.

    Returns:
        First existing config file path, or None if there is none
    """
    for path in _candidate_paths(cwd):
        if path.is_file():
            logger.debug(f"Using project config: {path}")
            return path
    return None


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load the project configuration.

    Args:
        path: Explicit config file (searched for when omitted)

    Returns:
        Configuration mapping, empty if no config file exists

    Raises:
        ConfigError: If the file cannot be read, parsed, or is not a mapping
    """
    if path is None:
        path = find_config_path()
        if path is None:
            return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {path}: {e}") from e

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {path} must contain a mapping of options")
    return config


class ProjectConfig:
    """Resolves options from flags, the project config file and the environment."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self._config = config

    @property
    def config(self) -> Dict[str, Any]:
        """Lazy-load the config file on first use."""
        if self._config is None:
            self._config = load_config()
        return self._config

    def get_option(self, name: str, cli_value: Optional[str] = None) -> Optional[str]:
        """
        Resolve an option value.

        Args:
            name: Option name (api_key, workspace, team_id, issue_sort)
            cli_value: Value given explicitly on the command line

        Returns:
            The resolved value, or None if no source provides one
        """
        if name not in OPTION_NAMES:
            raise ConfigError(f"Unknown option: {name}")
        if cli_value is not None:
            return cli_value

        from_config = self.config.get(name)
        if isinstance(from_config, str):
            return from_config

        return os.getenv(ENV_PREFIX + name.upper())


def resolve_api_key(store, config: ProjectConfig,
                    cli_api_key: Optional[str] = None,
                    cli_workspace: Optional[str] = None) -> Optional[str]:
    """
    Resolve the API key to use for a request.

    Priority order:
    1. api_key option (flag, project config, LINEAR_API_KEY)
    2. Stored credential for the --workspace flag
    3. Stored credential for the project's workspace option
    4. Stored credential for the default workspace

    Returns:
        API key, or None if nothing is configured
    """
    api_key = config.get_option("api_key", cli_api_key)
    if api_key:
        return api_key

    if cli_workspace:
        key = store.get_credential_api_key(cli_workspace)
        if key:
            return key

    project_workspace = config.get_option("workspace")
    if project_workspace:
        key = store.get_credential_api_key(project_workspace)
        if key:
            return key

    return store.get_credential_api_key()
