"""Secure-storage capability shared by every platform backend."""
import logging
import sys
from typing import Optional, Protocol

from ..errors import CliError

logger = logging.getLogger(__name__)

# Service identifier used to label every stored secret
SERVICE = "linear-cli"


class KeyringBackend(Protocol):
    """Get, set and delete a secret keyed by account name."""

    def get(self, account: str) -> Optional[str]:
        """Return the stored secret, or None when no entry exists."""
        ...

    def set(self, account: str, secret: str) -> None:
        """Write or overwrite the secret for an account."""
        ...

    def delete(self, account: str) -> None:
        """Remove the secret for an account; a missing entry is not an error."""
        ...


def target_name(account: str) -> str:
    """Label under which an account's secret is stored."""
    return f"{SERVICE}:{account}"


def get_backend(system: Optional[str] = None) -> KeyringBackend:
    """
    Select the secure-storage backend for the host operating system.

    Args:
        system: Platform string to select for (defaults to sys.platform)

    Returns:
        Backend instance for the platform

    Raises:
        CliError: If the platform has no supported secure storage
    """
    system = system or sys.platform

    if system == "darwin":
        from .macos import MacOSBackend
        backend = MacOSBackend()
    elif system.startswith("linux"):
        from .linux import LinuxBackend
        backend = LinuxBackend()
    elif system == "win32":
        from .windows import WindowsBackend
        backend = WindowsBackend()
    else:
        raise CliError(
            f"Unsupported platform: {system}",
            suggestion="Set the LINEAR_API_KEY environment variable instead.",
        )

    logger.debug(f"Using {type(backend).__name__} for platform {system}")
    return backend
