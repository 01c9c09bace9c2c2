"""macOS Keychain backend using the security command-line tool."""
from typing import Optional

from ..errors import SecureStorageError
from .backend import SERVICE
from .process import run_command

SECURITY = "/usr/bin/security"

# errSecItemNotFound
ITEM_NOT_FOUND = 44

UNAVAILABLE_HINT = (
    "Is this a macOS system?\n"
    "Alternatively, set the LINEAR_API_KEY environment variable."
)


class MacOSBackend:
    """Generic passwords in the login keychain, keyed by service and account."""

    def __init__(self, runner=run_command):
        self._run = runner

    def _security(self, *args):
        return self._run(SECURITY, list(args), unavailable_hint=UNAVAILABLE_HINT)

    def get(self, account: str) -> Optional[str]:
        result = self._security("find-generic-password", "-a", account, "-s", SERVICE, "-w")
        if not result.success:
            if result.exit_code == ITEM_NOT_FOUND:
                return None
            raise SecureStorageError(
                f"security find-generic-password failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        return result.stdout or None

    def set(self, account: str, secret: str) -> None:
        # -U updates the item in place when it already exists
        result = self._security(
            "add-generic-password", "-a", account, "-s", SERVICE, "-w", secret, "-U"
        )
        if not result.success:
            raise SecureStorageError(
                f"security add-generic-password failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

    def delete(self, account: str) -> None:
        result = self._security("delete-generic-password", "-a", account, "-s", SERVICE)
        if not result.success and result.exit_code != ITEM_NOT_FOUND:
            raise SecureStorageError(
                f"security delete-generic-password failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
