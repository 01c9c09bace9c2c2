"""Linux Secret Service backend using libsecret's secret-tool."""
from typing import Optional

from ..errors import SecureStorageError
from .backend import SERVICE, target_name
from .process import run_command

SECRET_TOOL = "secret-tool"

UNAVAILABLE_HINT = (
    "Install libsecret (e.g. apt install libsecret-tools, pacman -S libsecret).\n"
    "Alternatively, set the LINEAR_API_KEY environment variable."
)


class LinuxBackend:
    """Secrets stored with the attributes service=linear-cli, account=<name>."""

    def __init__(self, runner=run_command):
        self._run = runner

    def _secret_tool(self, args, input_text=None):
        return self._run(
            SECRET_TOOL, args, input_text=input_text, unavailable_hint=UNAVAILABLE_HINT
        )

    def get(self, account: str) -> Optional[str]:
        result = self._secret_tool(["lookup", "service", SERVICE, "account", account])
        if not result.success:
            # secret-tool exits 1 when no matching item exists
            if result.exit_code == 1:
                return None
            raise SecureStorageError(
                f"secret-tool lookup failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
        # API keys are never empty, so empty output means no entry
        return result.stdout or None

    def set(self, account: str, secret: str) -> None:
        result = self._secret_tool(
            [
                "store",
                "--label", target_name(account),
                "service", SERVICE,
                "account", account,
            ],
            input_text=secret,
        )
        if not result.success:
            raise SecureStorageError(
                f"secret-tool store failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )

    def delete(self, account: str) -> None:
        result = self._secret_tool(["clear", "service", SERVICE, "account", account])
        if not result.success and result.exit_code != 1:
            raise SecureStorageError(
                f"secret-tool clear failed (exit {result.exit_code}): {result.stderr}",
                exit_code=result.exit_code,
                stderr=result.stderr,
            )
