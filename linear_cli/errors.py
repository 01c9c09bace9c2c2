"""Error types for linear-cli.

Every error raised to a command handler derives from CliError, which carries a
clean user-facing message and an optional suggestion for fixing the problem.
"""
from typing import Optional


class CliError(Exception):
    """Base error with a user-facing message."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion


class ValidationError(CliError):
    """Invalid user input (unknown workspace, empty key, etc.)."""
    pass


class AuthError(CliError):
    """No usable API key could be resolved."""
    pass


class ConfigError(CliError):
    """Project configuration file could not be read."""
    pass


class CredentialsFileError(CliError):
    """The on-disk credentials record is unreadable or malformed."""
    pass


class ToolUnavailableError(CliError):
    """The platform's secret-management tool could not be launched.

    The message already includes the remediation hint.
    """

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


class SecureStorageError(CliError):
    """The secret-management tool ran but reported a failure."""

    def __init__(self, message: str, exit_code: Optional[int] = None, stderr: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.stderr = stderr


class ProcessInputError(CliError):
    """Writing to a child process's standard input failed."""
    pass
