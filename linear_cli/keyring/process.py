"""Run an external command and collect its output."""
import logging
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from ..errors import ProcessInputError, ToolUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Normalized outcome of a finished command."""
    success: bool
    exit_code: int
    stdout: str
    stderr: str


def run_command(
    command: str,
    args: Sequence[str],
    input_text: Optional[str] = None,
    unavailable_hint: Optional[str] = None,
) -> CommandResult:
    """
    Run a command, optionally feeding text to its standard input.

    Args:
        command: Executable name or absolute path
        args: Arguments passed to the executable
        input_text: Text written to stdin, which is then closed
        unavailable_hint: Remediation shown when the executable cannot be launched

    Returns:
        CommandResult with stdout and stderr stripped of surrounding whitespace

    Raises:
        ToolUnavailableError: If the executable is missing or cannot be started
        ProcessInputError: If writing to stdin fails after the process started
    """
    logger.debug(f"Running {command} {' '.join(args)}")

    try:
        process = subprocess.Popen(
            [command, *args],
            stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        message = f"Could not run {command}."
        if unavailable_hint:
            message = f"{message} {unavailable_hint}"
        raise ToolUnavailableError(f"{message}\n  ({e})", hint=unavailable_hint) from e

    if input_text is not None:
        # communicate() closes stdin once the input is flushed
        try:
            process.stdin.write(input_text)
            process.stdin.flush()
        except OSError as e:
            try:
                process.kill()
            except OSError:
                pass  # already exited
            process.wait()
            raise ProcessInputError(f"Failed to write to stdin of {command}: {e}") from e

    stdout, stderr = process.communicate()
    return CommandResult(
        success=process.returncode == 0,
        exit_code=process.returncode,
        stdout=(stdout or "").strip(),
        stderr=(stderr or "").strip(),
    )
