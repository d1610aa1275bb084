"""Subprocess utilities with timeout support."""

import subprocess
import shutil
from dataclasses import dataclass
from typing import Optional, List

from .logging import get_logger

logger = get_logger(__name__)


def _decode(output: bytes) -> str:
    return output.decode("utf-8", errors="replace")


@dataclass
class CommandResult:
    """Result of a command execution."""
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def success(self) -> bool:
        """Check if command was successful."""
        return self.returncode == 0 and not self.timed_out

    @property
    def error_message(self) -> str:
        """Best available description of a failure."""
        message = self.stderr.strip() or self.stdout.strip()
        return message or f"exit status {self.returncode}"


def run_command(
    cmd: List[str],
    timeout: Optional[int] = None,
    cwd: Optional[str] = None,
    env: Optional[dict] = None,
) -> CommandResult:
    """
    Run a command, capturing its output as text.

    Never raises for command failures: timeouts, missing binaries and
    non-zero exits are all reported through the returned CommandResult.
    Output is decoded as UTF-8 with line endings left untouched.

    Args:
        cmd: Command to run as a list of arguments
        timeout: Timeout in seconds (None for no timeout)
        cwd: Working directory
        env: Environment variables

    Returns:
        CommandResult with stdout, stderr, and return code
    """
    logger.debug(f"Running command: {' '.join(cmd)}")

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            timeout=timeout,
            cwd=cwd,
            env=env,
        )
        return CommandResult(
            returncode=result.returncode,
            stdout=_decode(result.stdout),
            stderr=_decode(result.stderr),
        )
    except subprocess.TimeoutExpired:
        logger.debug(f"Command timed out after {timeout}s: {cmd[0]}")
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=f"{cmd[0]} timed out after {timeout} seconds",
            timed_out=True,
        )
    except FileNotFoundError as e:
        logger.debug(f"Command not found: {cmd[0]}")
        return CommandResult(
            returncode=127,
            stdout="",
            stderr=str(e),
        )


def check_tool_available(tool: str) -> bool:
    """Check if a tool is available in PATH."""
    return shutil.which(tool) is not None


def check_prerequisites(tools: List[str]) -> List[str]:
    """
    Check if required tools are available.

    Args:
        tools: List of tool names to check

    Returns:
        List of missing tools
    """
    return [tool for tool in tools if not check_tool_available(tool)]
