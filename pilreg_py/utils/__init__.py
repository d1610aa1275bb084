"""Utility modules for pilreg."""

from .logging import (
    get_logger,
    setup_logging,
    LogLevel,
)
from .subprocess import run_command, CommandResult, check_prerequisites
from .registry import CraneClient, RegistryClient, RegistryError, RegistryOptions

__all__ = [
    "get_logger",
    "setup_logging",
    "LogLevel",
    "run_command",
    "CommandResult",
    "check_prerequisites",
    "CraneClient",
    "RegistryClient",
    "RegistryError",
    "RegistryOptions",
]
