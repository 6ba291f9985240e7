"""Custom exceptions for sshd-hardening."""

from pathlib import Path
from typing import Optional


class HardenerError(Exception):
    """Base exception for all hardener errors."""

    pass


class ConfigurationError(HardenerError):
    """Raised when configuration or a directive set is invalid."""

    pass


class ReadError(HardenerError):
    """Raised when a target file is missing or unreadable."""

    pass


class WriteError(HardenerError):
    """Raised when a backup or a reconciled document cannot be written."""

    pass


class CommandExecutionError(HardenerError):
    """Raised when command execution fails."""

    pass


class RollbackError(HardenerError):
    """Raised when restoring a snapshot fails.

    The target may be left in a state the validator rejected, so this is
    reported above every other outcome.
    """

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        diagnostics: str = "",
    ) -> None:
        super().__init__(message)
        self.path = path
        self.diagnostics = diagnostics


class ServiceControlError(HardenerError):
    """Raised when service control operation fails."""

    pass
