"""External configuration checkers backed by the OpenSSH binaries."""

from pathlib import Path
from typing import Optional, Sequence

import structlog

from sshd_hardening.config import ValidationConfig
from sshd_hardening.types import (
    CommandResult,
    ConfigKind,
    ConfigValidator,
    ValidationResult,
)
from sshd_hardening.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)


def _diagnostics(result: CommandResult) -> str:
    return "\n".join(part.strip() for part in (result.stderr, result.stdout) if part.strip())


class SshdConfigValidator:
    """Check a server configuration with ``sshd -t -f <path>``."""

    def __init__(self, executor: CommandExecutor, binary: str, timeout: float = 30) -> None:
        self.executor = executor
        self.binary = binary
        self.timeout = timeout

    def __call__(self, path: Path) -> ValidationResult:
        result = self.executor.execute(
            [self.binary, "-t", "-f", str(path)],
            needs_root=True,
            check=False,
            timeout=self.timeout,
        )
        return ValidationResult(result.success, _diagnostics(result))


class SshClientConfigValidator:
    """Check a client configuration by letting ``ssh -G`` parse it.

    ``-G`` prints the evaluated configuration and exits without connecting.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        binary: str = "ssh",
        timeout: float = 30,
        host: str = "localhost",
    ) -> None:
        self.executor = executor
        self.binary = binary
        self.timeout = timeout
        self.host = host

    def __call__(self, path: Path) -> ValidationResult:
        result = self.executor.execute(
            [self.binary, "-G", "-F", str(path), self.host],
            check=False,
            timeout=self.timeout,
        )
        # stdout is the whole evaluated config; only errors are worth keeping
        diagnostics = "" if result.success else _diagnostics(result)
        return ValidationResult(result.success, diagnostics)


def find_binary(executor: CommandExecutor, candidates: Sequence[str]) -> Optional[str]:
    for candidate in candidates:
        if executor.check_command_available(candidate):
            return candidate
    return None


def build_validator(
    kind: ConfigKind, executor: CommandExecutor, config: ValidationConfig
) -> Optional[ConfigValidator]:
    """Build the checker for ``kind``.

    Returns None when validation is disabled or no binary is installed.
    """
    if not config.enabled:
        return None

    if kind == ConfigKind.SERVER:
        binary = find_binary(executor, config.sshd_binaries)
        if binary is None:
            logger.warning("validator_unavailable", kind=kind.value, tried=config.sshd_binaries)
            return None
        return SshdConfigValidator(executor, binary, timeout=config.timeout)

    binary = find_binary(executor, [config.ssh_binary])
    if binary is None:
        logger.warning("validator_unavailable", kind=kind.value, tried=[config.ssh_binary])
        return None
    return SshClientConfigValidator(executor, binary, timeout=config.timeout)
