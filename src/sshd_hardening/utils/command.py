"""Command execution utilities."""

import shutil
import subprocess
from typing import Sequence

import structlog

from sshd_hardening.exceptions import CommandExecutionError
from sshd_hardening.types import CommandResult

logger = structlog.get_logger(__name__)


class CommandExecutor:
    """Execute system commands with proper error handling.

    Commands are argument vectors run without a shell, so paths and values
    are never re-parsed.
    """

    def __init__(self, use_sudo: bool = False, dry_run: bool = False) -> None:
        """Initialize command executor.

        Args:
            use_sudo: Whether to prepend sudo to commands requiring root
            dry_run: If True, only log commands without executing
        """
        self.use_sudo = use_sudo
        self.dry_run = dry_run

    def execute(
        self,
        argv: Sequence[str],
        needs_root: bool = False,
        check: bool = True,
        timeout: float = 30,
    ) -> CommandResult:
        """Execute command with optional sudo.

        Args:
            argv: Command and arguments
            needs_root: Whether command requires root privileges
            check: Whether to raise exception on failure
            timeout: Command timeout in seconds

        Returns:
            CommandResult with execution details

        Raises:
            CommandExecutionError: If command fails and check=True
        """
        cmd = list(argv)
        if needs_root and self.use_sudo:
            cmd = ["sudo", "-n"] + cmd
        display = " ".join(cmd)

        if self.dry_run:
            logger.info("command_skipped", command=display)
            return CommandResult(True, f"[DRY RUN] {display}", "", 0)

        logger.debug("command_started", command=display, timeout=timeout)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                check=False,
            )

            cmd_result = CommandResult(
                success=result.returncode == 0,
                stdout=result.stdout,
                stderr=result.stderr,
                return_code=result.returncode,
            )

            if check and not cmd_result.success:
                raise CommandExecutionError(
                    f"Command failed: {display}\nError: {result.stderr}"
                )

            return cmd_result

        except subprocess.TimeoutExpired as e:
            error_msg = f"Command timed out after {timeout}s: {display}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)

        except OSError as e:
            error_msg = f"Command execution failed: {display}\nError: {e}"
            if check:
                raise CommandExecutionError(error_msg) from e
            return CommandResult(False, "", error_msg, -1)

    def check_command_available(self, command: str) -> bool:
        """Check if command is available on system."""
        return shutil.which(command) is not None
