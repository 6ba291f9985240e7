"""Service restart and host key provisioning around an apply run."""

import time
from pathlib import Path

import structlog

from sshd_hardening.exceptions import CommandExecutionError, ServiceControlError
from sshd_hardening.paths import PathResolver
from sshd_hardening.utils.command import CommandExecutor

logger = structlog.get_logger(__name__)


class ServiceController:
    """Restart the SSH daemon after its configuration changed."""

    def __init__(
        self,
        executor: CommandExecutor,
        resolver: PathResolver,
        settle_delay: float = 2.0,
    ) -> None:
        """Initialize service controller.

        Args:
            executor: Command executor
            resolver: Supplies the platform's restart commands
            settle_delay: Seconds to wait between consecutive restart steps
        """
        self.executor = executor
        self.resolver = resolver
        self.settle_delay = settle_delay

    def restart(self) -> None:
        """Restart the SSH service.

        Raises:
            ServiceControlError: If a restart step fails
        """
        commands = self.resolver.restart_commands()
        for step, argv in enumerate(commands):
            if step:
                time.sleep(self.settle_delay)
            result = self.executor.execute(argv, needs_root=True, check=False)
            if not result.success:
                raise ServiceControlError(
                    f"Service restart failed: {' '.join(argv)}: {result.stderr.strip()}"
                )
        logger.info("service_restarted", service=self.resolver.service_name)


class HostKeyProvisioner:
    """Generate host keys a hardened sshd_config refers to."""

    def __init__(self, executor: CommandExecutor) -> None:
        self.executor = executor

    def ensure_ed25519(self, key_path: Path) -> bool:
        """Generate an ed25519 host key at ``key_path`` unless one exists.

        Returns:
            True if a key was generated

        Raises:
            CommandExecutionError: If ssh-keygen fails
        """
        if key_path.exists():
            logger.debug("host_key_present", path=str(key_path))
            return False

        try:
            self.executor.execute(
                ["ssh-keygen", "-q", "-t", "ed25519", "-f", str(key_path), "-N", ""],
                needs_root=True,
            )
        except CommandExecutionError:
            logger.error("host_key_generation_failed", path=str(key_path))
            raise

        logger.info("host_key_generated", path=str(key_path))
        return True
