"""Per-platform locations and service commands."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List

from sshd_hardening.types import ConfigKind, Platform


class PathResolver(ABC):
    """Map logical configuration kinds to files on one kind of host.

    Args:
        root: Prefix every absolute path is resolved under (chroots, tests)
    """

    service_name = "sshd"

    def __init__(self, root: Path = Path("/")) -> None:
        self.root = root

    def under_root(self, path: str) -> Path:
        """Locate an absolute host path on this resolver's filesystem."""
        return self.root / path.lstrip("/")

    @property
    def ssh_dir(self) -> Path:
        return self.under_root("/etc/ssh")

    def config_path(self, kind: ConfigKind) -> Path:
        if kind == ConfigKind.SERVER:
            return self.ssh_dir / "sshd_config"
        return self.ssh_dir / "ssh_config"

    @abstractmethod
    def restart_commands(self) -> List[List[str]]:
        """Commands that restart the SSH daemon, run in order."""


class LinuxPaths(PathResolver):
    """systemd based Linux hosts (RHEL, Amazon Linux, generic)."""

    def __init__(self, root: Path = Path("/"), service_name: str = "sshd") -> None:
        super().__init__(root)
        self.service_name = service_name

    def restart_commands(self) -> List[List[str]]:
        return [["systemctl", "restart", self.service_name]]


class MacPaths(PathResolver):
    """macOS hosts, where sshd is driven by launchd."""

    service_name = "com.openssh.sshd"
    launch_daemon = "/System/Library/LaunchDaemons/ssh.plist"

    def restart_commands(self) -> List[List[str]]:
        return [
            ["launchctl", "unload", self.launch_daemon],
            ["launchctl", "load", "-w", self.launch_daemon],
        ]


def resolver_for(platform: Platform, root: Path = Path("/")) -> PathResolver:
    """Pick the resolver variant for a platform."""
    if platform == Platform.MACOS:
        return MacPaths(root)
    return LinuxPaths(root)
