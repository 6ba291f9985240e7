"""Pytest configuration and fixtures."""

from datetime import datetime
from pathlib import Path
from typing import Callable, List

import pytest

from sshd_hardening.config import HardeningConfig
from sshd_hardening.guard import SafetyGuard
from sshd_hardening.types import ValidationResult
from sshd_hardening.utils.file import FileManager

SAMPLE_SSHD_CONFIG = """\
#	$OpenBSD: sshd_config,v 1.104 2021/07/02 05:11:21 dtucker Exp $

# This is the sshd server system-wide configuration file.

#Port 22
#ListenAddress 0.0.0.0

#HostKey /etc/ssh/ssh_host_rsa_key
#HostKey /etc/ssh/ssh_host_ecdsa_key
#HostKey /etc/ssh/ssh_host_ed25519_key

#PermitRootLogin prohibit-password
#MACs hmac-sha1
PasswordAuthentication yes

Subsystem	sftp	/usr/libexec/openssh/sftp-server
"""

FIXED_NOW = datetime(2025, 4, 25, 10, 30, 0)


@pytest.fixture
def test_config() -> HardeningConfig:
    """Create test configuration."""
    return HardeningConfig.from_env()


@pytest.fixture
def sshd_config(tmp_path: Path) -> Path:
    """Write a sample sshd_config into a temporary directory."""
    path = tmp_path / "sshd_config"
    path.write_text(SAMPLE_SSHD_CONFIG)
    return path


@pytest.fixture
def file_manager() -> FileManager:
    """File manager that retries without sleeping."""
    return FileManager(retry_delay=0)


@pytest.fixture
def guard(file_manager: FileManager) -> SafetyGuard:
    """Safety guard with a fixed clock."""
    return SafetyGuard(file_manager, clock=lambda: FIXED_NOW)


@pytest.fixture
def passing_validator() -> Callable[[Path], ValidationResult]:
    return lambda path: ValidationResult(True, "")


@pytest.fixture
def failing_validator() -> Callable[[Path], ValidationResult]:
    return lambda path: ValidationResult(False, f"{path}: line 14: Bad configuration option")


class RecordingValidator:
    """Validator that remembers the file content it was shown."""

    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.seen: List[bytes] = []

    def __call__(self, path: Path) -> ValidationResult:
        self.seen.append(path.read_bytes())
        return ValidationResult(self.ok, "" if self.ok else "rejected")


@pytest.fixture
def recording_validator() -> RecordingValidator:
    return RecordingValidator()
