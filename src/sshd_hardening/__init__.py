"""sshd-hardening - apply hardened OpenSSH settings with validation and rollback."""

__version__ = "1.0.0"
__author__ = "DevOps Team"
__license__ = "MIT"

from sshd_hardening.exceptions import (
    HardenerError,
    ConfigurationError,
    ReadError,
    WriteError,
    RollbackError,
)
from sshd_hardening.guard import SafetyGuard
from sshd_hardening.orchestrator import ApplyOrchestrator
from sshd_hardening.paths import LinuxPaths, MacPaths, PathResolver
from sshd_hardening.reconciler import ConfigReconciler
from sshd_hardening.types import ApplyResult, Directive, Target

__all__ = [
    "ApplyOrchestrator",
    "ApplyResult",
    "ConfigReconciler",
    "Directive",
    "LinuxPaths",
    "MacPaths",
    "PathResolver",
    "SafetyGuard",
    "Target",
    "HardenerError",
    "ConfigurationError",
    "ReadError",
    "WriteError",
    "RollbackError",
]
