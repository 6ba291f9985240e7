"""Utility modules for sshd-hardening."""

from sshd_hardening.utils.command import CommandExecutor
from sshd_hardening.utils.file import FileManager, backup_path_for
from sshd_hardening.utils.validation import Validator

__all__ = ["CommandExecutor", "FileManager", "Validator", "backup_path_for"]
