"""Tests for snapshot, validation and rollback around a pass."""

from datetime import datetime
from pathlib import Path

import pytest

from sshd_hardening.exceptions import ConfigurationError, ReadError, RollbackError, WriteError
from sshd_hardening.guard import SafetyGuard
from sshd_hardening.types import Directive, OutcomeStatus, ValidationStatus
from sshd_hardening.utils.file import FileManager, backup_path_for

from conftest import FIXED_NOW, SAMPLE_SSHD_CONFIG, RecordingValidator

DIRECTIVES = [
    Directive("MACs", "hmac-sha2-512-etm@openssh.com"),
    Directive("PasswordAuthentication", "no"),
    Directive("X11Forwarding", "no"),
]


def test_backup_naming():
    """Backups sit next to the file with an ISO date suffix."""
    path = backup_path_for(Path("/etc/ssh/sshd_config"), datetime(2025, 4, 25))
    assert path == Path("/etc/ssh/sshd_config.backup.2025-04-25")


def test_backup_naming_timestamp():
    path = backup_path_for(Path("/etc/ssh/sshd_config"), FIXED_NOW, naming="timestamp")
    assert path == Path("/etc/ssh/sshd_config.backup.2025-04-25T103000")


def test_backup_naming_unknown():
    with pytest.raises(ValueError):
        FileManager(naming="weekly")


def test_apply_success(guard, sshd_config, recording_validator):
    """A passing validator keeps the new document and the backup."""
    original = sshd_config.read_bytes()

    result = guard.apply(sshd_config, DIRECTIVES, recording_validator)

    assert result.status == OutcomeStatus.SUCCESS
    assert result.validation == ValidationStatus.PASSED
    assert not result.rolled_back
    assert len(result.changed_lines) == 3

    content = sshd_config.read_text()
    assert "MACs hmac-sha2-512-etm@openssh.com\n" in content
    assert "X11Forwarding no\n" in content

    assert result.backup_path == sshd_config.with_name("sshd_config.backup.2025-04-25")
    assert result.backup_path.read_bytes() == original
    # validator saw the reconciled file, not the original
    assert recording_validator.seen == [sshd_config.read_bytes()]


def test_rollback_on_validation_failure(guard, sshd_config, failing_validator):
    """A rejected document is replaced by the exact original bytes."""
    original = sshd_config.read_bytes()

    result = guard.apply(sshd_config, DIRECTIVES, failing_validator)

    assert result.status == OutcomeStatus.ROLLED_BACK
    assert result.validation == ValidationStatus.FAILED
    assert result.rolled_back
    assert "Bad configuration option" in result.diagnostics
    assert sshd_config.read_bytes() == original
    assert result.backup_path.exists()


def test_rollback_when_validator_raises(guard, sshd_config):
    original = sshd_config.read_bytes()

    def exploding_validator(path):
        raise TimeoutError("sshd -t did not answer")

    result = guard.apply(sshd_config, DIRECTIVES, exploding_validator)

    assert result.rolled_back
    assert "did not answer" in result.diagnostics
    assert sshd_config.read_bytes() == original


def test_rollback_preserves_odd_bytes(guard, tmp_path, failing_validator):
    path = tmp_path / "sshd_config"
    original = b"Banner \xff\r\nPort 22"
    path.write_bytes(original)

    guard.apply(path, DIRECTIVES, failing_validator)

    assert path.read_bytes() == original


def test_validation_skipped_without_validator(guard, sshd_config):
    result = guard.apply(sshd_config, DIRECTIVES, None)
    assert result.status == OutcomeStatus.SUCCESS
    assert result.validation == ValidationStatus.SKIPPED


def test_second_apply_changes_nothing(guard, sshd_config, passing_validator):
    guard.apply(sshd_config, DIRECTIVES, passing_validator)
    first = sshd_config.read_bytes()

    result = guard.apply(sshd_config, DIRECTIVES, passing_validator)

    assert result.changed_lines == ()
    assert len(result.unchanged_lines) == 3
    assert sshd_config.read_bytes() == first


def test_same_day_backup_overwritten(guard, sshd_config, passing_validator):
    """The last snapshot of the day wins."""
    guard.apply(sshd_config, DIRECTIVES, passing_validator)
    hardened = sshd_config.read_bytes()

    result = guard.apply(sshd_config, [Directive("StrictModes", "yes")], passing_validator)

    assert result.backup_path.read_bytes() == hardened
    backups = list(sshd_config.parent.glob("sshd_config.backup.*"))
    assert backups == [result.backup_path]


def test_file_mode_preserved(guard, sshd_config, passing_validator):
    sshd_config.chmod(0o600)
    guard.apply(sshd_config, DIRECTIVES, passing_validator)
    assert sshd_config.stat().st_mode & 0o777 == 0o600


def test_missing_file_raises_read_error(guard, tmp_path, passing_validator):
    missing = tmp_path / "sshd_config"
    with pytest.raises(ReadError):
        guard.apply(missing, DIRECTIVES, passing_validator)
    assert list(tmp_path.iterdir()) == []


def test_invalid_directives_touch_nothing(guard, sshd_config, passing_validator):
    original = sshd_config.read_bytes()
    with pytest.raises(ConfigurationError):
        guard.apply(sshd_config, DIRECTIVES + [DIRECTIVES[0]], passing_validator)
    assert sshd_config.read_bytes() == original
    assert not list(sshd_config.parent.glob("*.backup.*"))


def test_backup_failure_prevents_mutation(sshd_config, passing_validator, monkeypatch):
    """Without a backup in hand the target is never written."""
    manager = FileManager(retry_delay=0)
    original = sshd_config.read_bytes()
    attempts = []

    def refuse(path, data, reference):
        attempts.append(path)
        raise PermissionError("read-only filesystem")

    monkeypatch.setattr(FileManager, "_write_atomic", staticmethod(refuse))
    guard = SafetyGuard(manager, clock=lambda: FIXED_NOW)

    with pytest.raises(WriteError):
        guard.apply(sshd_config, DIRECTIVES, passing_validator)

    assert sshd_config.read_bytes() == original
    # one attempt plus one retry, both on the backup path
    assert attempts == [backup_path_for(sshd_config, FIXED_NOW)] * 2


def test_write_retried_once(sshd_config, passing_validator, monkeypatch):
    manager = FileManager(retry_delay=0)
    real_write = FileManager._write_atomic
    calls = []

    def flaky(path, data, reference):
        calls.append(path)
        if path == sshd_config and calls.count(path) == 1:
            raise OSError("transient")
        real_write(path, data, reference)

    monkeypatch.setattr(FileManager, "_write_atomic", staticmethod(flaky))
    result = SafetyGuard(manager, clock=lambda: FIXED_NOW).apply(
        sshd_config, DIRECTIVES, passing_validator
    )

    assert result.ok
    assert calls.count(sshd_config) == 2


def test_rollback_failure_raises(sshd_config, failing_validator, monkeypatch):
    manager = FileManager(retry_delay=0)

    def broken_restore(snapshot):
        raise PermissionError("permissions changed mid-run")

    monkeypatch.setattr(manager, "restore", broken_restore)
    guard = SafetyGuard(manager, clock=lambda: FIXED_NOW)

    with pytest.raises(RollbackError) as excinfo:
        guard.apply(sshd_config, DIRECTIVES, failing_validator)

    assert excinfo.value.path == sshd_config
    assert "Bad configuration option" in excinfo.value.diagnostics


def test_dry_run_touches_nothing(file_manager, sshd_config, recording_validator):
    original = sshd_config.read_bytes()
    guard = SafetyGuard(file_manager, clock=lambda: FIXED_NOW, dry_run=True)

    result = guard.apply(sshd_config, DIRECTIVES, recording_validator)

    assert result.dry_run
    assert result.ok
    assert len(result.changed_lines) == 3
    assert result.backup_path is None
    assert recording_validator.seen == []
    assert sshd_config.read_bytes() == original
    assert sorted(p.name for p in sshd_config.parent.iterdir()) == ["sshd_config"]


def test_validator_sees_unchanged_file_when_nothing_to_do(guard, tmp_path):
    path = tmp_path / "sshd_config"
    path.write_text("X11Forwarding no\n")
    validator = RecordingValidator(ok=False)

    result = guard.apply(path, [Directive("X11Forwarding", "no")], validator)

    assert validator.seen == [b"X11Forwarding no\n"]
    assert result.rolled_back
    assert path.read_text() == "X11Forwarding no\n"


def test_sample_config_untouched_by_unrelated_directives(guard, tmp_path, passing_validator):
    path = tmp_path / "sshd_config"
    path.write_text(SAMPLE_SSHD_CONFIG)
    guard.apply(path, [Directive("StrictModes", "yes")], passing_validator)
    assert path.read_text() == SAMPLE_SSHD_CONFIG + "StrictModes yes\n"


def test_symlinked_target_written_through(guard, tmp_path, passing_validator):
    """A linked config is hardened in the file it points at, and stays a link."""
    real = tmp_path / "real_sshd_config"
    real.write_text(SAMPLE_SSHD_CONFIG)
    link = tmp_path / "sshd_config"
    link.symlink_to(real)

    result = guard.apply(link, DIRECTIVES, passing_validator)

    assert result.ok
    assert link.is_symlink()
    assert "MACs hmac-sha2-512-etm@openssh.com\n" in real.read_text()
    assert result.backup_path == tmp_path / "sshd_config.backup.2025-04-25"
    assert result.backup_path.read_text() == SAMPLE_SSHD_CONFIG
    assert not result.backup_path.is_symlink()


def test_symlinked_target_rolled_back_through_link(guard, tmp_path, failing_validator):
    real = tmp_path / "real_sshd_config"
    real.write_text(SAMPLE_SSHD_CONFIG)
    link = tmp_path / "sshd_config"
    link.symlink_to(real)

    result = guard.apply(link, DIRECTIVES, failing_validator)

    assert result.rolled_back
    assert link.is_symlink()
    assert real.read_text() == SAMPLE_SSHD_CONFIG
