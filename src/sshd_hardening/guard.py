"""Snapshot, validate and roll back around a reconciliation pass."""

from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

import structlog

from sshd_hardening.exceptions import RollbackError
from sshd_hardening.reconciler import ConfigReconciler
from sshd_hardening.types import (
    ApplyResult,
    ConfigValidator,
    Directive,
    OutcomeStatus,
    Snapshot,
    ValidationResult,
    ValidationStatus,
)
from sshd_hardening.utils.file import FileManager

logger = structlog.get_logger(__name__)


class SafetyGuard:
    """Make a reconciliation pass safe to apply to a live file.

    After ``apply`` returns, the target is either the reconciled document
    that passed validation or byte-identical to the snapshot taken first.
    """

    def __init__(
        self,
        file_manager: Optional[FileManager] = None,
        reconciler: Optional[ConfigReconciler] = None,
        clock: Callable[[], datetime] = datetime.now,
        dry_run: bool = False,
    ) -> None:
        """Initialize safety guard.

        Args:
            file_manager: File operations, defaults to date-named backups
            reconciler: Reconciler used for each pass
            clock: Source of the snapshot timestamp
            dry_run: If True, compute changes without touching the disk
        """
        self.file_manager = file_manager or FileManager()
        self.reconciler = reconciler or ConfigReconciler()
        self.clock = clock
        self.dry_run = dry_run

    def apply(
        self,
        path: Path,
        directives: Sequence[Directive],
        validator: Optional[ConfigValidator] = None,
    ) -> ApplyResult:
        """Reconcile ``directives`` into ``path`` and validate the result.

        Args:
            path: Configuration file to harden
            directives: Directives in application order
            validator: External check of the written file, or None to skip

        Returns:
            ApplyResult describing the pass

        Raises:
            ReadError: If the file cannot be read
            WriteError: If the backup or the new document cannot be written
            ConfigurationError: If the directive set is invalid
            RollbackError: If a failed validation could not be rolled back
        """
        directives = tuple(directives)
        log = logger.bind(path=str(path))

        data = self.file_manager.read_bytes(path)
        new_data, changes = self.reconciler.reconcile_bytes(data, directives)
        changed = sum(1 for c in changes if c.changed)

        if self.dry_run:
            log.info("dry_run_reconciled", changed=changed, total=len(changes))
            return ApplyResult(
                path=path,
                status=OutcomeStatus.SUCCESS,
                directives=directives,
                changes=changes,
                dry_run=True,
            )

        snapshot = self.file_manager.snapshot(path, data, self.clock())

        if new_data != data:
            self.file_manager.write_bytes(path, new_data)
            log.info("document_written", changed=changed)
        else:
            log.info("document_unchanged")

        result = ApplyResult(
            path=path,
            status=OutcomeStatus.SUCCESS,
            directives=directives,
            changes=changes,
            backup_path=snapshot.backup_path,
        )

        if validator is None:
            log.warning("validation_skipped")
            return result

        outcome = self._validate(validator, path)
        if outcome.ok:
            log.info("validation_passed")
            return result._replace(
                validation=ValidationStatus.PASSED, diagnostics=outcome.diagnostics
            )

        log.error("validation_failed", diagnostics=outcome.diagnostics)
        self._rollback(snapshot, outcome.diagnostics)
        return result._replace(
            status=OutcomeStatus.ROLLED_BACK,
            validation=ValidationStatus.FAILED,
            diagnostics=outcome.diagnostics,
            rolled_back=True,
        )

    @staticmethod
    def _validate(validator: ConfigValidator, path: Path) -> ValidationResult:
        # A validator that cannot give an answer has not said "valid".
        try:
            return validator(path)
        except Exception as e:
            return ValidationResult(False, f"Validator error: {e}")

    def _rollback(self, snapshot: Snapshot, diagnostics: str) -> None:
        path = snapshot.original_path
        try:
            self.file_manager.restore(snapshot)
        except OSError as e:
            logger.critical(
                "rollback_failed",
                path=str(path),
                backup=str(snapshot.backup_path),
                error=str(e),
            )
            raise RollbackError(
                f"Rollback of {path} from {snapshot.backup_path} failed: {e}",
                path=path,
                diagnostics=diagnostics,
            ) from e
        logger.warning(
            "rolled_back", path=str(path), backup=str(snapshot.backup_path)
        )
