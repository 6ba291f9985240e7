"""File management utilities."""

import os
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, TypeVar

import structlog

from sshd_hardening.exceptions import ReadError, WriteError
from sshd_hardening.types import Snapshot

logger = structlog.get_logger(__name__)

T = TypeVar("T")

BACKUP_NAMING_FORMATS = {
    "date": "%Y-%m-%d",
    "timestamp": "%Y-%m-%dT%H%M%S",
}


def backup_path_for(path: Path, when: datetime, naming: str = "date") -> Path:
    """Derive the backup location of ``path``.

    ``date`` naming keeps one generation per day; later runs on the same day
    overwrite it.
    """
    try:
        fmt = BACKUP_NAMING_FORMATS[naming]
    except KeyError:
        raise ValueError(f"Unknown backup naming: {naming}") from None
    return path.with_name(f"{path.name}.backup.{when.strftime(fmt)}")


class FileManager:
    """Manage file operations with snapshots and restore."""

    def __init__(self, naming: str = "date", retry_delay: float = 1.0) -> None:
        """Initialize file manager.

        Args:
            naming: Backup naming scheme ("date" or "timestamp")
            retry_delay: Seconds to wait before the single retry of a write
        """
        if naming not in BACKUP_NAMING_FORMATS:
            raise ValueError(f"Unknown backup naming: {naming}")
        self.naming = naming
        self.retry_delay = retry_delay

    def read_bytes(self, filepath: Path) -> bytes:
        """Read file content.

        Raises:
            ReadError: If the file is missing or unreadable
        """
        try:
            return filepath.read_bytes()
        except OSError as e:
            raise ReadError(f"Cannot read {filepath}: {e}") from e

    def snapshot(self, filepath: Path, data: bytes, when: datetime) -> Snapshot:
        """Write ``data`` to the backup location of ``filepath``.

        Args:
            filepath: File the data was read from
            data: Exact bytes read from the file
            when: Time the snapshot is taken

        Returns:
            The snapshot written to disk

        Raises:
            WriteError: If the backup cannot be written
        """
        backup_path = backup_path_for(filepath, when, self.naming)
        try:
            self._retry_once(
                lambda: self._write_atomic(backup_path, data, reference=filepath),
                "backup",
                backup_path,
            )
        except OSError as e:
            raise WriteError(f"Cannot write backup {backup_path}: {e}") from e

        logger.info("backup_written", path=str(filepath), backup=str(backup_path))
        return Snapshot(
            original_path=filepath,
            backup_path=backup_path,
            data=data,
            timestamp=when,
        )

    def write_bytes(self, filepath: Path, data: bytes) -> None:
        """Replace file content atomically.

        Raises:
            WriteError: If the file cannot be written
        """
        try:
            self._retry_once(
                lambda: self._write_atomic(filepath, data, reference=filepath),
                "write",
                filepath,
            )
        except OSError as e:
            raise WriteError(f"Cannot write {filepath}: {e}") from e

    def restore(self, snapshot: Snapshot) -> None:
        """Put the snapshot bytes back and verify them.

        Raises:
            OSError: If restoring fails or the file does not read back identical
        """
        path = snapshot.original_path

        def _restore() -> None:
            self._write_atomic(path, snapshot.data, reference=path)
            if path.read_bytes() != snapshot.data:
                raise OSError(f"{path} differs from snapshot after restore")

        self._retry_once(_restore, "restore", path)

    def _retry_once(self, action: Callable[[], T], operation: str, path: Path) -> T:
        try:
            return action()
        except OSError as e:
            logger.warning(
                "file_operation_retry",
                operation=operation,
                path=str(path),
                error=str(e),
                delay=self.retry_delay,
            )
            time.sleep(self.retry_delay)
            return action()

    @staticmethod
    def _write_atomic(filepath: Path, data: bytes, reference: Path) -> None:
        """Write via a temporary sibling and rename it into place.

        The mode and ownership of ``reference`` are carried over when it
        exists. A symlinked ``filepath`` is written through to the file it
        points at and the link itself is left in place.
        """
        filepath = filepath.resolve()
        try:
            stat = reference.stat()
        except FileNotFoundError:
            stat = None

        fd, tmp_name = tempfile.mkstemp(
            dir=str(filepath.parent), prefix=f".{filepath.name}.", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            if stat is not None:
                os.chmod(tmp_path, stat.st_mode & 0o7777)
                if os.geteuid() == 0:
                    os.chown(tmp_path, stat.st_uid, stat.st_gid)
            os.replace(tmp_path, filepath)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
