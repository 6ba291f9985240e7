"""Type definitions for sshd-hardening."""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, NamedTuple, Optional, Sequence, Tuple, Union


class Platform(str, Enum):
    """Supported target platforms."""

    LINUX = "linux"
    RHEL8 = "rhel8"
    AL2023 = "al2023"
    MACOS = "macos"


class ConfigKind(str, Enum):
    """Logical OpenSSH configuration files."""

    SERVER = "server"
    CLIENT = "client"


class LineKind(str, Enum):
    """Classification of a raw configuration line."""

    DIRECTIVE = "directive"
    DISABLED = "disabled"
    COMMENT = "comment"
    BLANK = "blank"
    OPAQUE = "opaque"


class ValidationStatus(str, Enum):
    """Outcome of the external validator."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class OutcomeStatus(str, Enum):
    """Final outcome of one apply operation, ordered by severity."""

    SUCCESS = "success"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    ROLLBACK_FAILED = "rollback_failed"


class CommandResult(NamedTuple):
    """Result of command execution."""

    success: bool
    stdout: str
    stderr: str
    return_code: int = 0


class Directive(NamedTuple):
    """A single configuration key and its desired value.

    A directive carrying a ``comment`` disables the addressed line instead of
    enabling it. ``match`` narrows the addressed line to one whose first value
    token equals it, so keys that legitimately repeat (``HostKey``) can be
    managed one line at a time.
    """

    key: str
    value: Union[str, Sequence[str]]
    comment: Optional[str] = None
    match: Optional[str] = None

    @classmethod
    def disable(cls, key: str, value: str, comment: str) -> "Directive":
        """Build a directive that comments out ``key value``."""
        return cls(key=key, value=value, comment=comment, match=value)

    @property
    def disabled(self) -> bool:
        return self.comment is not None

    @property
    def identity(self) -> Tuple[str, Optional[str]]:
        return (self.key, self.match)

    @property
    def rendered_value(self) -> str:
        if isinstance(self.value, str):
            return self.value
        return ",".join(self.value)

    def render(self) -> str:
        """Render the directive as a configuration line without line ending."""
        line = f"{self.key} {self.rendered_value}"
        if self.disabled:
            line = f"#{line} # {self.comment}"
        return line


class LineChange(NamedTuple):
    """What reconciling one directive did to the document."""

    directive: Directive
    position: int
    before: Optional[str]
    after: str

    @property
    def changed(self) -> bool:
        return self.before != self.after

    @property
    def appended(self) -> bool:
        return self.before is None


class ValidationResult(NamedTuple):
    """Answer of an external configuration checker."""

    ok: bool
    diagnostics: str = ""


ConfigValidator = Callable[[Path], ValidationResult]


class Snapshot(NamedTuple):
    """Immutable copy of a file taken before mutation."""

    original_path: Path
    backup_path: Path
    data: bytes
    timestamp: datetime


class ApplyResult(NamedTuple):
    """Outcome of one reconciliation pass on one target."""

    path: Path
    status: OutcomeStatus
    directives: Tuple[Directive, ...] = ()
    changes: Tuple[LineChange, ...] = ()
    validation: ValidationStatus = ValidationStatus.SKIPPED
    diagnostics: str = ""
    rolled_back: bool = False
    backup_path: Optional[Path] = None
    error: Optional[str] = None
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS

    @property
    def changed_lines(self) -> Tuple[LineChange, ...]:
        return tuple(c for c in self.changes if c.changed)

    @property
    def unchanged_lines(self) -> Tuple[LineChange, ...]:
        return tuple(c for c in self.changes if not c.changed)


class Target(NamedTuple):
    """One file to harden.

    ``path`` overrides the location the path resolver derives from ``kind``.
    """

    kind: ConfigKind
    directives: Tuple[Directive, ...]
    validator: Optional[ConfigValidator] = None
    path: Optional[Path] = None
