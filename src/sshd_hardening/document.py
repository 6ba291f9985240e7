"""In-memory model of a line-oriented OpenSSH configuration file."""

from typing import List, NamedTuple, Optional

from sshd_hardening.types import LineKind

ENCODING = "utf-8"
ERRORS = "surrogateescape"


class ConfigLine(NamedTuple):
    """A raw line split from its line ending, plus its parsed shape."""

    text: str
    ending: str
    kind: LineKind
    key: Optional[str] = None
    rest: Optional[str] = None

    @classmethod
    def parse(cls, raw: str) -> "ConfigLine":
        """Classify a raw line, keeping its exact text and line ending."""
        text = raw.rstrip("\r\n")
        ending = raw[len(text):]
        stripped = text.strip()

        if not stripped:
            return cls(text, ending, LineKind.BLANK)

        disabled = stripped.startswith("#")
        body = stripped[1:] if disabled else stripped
        parts = body.split(None, 1)

        # "#Key value" is a disabled directive, "# prose" is a comment.
        if len(parts) == 2 and not body[0].isspace():
            kind = LineKind.DISABLED if disabled else LineKind.DIRECTIVE
            return cls(text, ending, kind, parts[0], parts[1])

        return cls(text, ending, LineKind.COMMENT if disabled else LineKind.OPAQUE)

    @property
    def first_token(self) -> Optional[str]:
        if self.rest is None:
            return None
        return self.rest.split(None, 1)[0]

    def matches(self, key: str, match: Optional[str] = None) -> bool:
        """Check whether this line addresses ``key`` (and ``match``) literally."""
        if self.key != key:
            return False
        return match is None or self.first_token == match

    def replace(self, text: str) -> "ConfigLine":
        """Return a new line with ``text``, keeping this line's ending."""
        return ConfigLine.parse(text)._replace(ending=self.ending)


class ConfigDocument:
    """Ordered lines of a configuration file.

    Rendering a document that was not edited reproduces its source bytes.
    """

    def __init__(self, lines: Optional[List[ConfigLine]] = None) -> None:
        self.lines: List[ConfigLine] = list(lines or [])

    @classmethod
    def from_bytes(cls, data: bytes) -> "ConfigDocument":
        # bytes.splitlines only breaks on \r and \n, unlike str.splitlines
        return cls(
            [
                ConfigLine.parse(raw.decode(ENCODING, errors=ERRORS))
                for raw in data.splitlines(keepends=True)
            ]
        )

    @classmethod
    def from_text(cls, text: str) -> "ConfigDocument":
        return cls.from_bytes(text.encode(ENCODING, errors=ERRORS))

    def to_text(self) -> str:
        return "".join(line.text + line.ending for line in self.lines)

    def to_bytes(self) -> bytes:
        return self.to_text().encode(ENCODING, errors=ERRORS)

    def find(self, key: str, match: Optional[str] = None) -> Optional[int]:
        """Index of the first line addressing ``key``, or None."""
        for index, line in enumerate(self.lines):
            if line.matches(key, match):
                return index
        return None

    def replace(self, index: int, text: str) -> None:
        self.lines[index] = self.lines[index].replace(text)

    def append(self, text: str) -> int:
        """Append a line and return its index."""
        if self.lines and not self.lines[-1].ending:
            self.lines[-1] = self.lines[-1]._replace(ending=self._newline())
        self.lines.append(ConfigLine.parse(text)._replace(ending=self._newline()))
        return len(self.lines) - 1

    def _newline(self) -> str:
        for line in self.lines:
            if line.ending:
                return line.ending
        return "\n"

    def __len__(self) -> int:
        return len(self.lines)
