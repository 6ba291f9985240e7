"""Input validation utilities."""

from collections import Counter
from typing import Iterable, List, Sequence

from sshd_hardening.exceptions import ConfigurationError
from sshd_hardening.types import Directive


class Validator:
    """Validate directive sets before they touch a document."""

    @staticmethod
    def validate_key(key: str) -> None:
        """Validate a directive key.

        Args:
            key: Directive key to validate

        Raises:
            ConfigurationError: If key is empty or not a single token
        """
        if not isinstance(key, str) or not key or key != key.strip() or len(key.split()) != 1:
            raise ConfigurationError(f"Invalid directive key: {key!r}")
        if key.startswith("#"):
            raise ConfigurationError(f"Directive key must not start with '#': {key!r}")

    @staticmethod
    def validate_value(directive: Directive) -> None:
        """Validate a directive value.

        Values are written verbatim, so the only thing that cannot be allowed
        is a line break smuggling in another line.

        Args:
            directive: Directive whose value to validate

        Raises:
            ConfigurationError: If the value is not text, is empty, spans
                lines, or does not start with its ``match`` token
        """
        value = directive.value
        if not isinstance(value, str) and not (
            isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)
        ):
            raise ConfigurationError(
                f"Value of directive {directive.key} must be a string or a "
                f"list of strings, got {type(value).__name__}"
            )

        rendered = directive.rendered_value
        if not rendered.strip():
            raise ConfigurationError(f"Empty value for directive {directive.key}")
        for part in (rendered, directive.comment or "", directive.match or ""):
            if "\n" in part or "\r" in part:
                raise ConfigurationError(
                    f"Line break in directive {directive.key}: {part!r}"
                )

        # The rewritten line must still be found by the same match next time
        if directive.match is not None and rendered.split()[0] != directive.match:
            raise ConfigurationError(
                f"Directive {directive.key} value {rendered!r} does not start "
                f"with its match {directive.match!r}"
            )

    @staticmethod
    def find_duplicates(directives: Iterable[Directive]) -> List[str]:
        """Find directives addressing the same line.

        Args:
            directives: Directives to check

        Returns:
            Human readable identities that appear more than once
        """
        counts = Counter(d.identity for d in directives)
        return [
            key if match is None else f"{key} {match}"
            for (key, match), count in counts.items()
            if count > 1
        ]

    @classmethod
    def validate_directives(cls, directives: Sequence[Directive]) -> None:
        """Validate a whole directive set.

        Raises:
            ConfigurationError: On the first invalid directive or on duplicates
        """
        for directive in directives:
            cls.validate_key(directive.key)
            cls.validate_value(directive)

        duplicates = cls.find_duplicates(directives)
        if duplicates:
            raise ConfigurationError(
                f"Duplicate directives in one pass: {', '.join(duplicates)}"
            )
