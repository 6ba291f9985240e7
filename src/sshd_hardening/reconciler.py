"""Idempotent reconciliation of directives into a configuration document."""

from typing import List, Sequence, Tuple

import structlog

from sshd_hardening.document import ConfigDocument
from sshd_hardening.types import Directive, LineChange
from sshd_hardening.utils.validation import Validator

logger = structlog.get_logger(__name__)


class ConfigReconciler:
    """Apply directives to a document, one line per directive.

    For every directive the first line matching ``#?<key>`` is rewritten to
    the rendered directive; when no line matches, the directive is appended.
    Later duplicates of a key are left untouched. Lines are matched by their
    parsed key, never by building a pattern from directive content.
    """

    def reconcile(
        self, document: ConfigDocument, directives: Sequence[Directive]
    ) -> Tuple[LineChange, ...]:
        """Reconcile ``document`` in place.

        Args:
            document: Document to transform
            directives: Directives in the order they should be applied

        Returns:
            One LineChange per directive, in directive order

        Raises:
            ConfigurationError: If the directive set is invalid
        """
        Validator.validate_directives(directives)

        changes: List[LineChange] = []
        for directive in directives:
            changes.append(self._apply(document, directive))

        logger.debug(
            "document_reconciled",
            directives=len(changes),
            changed=sum(1 for c in changes if c.changed),
        )
        return tuple(changes)

    def reconcile_bytes(
        self, data: bytes, directives: Sequence[Directive]
    ) -> Tuple[bytes, Tuple[LineChange, ...]]:
        """Reconcile raw file content and return the new content."""
        document = ConfigDocument.from_bytes(data)
        changes = self.reconcile(document, directives)
        return document.to_bytes(), changes

    def _apply(self, document: ConfigDocument, directive: Directive) -> LineChange:
        line = directive.render()
        position = document.find(directive.key, directive.match)

        if position is None:
            position = document.append(line)
            return LineChange(directive, position, None, line)

        before = document.lines[position].text
        if before != line:
            document.replace(position, line)
        return LineChange(directive, position, before, line)
