"""Package-specific exception types."""

from __future__ import annotations


class OutlineError(Exception):
    """Base class for outline errors that abort a command."""


class NoCommentSyntaxError(OutlineError):
    """Raised when a document has no comment syntax to derive headings from.

    Args:
        language: Name of the document's language, or None when unknown.
    """

    def __init__(self, language: str | None = None):
        self.language = language
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if self.language is None:
            return "No comment syntax defined for this document"
        return f"No comment syntax defined for language `{self.language}`"
