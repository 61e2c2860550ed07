"""Mutable line-based document with change notifications."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from .models import Point, TextChange
from .syntax import LanguageSyntax, detect_comment_char, language_for_path

ChangeListener = Callable[[TextChange], None]

_UNSET = object()

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class Document:
    """Ordered lines of text, the only persisted outline state.

    Headings, block regions and folds are all derived from the lines. Every
    edit goes through `replace_lines` so listeners see one `TextChange` per
    edit.

    Attributes:
        name: File name the document was read from, if any.
        point: Current cursor position.
        trailing_newline: Whether the text ends with a newline.
        newline: Line separator used when the text is written back.
    """

    def __init__(
        self,
        lines: Iterable[str] = (),
        *,
        syntax: LanguageSyntax | None = None,
        name: str | None = None,
        trailing_newline: bool = True,
        newline: str = "\n",
    ):
        self._lines = list(lines) or [""]
        self._syntax = syntax
        self._comment_char: object = _UNSET
        self._listeners: list[ChangeListener] = []
        self.name = name
        self.point = Point()
        self.trailing_newline = trailing_newline
        self.newline = newline

    @classmethod
    def from_text(
        cls, text: str, *, syntax: LanguageSyntax | None = None, name: str | None = None
    ) -> Document:
        """Build a document from raw text.

        The first line break found becomes the document's `newline`; a file
        mixing separators is written back with that one throughout.
        """
        first_break = _LINE_BREAK.search(text)
        lines = _LINE_BREAK.split(text)
        trailing_newline = len(lines) > 1 and lines[-1] == ""
        if trailing_newline:
            lines.pop()
        return cls(
            lines,
            syntax=syntax,
            name=name,
            trailing_newline=trailing_newline,
            newline=first_break.group() if first_break else "\n",
        )

    @classmethod
    def from_path(cls, path: Path, text: str) -> Document:
        """Build a document for `path`, guessing its language from the extension."""
        return cls.from_text(text, syntax=language_for_path(path), name=path.name)

    @property
    def lines(self) -> Sequence[str]:
        return tuple(self._lines)

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line(self, index: int) -> str:
        return self._lines[index]

    @property
    def text(self) -> str:
        text = self.newline.join(self._lines)
        return text + self.newline if self.trailing_newline else text

    # Comment syntax

    @property
    def syntax(self) -> LanguageSyntax | None:
        return self._syntax

    @property
    def comment_char(self) -> str | None:
        """Comment character of the document, detected once and cached."""
        if self._comment_char is _UNSET:
            self._comment_char = detect_comment_char(self._syntax)
        return self._comment_char  # type: ignore[return-value]

    def reset_syntax(self, syntax: LanguageSyntax | None) -> None:
        """Switch language; the cached comment character is dropped."""
        self._syntax = syntax
        self._comment_char = _UNSET

    # Change notifications

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        self._listeners.remove(listener)

    def offset(self, line: int, column: int = 0) -> int:
        """Character offset of a line and column, counting each line break as one."""
        return sum(len(text) + 1 for text in self._lines[:line]) + column

    def position(self, offset: int) -> Point:
        """Line and column of a character offset."""
        for index, text in enumerate(self._lines):
            if offset <= len(text):
                return Point(index, offset)
            offset -= len(text) + 1
        last = len(self._lines) - 1
        return Point(last, len(self._lines[last]))

    # Editing

    def replace_lines(self, start: int, end: int, new_lines: Iterable[str]) -> TextChange:
        """Replace lines ``[start:end]`` with `new_lines` and notify listeners."""
        new_lines = list(new_lines)
        old_lines = self._lines[start:end]
        position = self.offset(start)
        old_length = _span_length(old_lines, start + len(old_lines) < len(self._lines))

        self._lines[start:end] = new_lines
        if not self._lines:
            self._lines.append("")
        new_length = _span_length(new_lines, start + len(new_lines) < len(self._lines))

        change = TextChange(
            position=position,
            old_length=old_length,
            new_length=new_length,
            line=start,
            old_line_count=len(old_lines),
            new_line_count=len(new_lines),
        )
        self._shift_point(change)
        for listener in list(self._listeners):
            listener(change)
        return change

    def set_line(self, index: int, text: str) -> TextChange:
        return self.replace_lines(index, index + 1, [text])

    def insert_lines(self, index: int, new_lines: Iterable[str]) -> TextChange:
        return self.replace_lines(index, index, new_lines)

    def delete_lines(self, start: int, end: int) -> TextChange:
        return self.replace_lines(start, end, [])

    def _shift_point(self, change: TextChange) -> None:
        line = self.point.line
        if change.line_delta and line >= change.line + change.old_line_count:
            line += change.line_delta
        line = max(0, min(line, len(self._lines) - 1))
        self.point = Point(line, min(self.point.column, len(self._lines[line])))


def _span_length(lines: Sequence[str], followed_by_line: bool) -> int:
    # Each replaced line carries its newline unless it ends the document
    if not lines:
        return 0
    return sum(len(text) for text in lines) + len(lines) - (0 if followed_by_line else 1)
