"""Data models for comment-outline."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class HeadingLine:
    """A heading derived from one line of a document.

    Attributes:
        line_index: Zero-based line number of the heading.
        indentation: Horizontal whitespace preceding the comment run.
        comment_run_length: Number of comment characters opening the line.
        logical_level: One-based outline depth derived from the run length.
        keyword: Configured TODO keyword opening the title, if any.
        title: Heading text after the prefix and keyword.
        closed_timestamp: Timestamp from a CLOSED line directly below, if any.
    """

    line_index: int
    indentation: str
    comment_run_length: int
    logical_level: int
    keyword: str | None
    title: str
    closed_timestamp: datetime | None = None

    @property
    def prefix_end(self) -> int:
        """Column right after the comment run."""
        return len(self.indentation) + self.comment_run_length


@dataclass(frozen=True)
class BlockRegion:
    """Body lines owned by a heading, inclusive on both ends.

    Attributes:
        heading: Line number of the owning heading.
        start: First body line.
        end: Last body line.
    """

    heading: int
    start: int
    end: int

    def __contains__(self, line: object) -> bool:
        return isinstance(line, int) and self.start <= line <= self.end


@dataclass(frozen=True)
class Point:
    """Cursor position as a zero-based line and column."""

    line: int = 0
    column: int = 0


@dataclass(frozen=True)
class TextChange:
    """Notification describing one edit of a document.

    Attributes:
        position: Character offset where the change starts.
        old_length: Number of characters replaced.
        new_length: Number of characters inserted in their place.
        line: First line touched by the change.
        old_line_count: Lines replaced, starting at `line`.
        new_line_count: Lines inserted in their place.
    """

    position: int
    old_length: int
    new_length: int
    line: int
    old_line_count: int
    new_line_count: int

    @property
    def line_delta(self) -> int:
        return self.new_line_count - self.old_line_count


class FoldState(Enum):
    """Perceived visibility of the heading at point.

    Attributes:
        FOLDED: Only the heading line is visible.
        CHILDREN: The heading's own body and its direct child headings are visible.
        SUBTREE: The whole subtree is visible.
    """

    FOLDED = "FOLDED"
    CHILDREN = "CHILDREN"
    SUBTREE = "SUBTREE"


class GlobalFoldState(Enum):
    """Perceived visibility of the whole document.

    Attributes:
        OVERVIEW: Only outermost headings are visible.
        CONTENTS: Every heading is visible, bodies are hidden.
        ALL: Everything is visible.
    """

    OVERVIEW = "OVERVIEW"
    CONTENTS = "CONTENTS"
    ALL = "SHOW ALL"


@dataclass(frozen=True)
class CycleMemory:
    """What the previous cycle command left behind.

    Attributes:
        command: Identity of the cycle command that produced this memory.
        phase: State the command moved to.
        line: Heading the local cycle acted on; None for the global cycle.
    """

    command: str
    phase: FoldState | GlobalFoldState
    line: int | None = None
