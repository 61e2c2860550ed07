"""Heading detection over comment-prefixed lines."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import datetime

from .config import OutlineConfig
from .constants import CLOSED_LABEL, CLOSED_TIMESTAMP_PATTERN
from .levels import comment_run_length, logical_level
from .models import HeadingLine


def is_blank(line: str) -> bool:
    """True for empty or whitespace-only lines."""
    return not line.strip()


def is_comment_line(line: str, comment_char: str) -> bool:
    """True when the line opens with `comment_char` after its indentation."""
    return comment_run_length(line, comment_char) is not None


def is_closed_line(line: str, comment_char: str) -> bool:
    """Detect a CLOSED line: exactly two comment characters, then ``CLOSED:``.

    Examples:
        is_closed_line("  // CLOSED: [2024-01-02 Tue 10:00]", "/")  # True
        is_closed_line("/// CLOSED: [2024-01-02 Tue 10:00]", "/")  # False
    """
    if comment_run_length(line, comment_char) != 2:
        return False
    body = line.lstrip(" \t")[2:].lstrip(" \t")
    return body.startswith(CLOSED_LABEL)


def parse_closed_timestamp(line: str, comment_char: str) -> datetime | None:
    """Read the timestamp of a CLOSED line.

    Returns:
        datetime | None: The recorded time, or None when the line is not a
            CLOSED line or its timestamp is malformed.
    """
    if not is_closed_line(line, comment_char):
        return None
    match = CLOSED_TIMESTAMP_PATTERN.search(line)
    if match is None:
        return None
    try:
        return datetime.strptime(f"{match['date']} {match['time']}", "%Y-%m-%d %H:%M")
    except ValueError:
        return None


def heading_level(line: str, comment_char: str, base_level: int) -> int | None:
    """Logical level of `line`, or None when it is not a heading.

    CLOSED lines never count as headings, even when `base_level` is small
    enough for their two comment characters to qualify.
    """
    level = logical_level(comment_run_length(line, comment_char), base_level)
    if level is None or is_closed_line(line, comment_char):
        return None
    return level


def _split_keyword(text: str, keywords: Sequence[str]) -> tuple[str | None, str]:
    """Separate a leading TODO keyword from the title text.

    Only a run of uppercase ASCII letters followed by whitespace (or the end of
    the line) qualifies, and only when it is a configured keyword.
    """
    text = text.lstrip(" \t")
    end = 0
    while end < len(text) and "A" <= text[end] <= "Z":
        end += 1
    token = text[:end]
    if token and token in keywords and (end == len(text) or text[end] in " \t"):
        return token, text[end:].strip()
    return None, text.strip()


def parse_heading(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig | None = None
) -> HeadingLine | None:
    """Parse line `index` of `lines` as a heading.

    Args:
        lines: Document lines.
        index: Zero-based line number to parse.
        comment_char: Comment character of the document.
        config: Configuration providing the base level and keywords.

    Returns:
        HeadingLine | None: The heading, or None when the line is not one.

    Examples:
        parse_heading(["/// TODO Ship it"], 0, "/").keyword  # "TODO"
    """
    config = config or OutlineConfig()
    line = lines[index]
    level = heading_level(line, comment_char, config.base_level)
    if level is None:
        return None

    indentation = line[: len(line) - len(line.lstrip(" \t"))]
    run_length = level + config.base_level - 1
    keyword, title = _split_keyword(line[len(indentation) + run_length :], config.todo_keywords)

    closed_timestamp = None
    if index + 1 < len(lines):
        closed_timestamp = parse_closed_timestamp(lines[index + 1], comment_char)

    return HeadingLine(
        line_index=index,
        indentation=indentation,
        comment_run_length=run_length,
        logical_level=level,
        keyword=keyword,
        title=title,
        closed_timestamp=closed_timestamp,
    )


class Outline:
    """Headings of a document in line order.

    Iterating scans the lines from the top; every iteration starts a fresh
    scan, so the outline always reflects the lines it was built on.
    """

    def __init__(
        self, lines: Sequence[str], comment_char: str, config: OutlineConfig | None = None
    ):
        self._lines = lines
        self._comment_char = comment_char
        self._config = config or OutlineConfig()

    def __iter__(self) -> Iterator[HeadingLine]:
        for index in range(len(self._lines)):
            heading = parse_heading(self._lines, index, self._comment_char, self._config)
            if heading is not None:
                yield heading

    def headings(self) -> list[HeadingLine]:
        return list(self)

    def positions(self) -> list[int]:
        """Line numbers of every heading."""
        base_level = self._config.base_level
        return [
            index
            for index, line in enumerate(self._lines)
            if heading_level(line, self._comment_char, base_level) is not None
        ]


def scan(
    lines: Sequence[str], comment_char: str, config: OutlineConfig | None = None
) -> Outline:
    """Build the outline of `lines`.

    Examples:
        [h.title for h in scan(["/// Title", "body", "//// Sub"], "/")]  # ["Title", "Sub"]
    """
    return Outline(lines, comment_char, config)


def current_level(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig | None = None
) -> int | None:
    """Logical level of a single line without scanning the document."""
    config = config or OutlineConfig()
    return heading_level(lines[index], comment_char, config.base_level)


def enclosing_heading(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig | None = None
) -> HeadingLine | None:
    """Nearest heading at or above line `index`."""
    for candidate in range(min(index, len(lines) - 1), -1, -1):
        heading = parse_heading(lines, candidate, comment_char, config)
        if heading is not None:
            return heading
    return None


def subtree_end(
    lines: Sequence[str], index: int, comment_char: str, config: OutlineConfig | None = None
) -> int:
    """Line number right after the subtree of the heading at `index`.

    The subtree ends at the next heading of the same or a shallower level, or
    at the end of the document. Lines that are not headings are part of it.
    """
    config = config or OutlineConfig()
    level = heading_level(lines[index], comment_char, config.base_level)
    if level is None:
        raise ValueError(f"Line {index} is not a heading")
    for candidate in range(index + 1, len(lines)):
        candidate_level = heading_level(lines[candidate], comment_char, config.base_level)
        if candidate_level is not None and candidate_level <= level:
            return candidate
    return len(lines)
