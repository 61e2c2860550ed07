"""Structural edits of headings.

Every operation checks its preconditions before touching the document and
then applies a single `Document.replace_lines` edit, so a failed precondition
never leaves a partial edit behind and listeners see exactly one change.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import datetime

import structlog

from .config import OutlineConfig
from .constants import CLOSED_INDENT, CLOSED_LABEL
from .document import Document
from .levels import heading_prefix
from .models import HeadingLine, Point
from .scanner import (
    enclosing_heading,
    heading_level,
    is_blank,
    is_closed_line,
    parse_heading,
    subtree_end,
)
from .syntax import require_comment_char

log = structlog.get_logger()

Reporter = Callable[[str], None]

_DAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

NOT_ON_HEADING = "Not on a heading"


def _report(report: Reporter | None, message: str) -> None:
    log.debug("outline_report", message=message)
    if report is not None:
        report(message)


def format_timestamp(moment: datetime) -> str:
    """Render ``[YYYY-MM-DD Day HH:MM]`` with English day names."""
    return f"[{moment:%Y-%m-%d} {_DAY_NAMES[moment.weekday()]} {moment:%H:%M}]"


def closed_line(heading: HeadingLine, comment_char: str, moment: datetime) -> str:
    """CLOSED line recorded below `heading`."""
    return (
        f"{heading.indentation}{CLOSED_INDENT}{comment_char * 2} "
        f"{CLOSED_LABEL} {format_timestamp(moment)}"
    )


def heading_at_point(document: Document, config: OutlineConfig) -> HeadingLine | None:
    """The heading on the line holding point, if that line is one."""
    comment_char = require_comment_char(document, config)
    return parse_heading(document.lines, document.point.line, comment_char, config)


def _needs_blank_line(
    lines: Sequence[str],
    index: int,
    previous_line: str | None,
    level: int,
    comment_char: str,
    config: OutlineConfig,
) -> bool:
    """Whether a blank line goes before a heading inserted at `index`.

    `previous_line` is the line that will sit right above the new heading, or
    None at the top of the document.
    """
    if config.blank_line_policy == "never":
        return False
    if previous_line is None or is_blank(previous_line):
        return False
    if config.blank_line_policy == "always":
        return True

    # auto: follow the closest preceding sibling, stopping at the parent
    for candidate in range(index - 1, -1, -1):
        candidate_level = heading_level(lines[candidate], comment_char, config.base_level)
        if candidate_level is None or candidate_level > level:
            continue
        if candidate_level < level:
            return False
        return candidate > 0 and is_blank(lines[candidate - 1])
    return False


def insert_heading(
    document: Document,
    config: OutlineConfig | None = None,
    level: int | None = None,
    respect_content: bool = False,
    report: Reporter | None = None,
) -> bool:
    """Insert a heading and move point onto it.

    Args:
        document: Document to edit.
        config: Outline configuration.
        level: Level of the new heading; defaults to the level of the heading
            enclosing point, or 1 when there is none.
        respect_content: Insert after the end of the current subtree instead of
            splitting the line at point.
        report: Callback receiving informational messages.

    Returns:
        bool: True when a heading was inserted.

    Raises:
        NoCommentSyntaxError: If the document has no comment syntax.

    Examples:
        insert_heading(document, config, level=2, respect_content=True)
    """
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    lines = document.lines
    point = document.point
    reference = enclosing_heading(lines, point.line, comment_char, config)

    if level is None:
        level = reference.logical_level if reference is not None else 1
    if level < 1:
        _report(report, f"Invalid heading level {level}")
        return False

    indentation = reference.indentation if reference is not None else ""
    prefix = indentation + heading_prefix(level, comment_char, config.base_level)

    line = lines[point.line]
    on_heading = parse_heading(lines, point.line, comment_char, config)
    title = ""
    if respect_content:
        start = end = (
            subtree_end(lines, reference.line_index, comment_char, config)
            if reference is not None
            else len(lines)
        )
        kept: list[str] = []
    elif is_closed_line(line, comment_char):
        # a CLOSED line stays directly below its heading
        start = end = point.line + 1
        kept = []
    elif is_blank(line):
        start, end = point.line, point.line + 1
        kept = []
    elif point.column == 0 or (on_heading is not None and point.column <= on_heading.prefix_end):
        start = end = point.line
        kept = []
    else:
        start, end = point.line, point.line + 1
        kept = [line[: point.column].rstrip()]
        title = line[point.column :].strip()
        closed_below = end < len(lines) and is_closed_line(lines[end], comment_char)
        if on_heading is not None and closed_below:
            kept.append(lines[end])
            end += 1

    if kept:
        previous_line: str | None = kept[-1]
    else:
        previous_line = lines[start - 1] if start > 0 else None

    new_lines = list(kept)
    if _needs_blank_line(lines, start, previous_line, level, comment_char, config):
        new_lines.append("")
    heading_index = start + len(new_lines)
    new_lines.append(f"{prefix} {title}" if title else f"{prefix} ")

    document.replace_lines(start, end, new_lines)
    document.point = Point(heading_index, len(prefix) + 1)
    log.debug("heading_inserted", line=heading_index, level=level)
    return True


def insert_subheading(
    document: Document, config: OutlineConfig | None = None, report: Reporter | None = None
) -> bool:
    """Insert an empty heading one level deeper right below the heading at point.

    A CLOSED line stays attached to its heading; the subheading goes after it.
    """
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    heading = heading_at_point(document, config)
    if heading is None:
        _report(report, NOT_ON_HEADING)
        return False

    lines = document.lines
    index = heading.line_index + 1
    if index < len(lines) and is_closed_line(lines[index], comment_char):
        index += 1

    prefix = heading.indentation + heading_prefix(
        heading.logical_level + 1, comment_char, config.base_level
    )
    document.insert_lines(index, [f"{prefix} "])
    document.point = Point(index, len(prefix) + 1)
    log.debug("subheading_inserted", line=index, level=heading.logical_level + 1)
    return True


def _shift_prefix(line: str, heading: HeadingLine, comment_char: str, delta: int) -> str:
    run = comment_char * (heading.comment_run_length + delta)
    return f"{heading.indentation}{run}{line[heading.prefix_end :]}"


def _check_count(n: int) -> None:
    if n < 1:
        raise ValueError(f"Repeat count must be positive, got {n}")


def promote(
    document: Document,
    config: OutlineConfig | None = None,
    n: int = 1,
    report: Reporter | None = None,
) -> bool:
    """Remove up to `n` comment characters from the heading at point.

    The comment run never drops below the base level; a promotion that would
    have no effect reports ``"Cannot promote further"`` and leaves the document
    untouched.
    """
    _check_count(n)
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    heading = heading_at_point(document, config)
    if heading is None:
        _report(report, NOT_ON_HEADING)
        return False

    removable = min(n, heading.logical_level - 1)
    if removable <= 0:
        _report(report, "Cannot promote further")
        return False

    line = document.line(heading.line_index)
    document.set_line(heading.line_index, _shift_prefix(line, heading, comment_char, -removable))
    log.debug("heading_promoted", line=heading.line_index, by=removable)
    return True


def demote(
    document: Document,
    config: OutlineConfig | None = None,
    n: int = 1,
    report: Reporter | None = None,
) -> bool:
    """Add `n` comment characters to the heading at point."""
    _check_count(n)
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    heading = heading_at_point(document, config)
    if heading is None:
        _report(report, NOT_ON_HEADING)
        return False

    line = document.line(heading.line_index)
    document.set_line(heading.line_index, _shift_prefix(line, heading, comment_char, n))
    log.debug("heading_demoted", line=heading.line_index, by=n)
    return True


def _shift_subtree(
    document: Document, config: OutlineConfig, delta: int, report: Reporter | None
) -> bool:
    comment_char = require_comment_char(document, config)
    heading = heading_at_point(document, config)
    if heading is None:
        _report(report, NOT_ON_HEADING)
        return False

    if delta < 0:
        delta = -min(-delta, heading.logical_level - 1)
        if delta == 0:
            _report(report, "Cannot promote further")
            return False

    lines = document.lines
    end = subtree_end(lines, heading.line_index, comment_char, config)
    shifted = []
    for index in range(heading.line_index, end):
        member = parse_heading(lines, index, comment_char, config)
        if member is None:
            shifted.append(lines[index])
        else:
            shifted.append(_shift_prefix(lines[index], member, comment_char, delta))

    document.replace_lines(heading.line_index, end, shifted)
    log.debug("subtree_shifted", line=heading.line_index, end=end, by=delta)
    return True


def promote_subtree(
    document: Document,
    config: OutlineConfig | None = None,
    n: int = 1,
    report: Reporter | None = None,
) -> bool:
    """Promote the heading at point and every heading below it in its subtree.

    The subtree's root limits the shift, so relative levels are preserved.
    """
    _check_count(n)
    return _shift_subtree(document, config or OutlineConfig(), -n, report)


def demote_subtree(
    document: Document,
    config: OutlineConfig | None = None,
    n: int = 1,
    report: Reporter | None = None,
) -> bool:
    """Demote the heading at point and every heading below it in its subtree."""
    _check_count(n)
    return _shift_subtree(document, config or OutlineConfig(), n, report)


def _apply_keyword(
    document: Document,
    config: OutlineConfig,
    comment_char: str,
    heading: HeadingLine,
    keyword: str | None,
    now: datetime | None,
) -> None:
    lines = document.lines
    index = heading.line_index
    done = config.effective_done_keyword

    body = " ".join(part for part in (keyword, heading.title) if part)
    prefix = heading.indentation + comment_char * heading.comment_run_length
    new_lines = [f"{prefix} {body}" if body else lines[index][: heading.prefix_end]]

    end = index + 1
    has_closed = end < len(lines) and is_closed_line(lines[end], comment_char)
    if keyword == done and done is not None:
        if has_closed:
            end += 1
        new_lines.append(closed_line(heading, comment_char, now or datetime.now()))
    elif heading.keyword == done and has_closed:
        end += 1

    document.replace_lines(index, end, new_lines)
    log.debug("keyword_set", line=index, old=heading.keyword, new=keyword)


def cycle_todo(
    document: Document,
    config: OutlineConfig | None = None,
    direction: int = 1,
    now: datetime | None = None,
    report: Reporter | None = None,
) -> bool:
    """Move the heading at point to the next (or previous) TODO keyword.

    The keywords form a ring together with the empty state:
    ``["", keyword_1, ..., keyword_k]``. Arriving at the done keyword records a
    fresh CLOSED line below the heading; leaving it removes that line.

    Args:
        document: Document to edit.
        config: Outline configuration.
        direction: ``1`` to move forward through the ring, ``-1`` to move back.
        now: Time recorded in the CLOSED line; defaults to the current time.
        report: Callback receiving informational messages.

    Returns:
        bool: True when the keyword changed.

    Examples:
        cycle_todo(document, OutlineConfig(todo_keywords=("TODO", "DONE")))
    """
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    heading = heading_at_point(document, config)
    if heading is None:
        _report(report, NOT_ON_HEADING)
        return False
    if not config.todo_keywords:
        _report(report, "No TODO keywords configured")
        return False

    ring: list[str | None] = [None, *config.todo_keywords]
    position = ring.index(heading.keyword)
    keyword = ring[(position + (1 if direction >= 0 else -1)) % len(ring)]
    _apply_keyword(document, config, comment_char, heading, keyword, now)
    return True


def set_todo(
    document: Document,
    config: OutlineConfig | None = None,
    keyword: str | None = None,
    now: datetime | None = None,
    report: Reporter | None = None,
) -> bool:
    """Set the keyword of the heading at point; None or ``""`` clears it."""
    config = config or OutlineConfig()
    comment_char = require_comment_char(document, config)
    heading = heading_at_point(document, config)
    if heading is None:
        _report(report, NOT_ON_HEADING)
        return False

    keyword = keyword or None
    if keyword is not None and keyword not in config.todo_keywords:
        _report(report, f"Unknown keyword {keyword}")
        return False

    _apply_keyword(document, config, comment_char, heading, keyword, now)
    return True
